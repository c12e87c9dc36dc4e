"""
Tests for the high-level LabelFixer API.
"""

import json
from unittest.mock import MagicMock

import pytest

from labelfixer import LabelFixer
from labelfixer.api import create
from labelfixer.config import get_default_config
from labelfixer.domain import MutationStatus
from labelfixer.exit_codes import ConfigError


def make_config(tmp_path, **sections):
    config = get_default_config()
    config['github'].update(owner='octo', repo='support')
    config['snapshot']['path'] = str(tmp_path / 'issues.json')
    for name, values in sections.items():
        if isinstance(values, dict):
            config[name].update(values)
        else:
            config[name] = values
    return config


def write_snapshot(tmp_path, issues):
    (tmp_path / 'issues.json').write_text(json.dumps(issues), encoding='utf-8')


def drain(generator):
    messages = []
    while True:
        try:
            messages.append(next(generator))
        except StopIteration as stop:
            return messages, stop.value


SNAPSHOT = [
    {'number': 1, 'title': 'a', 'timeline': [
        {'event': 'labeled', 'label': {'name': 'sup:frequencia:sempre'}, 'order': 0},
        {'event': 'labeled', 'label': {'name': 'sup:gravidade:não consegue contornar'}, 'order': 1},
    ]},
    {'number': 2, 'title': 'b', 'timeline': [
        {'event': 'labeled', 'label': {'name': 'bug'}, 'order': 0},
    ]},
]


class TestConstruction:
    """Config validation at construction time."""

    def test_defaults_from_config(self, tmp_path):
        fixer = LabelFixer(config=make_config(tmp_path))
        assert fixer.run_config.dry_run is True
        assert len(fixer.rules) == 7

    def test_overrides(self, tmp_path):
        fixer = LabelFixer(config=make_config(tmp_path), dry_run=False, remove_superseded=True)
        assert fixer.run_config.dry_run is False
        assert fixer.plan_service.remove_superseded is True

    def test_malformed_rules_fail_before_io(self, tmp_path):
        client = MagicMock()
        config = make_config(tmp_path, rules=[{'new': 'x', 'old': [], 'priority': 0}])
        with pytest.raises(ConfigError):
            LabelFixer(config=config, client=client)
        assert client.mock_calls == []

    def test_create(self, tmp_path):
        assert isinstance(create(config=make_config(tmp_path)), LabelFixer)


class TestIssues:
    """Snapshot loading through the API."""

    def test_uses_snapshot(self, tmp_path):
        write_snapshot(tmp_path, SNAPSHOT)
        client = MagicMock()
        fixer = LabelFixer(config=make_config(tmp_path), client=client)

        issues = fixer.issues()

        assert [issue.number for issue in issues] == [1, 2]
        client.iter_closed_issues.assert_not_called()

    def test_fetch_requires_repository(self, tmp_path):
        config = make_config(tmp_path)
        config['github'].update(owner=None, repo=None)
        fixer = LabelFixer(config=config, client=MagicMock())
        with pytest.raises(ConfigError):
            fixer.issues()

    def test_fetches_when_snapshot_missing(self, tmp_path):
        client = MagicMock()
        client.iter_closed_issues.return_value = iter([{'number': 9, 'title': 'nine'}])
        client.get_timeline.return_value = []
        fixer = LabelFixer(config=make_config(tmp_path), client=client)

        issues = fixer.issues()

        assert [issue.number for issue in issues] == [9]
        assert (tmp_path / 'issues.json').exists()


class TestPlanAndRun:
    """plan() and run() end to end with a mock sink."""

    def test_plan(self, tmp_path):
        write_snapshot(tmp_path, SNAPSHOT)
        plan = LabelFixer(config=make_config(tmp_path)).plan()

        assert plan.matched == 1
        assert plan.unmatched == 1
        # critico (0) beats bloqueante (1)
        assert plan.entries[0].winning_rule.result_label == 'prioridade:critico'

    def test_run_dry_run(self, tmp_path):
        write_snapshot(tmp_path, SNAPSHOT)
        sink = MagicMock()
        fixer = LabelFixer(config=make_config(tmp_path), sink=sink)

        _, summary = drain(fixer.run())

        assert sink.mock_calls == []
        assert summary.details[0].status == MutationStatus.DRY_RUN
        assert fixer.mutation_service.last_result is summary

    def test_run_apply(self, tmp_path):
        write_snapshot(tmp_path, SNAPSHOT)
        sink = MagicMock()
        fixer = LabelFixer(config=make_config(tmp_path), sink=sink, dry_run=False)

        _, summary = drain(fixer.run())

        sink.add_label.assert_called_once_with(1, 'prioridade:critico')
        assert summary.mutated == 1
        assert summary.success

    def test_apply_without_repository(self, tmp_path):
        write_snapshot(tmp_path, SNAPSHOT)
        config = make_config(tmp_path, run={'dry_run': False})
        config['github'].update(owner=None, repo=None)
        fixer = LabelFixer(config=config)

        with pytest.raises(ConfigError):
            drain(fixer.run())
