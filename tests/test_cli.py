"""
CLI tests for labelfixer using click's CliRunner.

Every test runs against a config file and snapshot in a temporary
directory, so no GitHub request is made unless a test asks for it.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
import yaml
from click.testing import CliRunner

from labelfixer.cli import cli
from labelfixer.exit_codes import CONFIG_ERROR, PARTIAL_SUCCESS, MutationError


SNAPSHOT = [
    {
        'number': 42,
        'title': 'Crash on save',
        'timeline': [
            {'event': 'labeled', 'label': {'name': 'sup:gravidade:não consegue contornar'}, 'order': 0},
        ],
    },
    {
        'number': 43,
        'title': 'Needs attention now',
        'timeline': [
            {'event': 'labeled', 'label': {'name': 'sup:acao imediata'}, 'order': 0},
        ],
    },
    {
        'number': 44,
        'title': 'Label added then dropped',
        'timeline': [
            {'event': 'labeled', 'label': {'name': 'sup:acao imediata'}, 'order': 0},
            {'event': 'unlabeled', 'label': {'name': 'sup:acao imediata'}, 'order': 1},
        ],
    },
]


def parse_jsonl(output):
    return [json.loads(line) for line in output.splitlines() if line.startswith('{')]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Config file plus snapshot, returned as the config path."""
    monkeypatch.setenv('HOME', str(tmp_path))
    monkeypatch.delenv('LABELFIXER_CONFIG', raising=False)
    monkeypatch.delenv('LABELFIXER_GITHUB_TOKEN', raising=False)

    snapshot = tmp_path / 'issues.json'
    snapshot.write_text(json.dumps(SNAPSHOT), encoding='utf-8')

    config_path = tmp_path / 'config.yaml'
    config_path.write_text(yaml.safe_dump({
        'github': {'owner': 'octo', 'repo': 'support'},
        'snapshot': {'path': str(snapshot)},
    }), encoding='utf-8')
    return config_path


class TestGroup:
    """Top-level group behavior."""

    def test_help(self, runner):
        result = runner.invoke(cli, ['--help'])
        assert result.exit_code == 0
        for command in ('fetch', 'plan', 'run', 'rules', 'config'):
            assert command in result.output


class TestPlanCommand:
    """Tests for 'labelfixer plan'."""

    def test_plan_table(self, runner, workspace):
        result = runner.invoke(cli, ['--config', str(workspace), 'plan'])
        assert result.exit_code == 0, result.output
        assert '#42' in result.output
        assert '#43' in result.output
        assert 'Matched:' in result.output

    def test_plan_json(self, runner, workspace):
        result = runner.invoke(cli, ['--config', str(workspace), 'plan', '--json'])
        assert result.exit_code == 0, result.output

        records = parse_jsonl(result.output)
        entries = [r for r in records if r.get('type') == 'plan_entry']
        assert [(e['issue'], e['label']) for e in entries] == [
            (42, 'prioridade:critico'),
            (43, 'prioridade:bloqueante'),
        ]
        assert entries[0]['add'] == ['prioridade:critico']
        assert entries[0]['remove'] == []

    def test_plan_remove_old(self, runner, workspace):
        result = runner.invoke(cli, ['--config', str(workspace), 'plan', '--json', '--remove-old'])
        assert result.exit_code == 0, result.output
        entries = [r for r in parse_jsonl(result.output) if r.get('type') == 'plan_entry']
        assert entries[1]['remove'] == ['sup:acao imediata']

    def test_malformed_rules_exit_code(self, runner, workspace):
        config = yaml.safe_load(workspace.read_text(encoding='utf-8'))
        config['rules'] = [{'new': '', 'old': ['a'], 'priority': 0}]
        workspace.write_text(yaml.safe_dump(config), encoding='utf-8')

        result = runner.invoke(cli, ['--config', str(workspace), 'plan'])
        assert result.exit_code == CONFIG_ERROR

    def test_missing_config_file(self, runner, tmp_path):
        result = runner.invoke(cli, ['--config', str(tmp_path / 'absent.yaml'), 'plan'])
        assert result.exit_code == CONFIG_ERROR


class TestRunCommand:
    """Tests for 'labelfixer run'."""

    def test_dry_run_by_default(self, runner, workspace):
        with patch('labelfixer.api.GitHubLabelSink') as sink_class:
            result = runner.invoke(cli, ['--config', str(workspace), 'run', '--json'])

        assert result.exit_code == 0, result.output
        sink_class.assert_not_called()
        summary = parse_jsonl(result.output)[-1]
        assert summary['dry_run'] is True
        assert summary['matched'] == 2
        assert summary['unmatched'] == 1
        assert summary['mutated'] == 0

    def test_apply(self, runner, workspace):
        sink = MagicMock()
        with patch('labelfixer.api.GitHubLabelSink', return_value=sink):
            result = runner.invoke(cli, ['--config', str(workspace), 'run', '--apply', '--json'])

        assert result.exit_code == 0, result.output
        assert [c.args for c in sink.add_label.call_args_list] == [
            (42, 'prioridade:critico'),
            (43, 'prioridade:bloqueante'),
        ]
        sink.remove_label.assert_not_called()
        summary = parse_jsonl(result.output)[-1]
        assert summary['mutated'] == 2
        assert summary['dry_run'] is False

    def test_apply_partial_failure(self, runner, workspace):
        sink = MagicMock()
        sink.add_label.side_effect = [MutationError('HTTP 500', 42, 'prioridade:critico'), None]
        with patch('labelfixer.api.GitHubLabelSink', return_value=sink):
            result = runner.invoke(cli, ['--config', str(workspace), 'run', '--apply'])

        assert result.exit_code == PARTIAL_SUCCESS
        # Issue #43 still attempted after #42 failed
        assert sink.add_label.call_count == 2
        assert '#42' in result.output

    def test_apply_remove_old(self, runner, workspace):
        sink = MagicMock()
        with patch('labelfixer.api.GitHubLabelSink', return_value=sink):
            result = runner.invoke(cli, ['--config', str(workspace), 'run', '--apply', '--remove-old'])

        assert result.exit_code == 0, result.output
        assert [c.args for c in sink.remove_label.call_args_list] == [
            (42, 'sup:gravidade:não consegue contornar'),
            (43, 'sup:acao imediata'),
        ]


class TestRulesCommand:

    def test_rules_json(self, runner, workspace):
        result = runner.invoke(cli, ['--config', str(workspace), 'rules', '--json'])
        assert result.exit_code == 0, result.output
        rules = parse_jsonl(result.output)
        assert len(rules) == 7
        assert rules[0] == {
            'new': 'prioridade:baixa',
            'old': ['sup:frequencia:raramente', 'sup:gravidade:existem alternativas'],
            'priority': 3,
        }

    def test_rules_table(self, runner, workspace):
        result = runner.invoke(cli, ['--config', str(workspace), 'rules'])
        assert result.exit_code == 0, result.output
        assert 'Rules (7)' in result.output


class TestConfigCommand:
    """Tests for 'labelfixer config'."""

    def test_show_redacts_token(self, runner, workspace, monkeypatch):
        monkeypatch.setenv('LABELFIXER_GITHUB_TOKEN', 'not-a-real-token')
        result = runner.invoke(cli, ['--config', str(workspace), 'config', 'show'])
        assert result.exit_code == 0, result.output
        shown = parse_jsonl(result.output)[0]
        assert shown['github']['token'] == '***'
        assert shown['github']['owner'] == 'octo'
        assert 'not-a-real-token' not in result.output

    def test_show_path(self, runner, workspace):
        result = runner.invoke(cli, ['--config', str(workspace), 'config', 'show', '--path'])
        assert parse_jsonl(result.output) == [{'config_path': str(workspace)}]

    def test_init_writes_default_rules(self, runner, tmp_path):
        target = tmp_path / 'new' / 'config.yaml'
        result = runner.invoke(cli, ['--config', str(target), 'config', 'init'])
        assert result.exit_code == 0, result.output

        written = yaml.safe_load(target.read_text(encoding='utf-8'))
        assert len(written['rules']) == 7
        assert written['run']['dry_run'] is True

    def test_init_does_not_overwrite(self, runner, workspace):
        before = workspace.read_text(encoding='utf-8')
        result = runner.invoke(cli, ['--config', str(workspace), 'config', 'init'])
        assert result.exit_code == 0
        assert 'already exists' in result.output
        assert workspace.read_text(encoding='utf-8') == before


class TestFetchCommand:

    def test_fetch_saves_snapshot(self, runner, workspace, tmp_path):
        client = MagicMock()
        client.iter_closed_issues.return_value = iter([{'number': 7, 'title': 'Seven'}])
        client.get_timeline.return_value = [{'event': 'labeled', 'label': {'name': 'sup:acao imediata'}}]

        with patch('labelfixer.api.GitHubClient.from_config', return_value=client):
            result = runner.invoke(cli, ['--config', str(workspace), 'fetch'])

        assert result.exit_code == 0, result.output
        assert 'Saved 1 issues (1 with label events)' in result.output
        saved = json.loads((tmp_path / 'issues.json').read_text(encoding='utf-8'))
        assert [issue['number'] for issue in saved] == [7]
        client.iter_closed_issues.assert_called_once_with('octo', 'support')
