"""
High-level Python API for labelfixer.

Wires configuration, the rule table, the GitHub client and the services
into one object.

Example:
    from labelfixer import LabelFixer

    # Uses ~/.labelfixer/config.yaml (dry run by default)
    fixer = LabelFixer()

    # Inspect the plan
    plan = fixer.plan()
    for entry in plan.entries:
        print(entry.issue_number, entry.labels_to_add)

    # Plan and apply
    runner = fixer.run()
    for progress in runner:
        print(progress)
    print(fixer.mutation_service.last_result.to_dict())
"""

import dataclasses
import logging
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

from .config import RunConfig, load_config
from .domain import Issue, PlanResult, RuleTable, RunSummary
from .infra import GitHubClient, GitHubLabelSink, SnapshotStore
from .services import LabelSink, MutationService, PlanService, SnapshotService

logger = logging.getLogger(__name__)


class LabelFixer:
    """
    High-level API for labelfixer.

    The run configuration (including the rule table) is validated on
    construction, so a malformed config fails before any I/O.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        config_path: Optional[Path] = None,
        client: Optional[GitHubClient] = None,
        sink: Optional[LabelSink] = None,
        **overrides: Any
    ):
        """
        Initialize LabelFixer.

        Args:
            config: Full config dict (overrides file if provided)
            config_path: Path to config file (default: ~/.labelfixer/config.yaml)
            client: GitHub client (created from config if None)
            sink: Label sink (GitHub sink for the configured repo if None)
            **overrides: RunConfig fields to override, e.g. dry_run=False

        Raises:
            ConfigError: If the configuration or rule table is malformed
        """
        self._config = config if config is not None else load_config(config_path)
        run_config = RunConfig.from_config(self._config)
        if overrides:
            run_config = dataclasses.replace(run_config, **overrides)
        self.run_config = run_config

        self._client = client
        self._sink = sink
        self._mutation_service: Optional[MutationService] = None

    @property
    def config(self) -> Dict[str, Any]:
        return self._config

    @property
    def rules(self) -> RuleTable:
        return self.run_config.rules

    @property
    def client(self) -> GitHubClient:
        if self._client is None:
            self._client = GitHubClient.from_config(self._config)
        return self._client

    @property
    def store(self) -> SnapshotStore:
        return SnapshotStore(self.run_config.snapshot_path)

    @property
    def snapshot_service(self) -> SnapshotService:
        return SnapshotService(
            self.client,
            self.store,
            self.run_config.owner,
            self.run_config.repo,
            max_workers=self.run_config.max_concurrent_requests,
        )

    @property
    def plan_service(self) -> PlanService:
        return PlanService(self.rules, remove_superseded=self.run_config.remove_superseded)

    @property
    def mutation_service(self) -> MutationService:
        if self._mutation_service is None:
            sink = self._sink
            if sink is None and not self.run_config.dry_run:
                self.run_config.require_repository()
                sink = GitHubLabelSink(self.client, self.run_config.owner, self.run_config.repo)
            self._mutation_service = MutationService(sink, dry_run=self.run_config.dry_run)
        return self._mutation_service

    def issues(self, refresh: bool = False) -> List[Issue]:
        """
        Issues of the current snapshot, fetching them if needed.

        Raises:
            ConfigError: If a fetch is needed but no repository is configured
            FetchError: If fetching or loading the snapshot fails
        """
        if refresh or not self.store.exists():
            self.run_config.require_repository()
        return self.snapshot_service.load_or_fetch(refresh=refresh)

    def plan(self, refresh: bool = False) -> PlanResult:
        """Build the plan for the current snapshot."""
        return self.plan_service.build_plan(self.issues(refresh=refresh))

    def run(self, refresh: bool = False) -> Generator[str, None, RunSummary]:
        """
        Build the plan and apply it.

        Yields:
            Progress messages

        Returns:
            RunSummary (also available as ``mutation_service.last_result``)
        """
        plan = self.plan(refresh=refresh)
        summary = yield from self.mutation_service.apply(plan)
        return summary


def create(**kwargs: Any) -> LabelFixer:
    """Convenience constructor, same arguments as LabelFixer."""
    return LabelFixer(**kwargs)
