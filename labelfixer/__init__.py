"""
labelfixer - Consolidate GitHub issue labels from their label history.

For every closed issue, labelfixer replays the labeled/unlabeled events of
its timeline, matches the resulting label set against a rule table, and
adds the winning rule's consolidated label.

Quick Start:
    import labelfixer

    # Dry run with the config file at ~/.labelfixer/config.yaml
    fixer = labelfixer.LabelFixer()
    plan = fixer.plan()

    # Pure building blocks
    labels = labelfixer.replay(issue.timeline)
    result = labelfixer.match(labels, labelfixer.RuleTable(labelfixer.DEFAULT_RULES))
    print(result.winner)

Domain Objects:
    LabelEvent, Issue - Label timeline of an issue
    Rule, RuleTable - Consolidation rules
    PlanEntry, PlanResult, RunSummary - Per-run plan and results

Services:
    SnapshotService - Load or fetch the issue snapshot
    PlanService - Replay and match into a plan
    MutationService - Apply a plan through a label sink
"""

__version__ = "0.1.0"

# High-level API
from .api import LabelFixer, create

# Core functions
from .replay import replay
from .matcher import match, MatchResult

# Domain objects
from .domain import (
    EventKind,
    LabelEvent,
    Issue,
    Rule,
    RuleTable,
    DEFAULT_RULES,
    PlanEntry,
    PlanResult,
    RunSummary,
)

# Services (for advanced use)
from .services import (
    SnapshotService,
    PlanService,
    MutationService,
)

# Configuration
from .config import load_config, RunConfig

__all__ = [
    # Version
    "__version__",
    # High-level API
    "LabelFixer",
    "create",
    # Core
    "replay",
    "match",
    "MatchResult",
    # Domain objects
    "EventKind",
    "LabelEvent",
    "Issue",
    "Rule",
    "RuleTable",
    "DEFAULT_RULES",
    "PlanEntry",
    "PlanResult",
    "RunSummary",
    # Services
    "SnapshotService",
    "PlanService",
    "MutationService",
    # Configuration
    "load_config",
    "RunConfig",
]
