"""
Domain layer for labelfixer.

Contains pure domain objects with no I/O or side effects:
- LabelEvent / Issue: Label timeline of a closed issue
- Rule / RuleTable: Label consolidation rules
- PlanEntry / PlanResult / RunSummary: Per-run plan and results

These objects are immutable where possible and provide
serialization methods for JSONL output.
"""

from .event import EventKind, LabelEvent, Issue, LabelSet, parse_timeline
from .rule import Rule, RuleTable, DEFAULT_RULES
from .operation import (
    PlanEntry,
    PlanFailure,
    PlanResult,
    MutationStatus,
    MutationDetail,
    RunSummary,
)

__all__ = [
    'EventKind',
    'LabelEvent',
    'Issue',
    'LabelSet',
    'parse_timeline',
    'Rule',
    'RuleTable',
    'DEFAULT_RULES',
    'PlanEntry',
    'PlanFailure',
    'PlanResult',
    'MutationStatus',
    'MutationDetail',
    'RunSummary',
]
