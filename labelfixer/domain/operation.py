"""
Plan and result domain objects for labelfixer.

Provides the per-run types that flow from plan building to mutation:
- PlanEntry: one issue's winning rule and the labels to add/remove
- PlanResult: all entries plus per-issue failures of one plan build
- MutationDetail / RunSummary: what the mutation pass did
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from .rule import Rule


@dataclass(frozen=True)
class PlanEntry:
    """
    Mutation intent for one issue.

    Attributes:
        issue_number: Issue to mutate
        winning_rule: Rule selected for the issue
        current_labels: Replayed label names
        labels_to_add: Labels missing from the issue
        labels_to_remove: Superseded labels to drop (empty unless enabled)
    """

    issue_number: int
    winning_rule: Rule
    current_labels: FrozenSet[str]
    labels_to_add: Tuple[str, ...] = ()
    labels_to_remove: Tuple[str, ...] = ()

    @property
    def converged(self) -> bool:
        """True when there is nothing left to change."""
        return not self.labels_to_add and not self.labels_to_remove

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'plan_entry',
            'issue': self.issue_number,
            'label': self.winning_rule.result_label,
            'priority': self.winning_rule.priority,
            'rule': sorted(self.winning_rule.required_old_labels),
            'current_labels': sorted(self.current_labels),
            'add': list(self.labels_to_add),
            'remove': list(self.labels_to_remove),
        }


@dataclass(frozen=True)
class PlanFailure:
    """An issue whose timeline could not be replayed."""
    issue_number: int
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'plan_failure', 'issue': self.issue_number, 'error': self.error}


@dataclass
class PlanResult:
    """
    Outcome of building a plan over a batch of issues.

    Issues without a matching rule are only counted; they never produce
    an entry.
    """
    entries: List[PlanEntry] = field(default_factory=list)
    failures: List[PlanFailure] = field(default_factory=list)
    unmatched: int = 0

    @property
    def matched(self) -> int:
        return len(self.entries)

    @property
    def total(self) -> int:
        return self.matched + self.unmatched + len(self.failures)

    @property
    def success(self) -> bool:
        return not self.failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'plan_summary',
            'total': self.total,
            'matched': self.matched,
            'unmatched': self.unmatched,
            'failed': len(self.failures),
        }


class MutationStatus(Enum):
    """Status of applying one plan entry."""
    MUTATED = "mutated"
    SKIPPED = "skipped"      # Already converged
    FAILED = "failed"
    DRY_RUN = "dry_run"


@dataclass
class MutationDetail:
    """What happened to one issue during the mutation pass."""
    issue_number: int
    status: MutationStatus
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'type': 'mutation',
            'issue': self.issue_number,
            'status': self.status.value,
            'added': self.added,
            'removed': self.removed,
        }
        if self.error:
            result['error'] = self.error
        return result


@dataclass
class RunSummary:
    """
    End-of-run report.

    Counts follow the plan (matched/unmatched) and the mutation pass
    (mutated/skipped). ``failed`` covers both replay and mutation failures.
    """
    matched: int = 0
    unmatched: int = 0
    mutated: int = 0
    skipped: int = 0
    failed: int = 0
    dry_run: bool = False
    details: List[MutationDetail] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if no failures occurred."""
        return self.failed == 0

    @classmethod
    def from_plan(cls, plan: PlanResult, dry_run: bool = False) -> 'RunSummary':
        summary = cls(matched=plan.matched, unmatched=plan.unmatched, dry_run=dry_run)
        for failure in plan.failures:
            summary.failed += 1
            summary.errors.append(f"#{failure.issue_number}: {failure.error}")
        return summary

    def add_detail(self, detail: MutationDetail) -> None:
        """Add a mutation detail and update counts."""
        self.details.append(detail)

        if detail.status == MutationStatus.MUTATED:
            self.mutated += 1
        elif detail.status == MutationStatus.SKIPPED:
            self.skipped += 1
        elif detail.status == MutationStatus.FAILED:
            self.failed += 1
            if detail.error:
                self.errors.append(f"#{detail.issue_number}: {detail.error}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'summary',
            'matched': self.matched,
            'unmatched': self.unmatched,
            'mutated': self.mutated,
            'skipped': self.skipped,
            'failed': self.failed,
            'dry_run': self.dry_run,
            'errors': self.errors,
        }
