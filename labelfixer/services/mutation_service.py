"""
Mutation service for labelfixer.

Applies a plan through a label sink, one issue at a time: additions first,
then removals. A failure on one issue is recorded and the next issue still
runs; there is no rollback of partial changes. In dry-run mode the sink is
never called.
"""

import logging
from typing import Generator, List, Optional, Protocol

from ..domain.operation import MutationDetail, MutationStatus, PlanEntry, PlanResult, RunSummary
from ..exit_codes import MutationError

logger = logging.getLogger(__name__)


class LabelSink(Protocol):
    """
    Remote label mutation capability.

    Both calls must be idempotent. A failed call should raise MutationError;
    any other exception is treated the same way and fails only the issue
    being updated.
    """

    def add_label(self, issue_number: int, label: str) -> None: ...

    def remove_label(self, issue_number: int, label: str) -> None: ...


class MutationService:
    """
    Service for applying label plans.

    Example:
        service = MutationService(sink, dry_run=False)

        for progress in service.apply(plan):
            print(progress)  # "#42: added prioridade:critico"

        summary = service.last_result
        print(f"Mutated {summary.mutated} issues")
    """

    def __init__(self, sink: Optional[LabelSink], dry_run: bool = True):
        """
        Initialize MutationService.

        Args:
            sink: Label sink (may be None in dry-run mode)
            dry_run: Compute and report without calling the sink
        """
        if sink is None and not dry_run:
            raise ValueError("A label sink is required unless running dry")
        self.sink = sink
        self.dry_run = dry_run
        self.last_result: Optional[RunSummary] = None

    def apply(self, plan: PlanResult) -> Generator[str, None, RunSummary]:
        """
        Apply plan entries sequentially.

        Args:
            plan: Result of PlanService.build_plan

        Yields:
            Progress messages

        Returns:
            RunSummary with plan and mutation counts
        """
        summary = RunSummary.from_plan(plan, dry_run=self.dry_run)
        self.last_result = summary

        if not plan.entries:
            yield "No issues to update"
            return summary

        for entry in plan.entries:
            detail = self._apply_one(entry)
            summary.add_detail(detail)

            if detail.status == MutationStatus.MUTATED:
                yield f"  ✓ #{entry.issue_number}: {self._describe(detail.added, detail.removed)}"
            elif detail.status == MutationStatus.DRY_RUN:
                yield f"  Would update #{entry.issue_number}: {self._describe(detail.added, detail.removed)}"
            elif detail.status == MutationStatus.SKIPPED:
                yield f"  - #{entry.issue_number}: already has {entry.winning_rule.result_label}"
            else:
                yield f"  ✗ #{entry.issue_number}: {detail.error}"

        return summary

    def _apply_one(self, entry: PlanEntry) -> MutationDetail:
        if entry.converged:
            return MutationDetail(entry.issue_number, MutationStatus.SKIPPED)

        if self.dry_run:
            logger.debug(f"Dry run: skipping mutation of #{entry.issue_number}")
            return MutationDetail(
                entry.issue_number,
                MutationStatus.DRY_RUN,
                added=list(entry.labels_to_add),
                removed=list(entry.labels_to_remove),
            )

        added: List[str] = []
        removed: List[str] = []
        try:
            for label in entry.labels_to_add:
                logger.info(f"Updating issue #{entry.issue_number} with label {label}")
                self.sink.add_label(entry.issue_number, label)
                added.append(label)
            for label in entry.labels_to_remove:
                logger.info(f"Removing label {label} from issue #{entry.issue_number}")
                self.sink.remove_label(entry.issue_number, label)
                removed.append(label)
        except Exception as e:
            if isinstance(e, MutationError):
                error = str(e)
                logger.warning(f"Failed to update issue #{entry.issue_number}: {error}")
            else:
                error = f"{type(e).__name__}: {e}"
                logger.error(f"Unexpected error updating issue #{entry.issue_number}: {error}")
            return MutationDetail(
                entry.issue_number,
                MutationStatus.FAILED,
                added=added,
                removed=removed,
                error=error,
            )

        return MutationDetail(entry.issue_number, MutationStatus.MUTATED, added=added, removed=removed)

    @staticmethod
    def _describe(added: List[str], removed: List[str]) -> str:
        parts = []
        if added:
            parts.append("add " + ", ".join(added))
        if removed:
            parts.append("remove " + ", ".join(removed))
        return "; ".join(parts)
