"""
Plan service for labelfixer.

Turns a batch of issues into a mutation plan: each issue's timeline is
replayed, matched against the rule table, and issues with a winning rule
become plan entries. Issues are independent, so one malformed timeline
only fails that issue.
"""

import logging
from typing import Iterable, Tuple

from ..domain.event import Issue, LabelSet
from ..domain.operation import PlanEntry, PlanFailure, PlanResult
from ..domain.rule import Rule, RuleTable
from ..exit_codes import ReplayError
from ..matcher import match
from ..replay import replay

logger = logging.getLogger(__name__)


class PlanService:
    """
    Service for building label consolidation plans.

    Building is pure: the same issues and rules always give the same plan.

    Example:
        service = PlanService(RuleTable(DEFAULT_RULES))
        plan = service.build_plan(issues)
        for entry in plan.entries:
            print(entry.issue_number, entry.labels_to_add)
    """

    def __init__(self, rules: RuleTable, remove_superseded: bool = False):
        """
        Initialize PlanService.

        Args:
            rules: Validated rule table
            remove_superseded: Also plan removal of the winner's old labels
        """
        self.rules = rules
        self.remove_superseded = remove_superseded

    def build_plan(self, issues: Iterable[Issue]) -> PlanResult:
        """
        Build the plan for a batch of issues.

        Args:
            issues: Issues with their label timelines

        Returns:
            PlanResult with entries in input order, per-issue failures,
            and the count of issues no rule matched
        """
        result = PlanResult()

        for issue in issues:
            try:
                labels = replay(issue.timeline, issue.number)
            except ReplayError as e:
                logger.warning(f"Skipping issue #{issue.number}: {e}")
                result.failures.append(PlanFailure(issue.number, str(e)))
                continue

            outcome = match(labels, self.rules)
            if outcome.winner is None:
                result.unmatched += 1
                continue

            if len(outcome.all) > 1:
                logger.debug(
                    f"Issue #{issue.number} matches {len(outcome.all)} rules, "
                    f"using {outcome.winner.result_label}"
                )
            result.entries.append(self._entry(issue, labels, outcome.winner))

        logger.info(
            f"Plan: {result.matched} matched, {result.unmatched} unmatched, "
            f"{len(result.failures)} failed"
        )
        return result

    def _entry(self, issue: Issue, labels: LabelSet, winner: Rule) -> PlanEntry:
        current = frozenset(labels)
        to_add: Tuple[str, ...] = ()
        if winner.result_label not in current:
            to_add = (winner.result_label,)

        to_remove: Tuple[str, ...] = ()
        if self.remove_superseded:
            stale = (winner.required_old_labels & current) - {winner.result_label}
            to_remove = tuple(sorted(stale))

        return PlanEntry(
            issue_number=issue.number,
            winning_rule=winner,
            current_labels=current,
            labels_to_add=to_add,
            labels_to_remove=to_remove,
        )
