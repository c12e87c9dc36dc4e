"""
Rule matching for labelfixer.

A rule matches when every one of its required old labels is present in the
replayed label set. Among matches the lowest priority wins; equal priorities
are resolved by declaration order in the rule table.
"""

from dataclasses import dataclass
from typing import AbstractSet, Iterable, Mapping, Optional, Tuple

from .domain.rule import Rule


@dataclass(frozen=True)
class MatchResult:
    """All satisfied rules for one label set and the selected winner."""
    all: Tuple[Rule, ...] = ()
    winner: Optional[Rule] = None

    @property
    def matched(self) -> bool:
        return self.winner is not None


def rule_matches(rule: Rule, label_names: AbstractSet[str]) -> bool:
    """Conjunctive check: all required old labels must be present."""
    return rule.required_old_labels <= label_names


def match(labels: Mapping[str, object], rules: Iterable[Rule]) -> MatchResult:
    """
    Match a label set against a rule table.

    Args:
        labels: Replayed label set (only the keys are used)
        rules: Rules in declaration order

    Returns:
        MatchResult with every satisfied rule and the winner (None if no match)
    """
    names = frozenset(labels.keys())
    satisfied = tuple(rule for rule in rules if rule_matches(rule, names))
    if not satisfied:
        return MatchResult()

    # min() keeps the first of equal keys, which is the first declared rule
    winner = min(satisfied, key=lambda rule: rule.priority)
    return MatchResult(all=satisfied, winner=winner)
