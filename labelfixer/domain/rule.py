"""
Consolidation rule domain objects for labelfixer.

A rule maps a conjunction of "old" labels to one consolidated "new" label:

    Rule(result_label="prioridade:baixa",
         required_old_labels={"sup:frequencia:raramente",
                              "sup:gravidade:existem alternativas"},
         priority=3)

Lower priority values take precedence. Rules live in an ordered RuleTable
that is validated once at construction and never mutated afterwards.
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..exit_codes import ConfigError


@dataclass(frozen=True)
class Rule:
    """
    A single consolidation rule.

    Attributes:
        result_label: Label applied when the rule wins
        required_old_labels: Labels that must all be present
        priority: Precedence, lowest value wins
    """

    result_label: str
    required_old_labels: FrozenSet[str]
    priority: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Rule':
        """
        Create from a config entry like ``{new: ..., old: [...], priority: N}``.

        Raises:
            ConfigError: If the entry is malformed
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Rule must be a mapping, got {type(data).__name__}")

        new = data.get('new')
        old = data.get('old')
        priority = data.get('priority')

        if not isinstance(new, str) or not new.strip():
            raise ConfigError(f"Rule {data!r} needs a non-empty 'new' label")
        if isinstance(old, str):
            old = [old]
        if not isinstance(old, (list, tuple, set, frozenset)):
            raise ConfigError(f"Rule '{new}' needs 'old' as a list of labels")
        if any(not isinstance(name, str) or not name for name in old):
            raise ConfigError(f"Rule '{new}' has an empty or non-string old label")
        # bool is an int subclass
        if isinstance(priority, bool) or not isinstance(priority, int):
            raise ConfigError(f"Rule '{new}' needs an integer 'priority'")

        return cls(result_label=new, required_old_labels=frozenset(old), priority=priority)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the config entry shape."""
        return {
            'new': self.result_label,
            'old': sorted(self.required_old_labels),
            'priority': self.priority,
        }

    def __str__(self) -> str:
        old = ", ".join(sorted(self.required_old_labels))
        return f"[{old}] -> {self.result_label} (priority {self.priority})"


class RuleTable:
    """
    Ordered, immutable, validated sequence of rules.

    Declaration order is significant: it breaks ties between matching rules
    with equal priority.

    Example:
        table = RuleTable.from_config([
            {'new': 'prioridade:critico', 'old': ['sup:gravidade:não consegue contornar'], 'priority': 0},
        ])
        for rule in table:
            print(rule)
    """

    __slots__ = ('_rules',)

    def __init__(self, rules: Iterable[Rule]):
        """
        Initialize RuleTable.

        Raises:
            ConfigError: If the table is empty or any rule is invalid
        """
        rules = tuple(rules)
        self._validate(rules)
        object.__setattr__(self, '_rules', rules)

    def __setattr__(self, name, value):
        raise AttributeError("RuleTable is immutable")

    @staticmethod
    def _validate(rules: Tuple[Rule, ...]) -> None:
        if not rules:
            raise ConfigError("Rule table is empty")

        priorities: Dict[str, int] = {}
        for index, rule in enumerate(rules):
            if not isinstance(rule, Rule):
                raise ConfigError(f"Rule #{index} is not a Rule: {rule!r}")
            if not rule.result_label:
                raise ConfigError(f"Rule #{index} has an empty result label")
            if not rule.required_old_labels:
                raise ConfigError(f"Rule #{index} ({rule.result_label}) has no required old labels")

            seen = priorities.setdefault(rule.result_label, rule.priority)
            if seen != rule.priority:
                raise ConfigError(
                    f"Result label '{rule.result_label}' declared with conflicting "
                    f"priorities {seen} and {rule.priority}"
                )

    @classmethod
    def from_config(cls, entries: Optional[Sequence[Dict[str, Any]]]) -> 'RuleTable':
        """
        Build from the ``rules`` config section.

        Falls back to DEFAULT_RULES when the section is absent.
        """
        if entries is None:
            return cls(DEFAULT_RULES)
        if not isinstance(entries, (list, tuple)):
            raise ConfigError("'rules' must be a list")
        return cls(Rule.from_dict(entry) for entry in entries)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __getitem__(self, index: int) -> Rule:
        return self._rules[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, RuleTable):
            return NotImplemented
        return self._rules == other._rules

    def __hash__(self) -> int:
        return hash(self._rules)

    def __repr__(self) -> str:
        return f"RuleTable({len(self._rules)} rules)"

    def to_list(self) -> List[Dict[str, Any]]:
        return [rule.to_dict() for rule in self._rules]


def _rule(new: str, old: Sequence[str], priority: int) -> Rule:
    return Rule(result_label=new, required_old_labels=frozenset(old), priority=priority)


# Support triage labels consolidated into a single priority label
DEFAULT_RULES: Tuple[Rule, ...] = (
    _rule('prioridade:baixa', ['sup:frequencia:raramente', 'sup:gravidade:existem alternativas'], 3),
    _rule('prioridade:media', ['sup:frequencia:raramente', 'sup:gravidade:não consegue contornar'], 2),
    _rule('prioridade:media', ['sup:frequencia:ocasionalmente', 'sup:gravidade:existem alternativas'], 2),
    _rule('prioridade:bloqueante', ['sup:frequencia:sempre', 'sup:gravidade:não consegue contornar'], 1),
    _rule('prioridade:bloqueante', ['sup:acao imediata'], 1),
    _rule('prioridade:critico', ['sup:gravidade:não consegue contornar'], 0),
    _rule('prioridade:critico', ['sup:frequencia:ocasionalmente', 'sup:gravidade:não consegue contornar'], 0),
)
