"""
Label event and issue domain objects for labelfixer.

A timeline is the ordered list of label events GitHub reports for an issue:
- labeled: a label was applied
- unlabeled: a label was removed

Other timeline entries (commented, closed, referenced, ...) carry no label
information and are dropped when parsing. Ordering is the position in the
source timeline; timestamps are never compared.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

# Label name -> last-seen label metadata (name, color, ...)
LabelSet = Dict[str, Dict[str, Any]]


class EventKind(Enum):
    """Kind of label event."""
    LABELED = "labeled"
    UNLABELED = "unlabeled"
    MALFORMED = "malformed"     # Unreadable timeline entry, rejected on replay


LABEL_EVENT_KINDS = tuple(kind.value for kind in EventKind)


@dataclass(frozen=True)
class LabelEvent:
    """
    A single label add/remove event from an issue timeline.

    Attributes:
        kind: Whether the label was applied or removed
        label_name: Name of the label (None when the source omitted it)
        order: Sequence position in the source timeline
        label: Label metadata as reported by the source
    """

    kind: EventKind
    label_name: Optional[str]
    order: int
    label: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_api_response(cls, data: Dict[str, Any], order: int) -> Optional['LabelEvent']:
        """
        Create from a raw timeline entry.

        Returns None for entries that are not label events. Label events with
        a missing or malformed label are kept with ``label_name=None`` so the
        replayer can report them for the owning issue.
        """
        kind = data.get('event')
        if kind not in LABEL_EVENT_KINDS:
            return None

        label = data.get('label')
        if not isinstance(label, dict):
            label = {}
        name = label.get('name')

        return cls(
            kind=EventKind(kind),
            label_name=name if isinstance(name, str) and name else None,
            order=data.get('order', order),
            label=dict(label),
        )

    @classmethod
    def malformed(cls, raw: Any, order: int) -> 'LabelEvent':
        """Placeholder for a timeline entry that could not be read."""
        return cls(EventKind.MALFORMED, None, order, {'raw': repr(raw)[:200]})

    @classmethod
    def labeled(cls, name: str, order: int, **metadata: Any) -> 'LabelEvent':
        """Shortcut for a labeled event."""
        return cls(EventKind.LABELED, name, order, {'name': name, **metadata})

    @classmethod
    def unlabeled(cls, name: str, order: int, **metadata: Any) -> 'LabelEvent':
        """Shortcut for an unlabeled event."""
        return cls(EventKind.UNLABELED, name, order, {'name': name, **metadata})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        label = dict(self.label)
        if self.label_name is not None:
            label['name'] = self.label_name
        return {
            'event': self.kind.value,
            'label': label,
            'order': self.order,
        }


def parse_timeline(raw_events: Any) -> Tuple[LabelEvent, ...]:
    """
    Parse raw timeline entries into label events.

    The position of each entry in the raw timeline becomes its order, so
    orders stay comparable even after non-label entries are dropped.
    Entries that are not objects, or a timeline that is not a list, become
    MALFORMED events so the owning issue fails on replay instead of
    silently losing label history.
    """
    if raw_events is None:
        return ()
    if not isinstance(raw_events, (list, tuple)):
        return (LabelEvent.malformed(raw_events, 0),)

    events: List[LabelEvent] = []
    for position, data in enumerate(raw_events):
        if not isinstance(data, dict):
            events.append(LabelEvent.malformed(data, position))
            continue
        event = LabelEvent.from_api_response(data, position)
        if event is not None:
            events.append(event)
    return tuple(events)


@dataclass(frozen=True)
class Issue:
    """
    A closed issue with its label timeline.

    Attributes:
        number: Issue number in the repository
        title: Issue title (informational)
        timeline: Label events in source order
    """

    number: int
    title: str = ""
    timeline: Tuple[LabelEvent, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Issue':
        """
        Create from a snapshot entry.

        Accepts both the snapshot format written by ``to_dict`` and raw
        GitHub issue payloads with a ``timeline`` list attached.
        """
        return cls(
            number=int(data['number']),
            title=data.get('title') or "",
            timeline=parse_timeline(data.get('timeline')),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'number': self.number,
            'title': self.title,
            'timeline': [event.to_dict() for event in self.timeline],
        }

    def __str__(self) -> str:
        return f"#{self.number} {self.title}".rstrip()
