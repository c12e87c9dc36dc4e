"""
Timeline replay for labelfixer.

Folds an issue's ordered label events into the set of labels applied at
the end of the timeline. Pure and deterministic: the same timeline always
yields the same label set.
"""

from typing import Iterable, Optional

from .domain.event import EventKind, LabelEvent, LabelSet
from .exit_codes import ReplayError


def replay(timeline: Iterable[LabelEvent], issue_number: Optional[int] = None) -> LabelSet:
    """
    Replay label events into the current label set.

    ``labeled`` sets (or overwrites) the label's metadata; ``unlabeled``
    drops the label if present. Removing an unknown label is a no-op.

    Args:
        timeline: Label events in source order
        issue_number: Owning issue, attached to any ReplayError

    Returns:
        Mapping of label name to last-seen label metadata

    Raises:
        ReplayError: If an entry is unreadable, has no label name, or
            has an order lower than the event before it
    """
    labels: LabelSet = {}
    last_order = None

    for event in timeline:
        if event.kind is EventKind.MALFORMED:
            raise ReplayError(
                f"Unreadable timeline entry at position {event.order}: {event.label.get('raw', '?')}",
                issue_number,
            )
        if not event.label_name:
            raise ReplayError(
                f"{event.kind.value} event at position {event.order} has no label name",
                issue_number,
            )
        if not isinstance(event.order, int) or isinstance(event.order, bool):
            raise ReplayError(f"Event '{event.label_name}' has a non-integer order", issue_number)
        if last_order is not None and event.order < last_order:
            raise ReplayError(
                f"Event '{event.label_name}' at position {event.order} comes after position {last_order}",
                issue_number,
            )
        last_order = event.order

        if event.kind is EventKind.LABELED:
            labels[event.label_name] = dict(event.label)
        elif event.kind is EventKind.UNLABELED:
            labels.pop(event.label_name, None)
        else:
            raise ReplayError(f"Unknown event kind {event.kind!r}", issue_number)

    return labels
