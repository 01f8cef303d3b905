"""
Merge pending events into a snapshot.
"""

from collections.abc import Callable, Iterable

from ..models import Item, PendingEvent


def latest_events(
    pending_events: Iterable[PendingEvent], unique_id: Callable[[Item], str]
) -> dict[str, PendingEvent]:
    """
    Keep only the most recent event per item.

    Args:
        pending_events: Events from any number of cursor generations
        unique_id: Unique identifier of an item

    Returns:
        Winning event per unique identifier (highest item version, then
        highest cursor, then the most recently written event)
    """
    winners: dict[str, PendingEvent] = {}

    for event in pending_events:
        key = unique_id(event.item)
        current = winners.get(key)
        if current is None or event.merge_order >= current.merge_order:
            winners[key] = event

    return winners


def merge(
    snapshot: Iterable[Item],
    pending_events: Iterable[PendingEvent],
    unique_id: Callable[[Item], str],
) -> list[Item]:
    """
    Fold pending events into a snapshot.

    The most recent event per item wins, so the order events arrive in does
    not matter. Deleted items are dropped even if only the snapshot has them.

    Args:
        snapshot: Last synced items of a partition
        pending_events: Unsynced events for that partition
        unique_id: Unique identifier of an item

    Returns:
        Merged items, snapshot order first, new items after
    """
    winners = latest_events(pending_events, unique_id)
    deleted = {key for key, event in winners.items() if not event.type.is_upsert}

    merged = {unique_id(item): item for item in snapshot}
    merged.update({key: event.item for key, event in winners.items() if event.type.is_upsert})

    for key in deleted:
        merged.pop(key, None)

    return list(merged.values())
