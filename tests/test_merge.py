import pytest

from aws_event_layer.layer.core.merge_operations import latest_events, merge
from aws_event_layer.layer.models import ChangeType, PendingEvent


def unique_id(item: dict) -> str:
    return item["id"]


def event(
    item_id: str,
    version: int,
    change: ChangeType = ChangeType.PUT,
    cursor: int = 0,
    written_at: int | None = None,
    **fields,
):
    return PendingEvent(
        cursor=cursor,
        pk=f"table#{cursor}",
        sk=item_id,
        item={"id": item_id, "__ts": version, **fields},
        ttl=0,
        type=change,
        version=written_at,
    )


def values(items: list[dict]) -> dict[str, object]:
    return {item["id"]: item.get("v") for item in items}


class TestLatestEvents:
    def test_highest_item_version_wins(self):
        winners = latest_events([event("a", 2, v=2), event("a", 1, v=1)], unique_id)

        assert winners["a"].item["v"] == 2

    def test_item_version_beats_record_version(self):
        # The older item was written to the store last
        events = [event("a", 20, written_at=1, v="new"), event("a", 10, written_at=2, v="old")]

        assert latest_events(events, unique_id)["a"].item["v"] == "new"

    def test_item_version_beats_cursor(self):
        events = [event("a", 20, cursor=0, v="new"), event("a", 10, cursor=1, v="old")]

        assert latest_events(events, unique_id)["a"].item["v"] == "new"

    def test_cursor_breaks_version_ties(self):
        events = [event("a", 1, cursor=2, v="new"), event("a", 1, cursor=1, v="old")]

        winners = latest_events(events, unique_id)

        assert winners["a"].item["v"] == "new"

    def test_record_version_breaks_cursor_ties(self):
        events = [event("a", 1, written_at=5, v="second"), event("a", 1, written_at=4, v="first")]

        assert latest_events(events, unique_id)["a"].item["v"] == "second"

    def test_later_event_wins_full_tie(self):
        winners = latest_events([event("a", 1, v="first"), event("a", 1, v="second")], unique_id)

        assert winners["a"].item["v"] == "second"

    def test_items_without_version(self):
        first = PendingEvent(0, "table#0", "a", {"id": "a", "v": 1}, 0, ChangeType.PUT)
        second = PendingEvent(1, "table#1", "a", {"id": "a", "v": 2}, 0, ChangeType.PUT)

        assert latest_events([second, first], unique_id)["a"] is second


class TestMerge:
    def test_upserts_override_snapshot(self):
        snapshot = [{"id": "a", "v": 0}, {"id": "b", "v": 0}]
        events = [event("a", 1, ChangeType.UPDATE, v=1), event("c", 1, v=1)]

        assert values(merge(snapshot, events, unique_id)) == {"a": 1, "b": 0, "c": 1}

    def test_most_recent_wins_regardless_of_order(self):
        older = event("a", 1, v=1)
        newer = event("a", 2, v=2)

        assert merge([], [older, newer], unique_id) == [newer.item]
        assert merge([], [newer, older], unique_id) == [newer.item]

    def test_newer_delete_suppresses_older_put(self):
        events = [event("a", 2, ChangeType.DELETE), event("a", 1, v=1)]

        assert merge([], events, unique_id) == []

    def test_newer_put_resurrects_deleted_item(self):
        events = [event("a", 1, ChangeType.DELETE), event("a", 2, v=2)]

        assert values(merge([{"id": "a", "v": 0}], events, unique_id)) == {"a": 2}

    def test_delete_removes_snapshot_item(self):
        snapshot = [{"id": "a", "v": 99, "__ts": 1000}]

        assert merge(snapshot, [event("a", 1, ChangeType.DELETE)], unique_id) == []

    def test_delete_without_snapshot_item_is_noop(self):
        snapshot = [{"id": "b", "v": 0}]

        assert merge(snapshot, [event("a", 1, ChangeType.DELETE)], unique_id) == snapshot

    def test_no_events_returns_snapshot(self):
        snapshot = [{"id": "a"}, {"id": "b"}]

        assert merge(snapshot, [], unique_id) == snapshot

    @pytest.mark.parametrize(
        "events",
        [
            [],
            [event("a", 1, v=1)],
            [event("a", 2, ChangeType.DELETE), event("b", 1, v=1), event("b", 3, v=3)],
            [event("c", 1, v=1), event("c", 1, ChangeType.DELETE, cursor=1)],
        ],
    )
    def test_idempotent(self, events):
        snapshot = [{"id": "a", "v": 0}, {"id": "c", "v": 0}]
        once = merge(snapshot, events, unique_id)

        assert values(merge(once, events, unique_id)) == values(once)

    def test_cross_cursor_events(self):
        snapshot = [{"id": "a", "v": 0}, {"id": "b", "v": 0}]
        events = [
            event("a", 5, cursor=0, v=5),
            event("a", 3, cursor=1, v=3),
            event("b", 4, ChangeType.DELETE, cursor=0),
            event("b", 2, cursor=1, v=2),
        ]

        assert values(merge(snapshot, events, unique_id)) == {"a": 5}
