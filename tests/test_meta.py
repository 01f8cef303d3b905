import pytest

from aws_event_layer.layer.core.meta_operations import (
    CURSOR_CONDITION,
    MetaCache,
    build_meta_update,
    delete_meta,
    load_meta,
    meta_key,
    update_meta,
)
from aws_event_layer.layer.exceptions import ValidationError
from aws_event_layer.layer.models import LayerMeta, MetaDelta

TABLE = "table-1"


class TestBuildMetaUpdate:
    def test_advance_cursor(self):
        update = build_meta_update(MetaDelta(advance_cursor=1))

        assert update["update_expression"] == "ADD #cursor :cursor, #cursor_max :cursor_max"
        assert update["condition_expression"] == CURSOR_CONDITION
        assert update["expression_attribute_values"] == {
            ":cursor": 1,
            ":negative": -1,
            ":positive": 1,
            ":cursor_max": 1,
        }

    def test_rollback_cursor_leaves_cursor_max(self):
        update = build_meta_update(MetaDelta(advance_cursor=-1))

        assert update["update_expression"] == "ADD #cursor :cursor"
        assert "#cursor_max" not in update["expression_attribute_names"]

    def test_synced_total(self):
        update = build_meta_update(MetaDelta(synced_total=7))

        assert update["update_expression"] == (
            "SET #synced_last_total = :synced_total, #unsynced_last_total = :unsynced_total, "
            "#unsynced_total = :unsynced_total "
            "ADD #synced_times :synced_times, #synced_total :synced_total"
        )
        assert update["expression_attribute_values"][":unsynced_total"] == 0
        assert update["condition_expression"] is None

    def test_unsynced_total(self):
        update = build_meta_update(MetaDelta(unsynced_total=3))

        assert update["update_expression"] == (
            "SET #unsynced_last_total = :unsynced_total ADD #unsynced_total :unsynced_total"
        )

    def test_empty_delta(self):
        update = build_meta_update(MetaDelta())

        assert update["update_expression"] == ""
        assert update["expression_attribute_names"] == {}
        assert update["expression_attribute_values"] == {}


class TestUpdateMeta:
    def test_rejects_both_totals(self, client):
        with pytest.raises(ValidationError, match="Cannot set both"):
            update_meta(client, TABLE, MetaDelta(synced_total=1, unsynced_total=1))

    @pytest.mark.parametrize("delta", [MetaDelta(advance_cursor=2), MetaDelta(unsynced_total=-1)])
    def test_rejects_malformed_delta(self, client, delta):
        with pytest.raises(ValidationError):
            update_meta(client, TABLE, delta)

    def test_missing_record_reads_as_defaults(self, client):
        meta = load_meta(client, TABLE)

        assert meta == LayerMeta()
        assert meta.loaded is False

    def test_touch_creates_record(self, client):
        meta = update_meta(client, TABLE, MetaDelta())

        assert meta is not None
        assert meta.loaded is True
        assert meta.cursor == 0
        assert client.get_item(meta_key(TABLE)) is not None

    def test_counters(self, client):
        update_meta(client, TABLE, MetaDelta(unsynced_total=3))
        update_meta(client, TABLE, MetaDelta(unsynced_total=2))
        meta = load_meta(client, TABLE)

        assert meta.unsynced_total == 5
        assert meta.unsynced_last_total == 2

        meta = update_meta(client, TABLE, MetaDelta(synced_total=5))

        assert meta.synced_total == 5
        assert meta.synced_last_total == 5
        assert meta.synced_times == 1
        assert meta.unsynced_total == 0
        assert meta.unsynced_last_total == 0

    def test_cursor_never_negative_and_max_only_grows(self, client):
        steps = [1, 1, -1, -1, -1, 1, -1, -1]
        high_water = 0

        for step in steps:
            update_meta(client, TABLE, MetaDelta(advance_cursor=step))
            meta = load_meta(client, TABLE)

            assert meta.cursor >= 0
            assert meta.cursor_max >= high_water
            assert meta.cursor <= meta.cursor_max
            high_water = meta.cursor_max

        assert meta.cursor == 0
        assert meta.cursor_max == 3

    def test_decrement_below_zero_is_ignored(self, client):
        assert update_meta(client, TABLE, MetaDelta(advance_cursor=-1)) is None
        assert load_meta(client, TABLE).cursor == 0

    def test_strips_bookkeeping(self, client):
        meta = update_meta(client, TABLE, MetaDelta(advance_cursor=1))

        assert set(meta.to_dict()) == {
            "cursor",
            "cursor_max",
            "loaded",
            "synced_last_total",
            "synced_times",
            "synced_total",
            "unsynced_last_total",
            "unsynced_total",
        }

    def test_delete_meta(self, client):
        update_meta(client, TABLE, MetaDelta(advance_cursor=1))
        delete_meta(client, TABLE)

        assert load_meta(client, TABLE) == LayerMeta()


class TestMetaCache:
    def test_store_and_invalidate(self):
        cache = MetaCache()
        assert not cache.loaded

        cache.store(LayerMeta(cursor=2, cursor_max=2, loaded=True))

        assert cache.loaded
        assert cache.get().cursor == 2

        cache.invalidate()

        assert not cache.loaded
        assert cache.get() == LayerMeta()

    def test_returns_copies(self):
        cache = MetaCache()
        cache.store(LayerMeta(cursor=1, loaded=True))

        cache.get().cursor = 10

        assert cache.get().cursor == 1
