"""
Event layer: buffers item changes in DynamoDB and folds them into an
external snapshot store.

Changes are written as pending events stamped with the current cursor
generation. Reads merge the last synced snapshot with every pending
generation. A sync retires the oldest generation by folding its events into
the snapshot store; a reset rebuilds every snapshot from a source table.
"""

import time
from collections.abc import Callable, Sequence
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any

from boto3.dynamodb.conditions import Attr

from ..constants import (
    ATTR_CURSOR,
    ATTR_PK,
    ATTR_SK,
    ATTR_VERSION,
    DEFAULT_EVENT_TTL,
    DEFAULT_LEASE_TTL,
    DEFAULT_QUERY_CONCURRENCY,
    PARTITION_SEPARATOR,
)
from ..exceptions import ConfigurationError, ValidationError
from ..logging_config import get_logger
from ..models import ChangeEvent, Item, LayerMeta, MetaDelta, PendingEvent, SyncResult, as_int
from ..utils import resolve_partition, strip_cursor
from .client import DynamoDBClient
from .lock_operations import acquire_lock, release_lock
from .merge_operations import merge
from .meta_operations import MetaCache, delete_meta, load_meta, update_meta
from .pending_operations import query_generation, query_partition

logger = get_logger(__name__)

Getter = Callable[[str], list[Item]]
Setter = Callable[[str, list[Item]], Any]


class Layer:
    """Event-sourcing cache layer for one logical table."""

    def __init__(
        self,
        client: DynamoDBClient,
        table: str,
        getter: Getter,
        setter: Setter,
        get_item_unique_identifier: Callable[[Item], str],
        get_item_partition: Callable[[Item], str] | None = None,
        ttl: int | Callable[[Item], int] = DEFAULT_EVENT_TTL,
        lease_ttl: int = DEFAULT_LEASE_TTL,
        sync_strategy: Callable[[LayerMeta], bool] | None = None,
        background_runner: Executor | None = None,
        query_concurrency: int = DEFAULT_QUERY_CONCURRENCY,
    ):
        """
        Initialize the layer.

        Args:
            client: Client of the pending-event table
            table: Logical table name, prefixes every partition key
            getter: Loads the snapshot of a logical partition
            setter: Saves the snapshot of a logical partition
            get_item_unique_identifier: Unique identifier of an item
            get_item_partition: Sub-partition of an item (default: none)
            ttl: Pending event lifetime in seconds, or a function of the item
            lease_ttl: Seconds after which a held lease may be stolen
            sync_strategy: Decides after each write whether to sync
            background_runner: Executor used to run triggered syncs
            query_concurrency: Max generations queried in parallel by get

        Raises:
            ConfigurationError: If the table schema cannot back a layer
        """
        self.client = client
        self.table = table
        self.getter = getter
        self.setter = setter
        self.get_item_unique_identifier = get_item_unique_identifier
        self.get_item_partition = get_item_partition or (lambda item: "")
        self.lease_ttl = lease_ttl
        self.sync_strategy = sync_strategy
        self.background_runner = background_runner
        self.query_concurrency = max(1, query_concurrency)
        self.cursor_index = self._validate_schema(client)
        self._meta_cache = MetaCache()

        if callable(ttl):
            self.ttl = ttl
        else:

            def fixed_ttl(item: Item) -> int:
                return ttl

            self.ttl = fixed_ttl

    @staticmethod
    def _validate_schema(client: DynamoDBClient) -> str:
        schema = client.schema

        if schema.partition != ATTR_PK:
            raise ConfigurationError(f"DynamoDB schema partition key must be {ATTR_PK}")
        if schema.sort != ATTR_SK:
            raise ConfigurationError(f"DynamoDB schema sort key must be {ATTR_SK}")

        for index in schema.indexes:
            if (
                index.partition == ATTR_CURSOR
                and index.partition_type == "N"
                and index.sort == ATTR_PK
                and index.sort_type == "S"
            ):
                return index.name

        raise ConfigurationError(
            f"DynamoDB schema must have a GSI with {ATTR_CURSOR} (N) as partition key "
            f"and {ATTR_PK} (S) as sort key"
        )

    def resolve_partition(self, cursor: int | None, partition: str | None = None) -> str:
        """Physical partition key of a sub-partition at a cursor generation."""
        return resolve_partition(self.table, cursor, partition)

    def acquire_lock(self, lock: bool) -> bool:
        """Acquire (lock=True) or release (lock=False) the lease of this table."""
        if lock:
            return acquire_lock(self.client, self.table, self.lease_ttl)
        return release_lock(self.client, self.table)

    def meta(self, delta: MetaDelta | None = None) -> LayerMeta:
        """
        Read or update the meta record.

        Without a delta the cached copy is returned once it has been loaded.
        With a delta the change is applied atomically and the cache refreshed.
        A decrement that would take the cursor below zero is ignored and the
        cached copy is returned (read from the store if nothing is cached).

        Args:
            delta: Optional change to apply

        Returns:
            Current meta

        Raises:
            ValidationError: If the delta sets both synced and unsynced totals
        """
        if delta is None:
            if self._meta_cache.loaded:
                return self._meta_cache.get()
            return self._load_meta()

        updated = update_meta(self.client, self.table, delta)
        if updated is None:
            if self._meta_cache.loaded:
                return self._meta_cache.get()
            return self._load_meta()

        return self._meta_cache.store(updated)

    def _load_meta(self) -> LayerMeta:
        meta = load_meta(self.client, self.table)
        if meta.loaded:
            return self._meta_cache.store(meta)
        return meta

    def reset_meta(self) -> None:
        """Delete the meta record and forget the cached copy."""
        delete_meta(self.client, self.table)
        self._meta_cache.invalidate()

    def merge(self, snapshot: Sequence[Item], pending_events: Sequence[PendingEvent]) -> list[Item]:
        """Fold pending events into a snapshot."""
        return merge(snapshot, pending_events, self.get_item_unique_identifier)

    def set(self, events: Sequence[ChangeEvent], cursor: int | None = None) -> list[PendingEvent]:
        """
        Buffer item changes as pending events.

        Args:
            events: Changes to buffer
            cursor: Generation to write to (default: current cursor)

        Returns:
            Persisted pending events

        Raises:
            ValidationError: If an item has no unique identifier
        """
        if not events:
            return []

        if cursor is None:
            cursor = self.meta().cursor

        now = int(time.time())
        pending_events = []

        for event in events:
            sk = self.get_item_unique_identifier(event.item)

            if not sk:
                raise ValidationError("Item must have an unique identifier")

            pending_events.append(
                PendingEvent(
                    cursor=cursor,
                    pk=self.resolve_partition(cursor, self.get_item_partition(event.item)),
                    sk=sk,
                    item=event.item,
                    ttl=now + self.ttl(event.item),
                    type=event.type,
                )
            )

        records = self.client.batch_write([event.to_item() for event in pending_events])
        logger.debug(f"Buffered {len(records)} events for '{self.table}' at cursor {cursor}")

        meta = self.meta(MetaDelta(unsynced_total=len(records)))

        if self.sync_strategy is not None and self.sync_strategy(meta):
            if self.background_runner is not None:
                future = self.background_runner.submit(self.sync)
                future.add_done_callback(self._log_background_sync)
            else:
                self.sync()

        return [PendingEvent.from_item(record) for record in records]

    def _log_background_sync(self, future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.error(f"Background sync of '{self.table}' failed: {error}")

    def get(self, partition: str | None = None, sort: bool = True) -> list[Item]:
        """
        Read the current items of a sub-partition.

        Args:
            partition: Sub-partition (default: the whole logical table)
            sort: Order by unique identifier, then version

        Returns:
            Snapshot items with every pending generation applied
        """
        meta = self.meta()
        generations = list(range(meta.cursor, meta.cursor_max + 1))

        with ThreadPoolExecutor(
            max_workers=max(1, min(self.query_concurrency, len(generations)))
        ) as executor:
            pages = executor.map(
                lambda cursor: self._pending_events(cursor, partition), generations
            )
            pending_events = [event for page in pages for event in page]

        logical = strip_cursor(self.resolve_partition(meta.cursor, partition), meta.cursor)
        items = self.merge(self.getter(logical), pending_events)

        if sort:
            return sorted(
                items,
                key=lambda item: (
                    self.get_item_unique_identifier(item),
                    as_int(item.get(ATTR_VERSION)),
                ),
            )

        return items

    def _pending_events(self, cursor: int, partition: str | None) -> list[PendingEvent]:
        pk = self.resolve_partition(cursor, partition)
        result = query_partition(self.client, pk)
        return [PendingEvent.from_item(record) for record in result.items]

    def sync(self) -> SyncResult:
        """
        Fold the oldest pending generation into the snapshot store.

        The cursor is advanced before draining so concurrent writes land in a
        fresh generation. If any snapshot fails to load or save the cursor is
        moved back, the drained events are kept and the error is re-raised.

        Returns:
            Number of events folded; locked=True if another process holds the lease
        """
        if not self.acquire_lock(True):
            return SyncResult(count=0, locked=True)

        try:
            # Another process may have synced since this cache was filled
            self._meta_cache.invalidate()
            cursor = self.meta().cursor
            self.meta(MetaDelta(advance_cursor=1))
            logger.info(f"Syncing '{self.table}' cursor {cursor}")

            try:
                count = self._fold_generation(cursor)
            except Exception as e:
                logger.warning(f"Sync of '{self.table}' cursor {cursor} failed, rolling back: {e}")
                self.meta(MetaDelta(advance_cursor=-1))
                raise

            self.meta(MetaDelta(synced_total=count))
            logger.info(f"Synced {count} events of '{self.table}' cursor {cursor}")
            return SyncResult(count=count, locked=False)
        finally:
            self.acquire_lock(False)

    def _fold_generation(self, cursor: int) -> int:
        groups: dict[str, list[PendingEvent]] = {}

        def collect(page: list[Item]) -> None:
            for record in page:
                event = PendingEvent.from_item(record)
                groups.setdefault(event.pk, []).append(event)

        result = query_generation(
            self.client, self.table, cursor, index_name=self.cursor_index, on_chunk=collect
        )

        for pk, events in groups.items():
            logical = strip_cursor(pk, cursor)
            self.setter(logical, self.merge(self.getter(logical), events))

        # Snapshots are saved, the retired generation is no longer needed
        self.client.batch_delete(result.items)
        return result.count

    def reset(self, source: DynamoDBClient, partition: str | None = None) -> SyncResult:
        """
        Rebuild snapshots from a source table.

        Pending events and the meta record in scope are wiped, then every
        source item is grouped by sub-partition and saved as a fresh snapshot.

        Args:
            source: Client of the authoritative source table
            partition: Only rebuild this sub-partition (default: everything)

        Returns:
            Number of source items scanned; locked=True if another process holds the lease
        """
        if not self.acquire_lock(True):
            return SyncResult(count=0, locked=True)

        try:
            scope = self.resolve_partition(None, partition) + PARTITION_SEPARATOR
            logger.info(f"Resetting '{self.table}' (scope '{scope}')")

            self.client.scan(
                filter_expression=Attr(ATTR_PK).begins_with(scope),
                on_chunk=self.client.batch_delete,
            )
            self.reset_meta()

            groups: dict[str, list[Item]] = {}
            scoped = (partition or "").strip()

            def collect(page: list[Item]) -> None:
                for item in page:
                    item_partition = self.get_item_partition(item)
                    if scoped and (item_partition or "").strip() != scoped:
                        continue
                    groups.setdefault(self.resolve_partition(0, item_partition), []).append(item)

            result = source.scan(on_chunk=collect)

            for pk, items in groups.items():
                self.setter(strip_cursor(pk, 0), items)

            logger.info(f"Reset '{self.table}' from {result.count} source items")
            return SyncResult(count=result.count, locked=False)
        finally:
            self.acquire_lock(False)
