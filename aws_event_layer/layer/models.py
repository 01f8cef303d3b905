"""
Type models for event layer operations.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any

from .constants import ATTR_CURSOR, ATTR_ITEM, ATTR_PK, ATTR_SK, ATTR_TTL, ATTR_TYPE, ATTR_VERSION

Item = dict[str, Any]


def as_int(value: Any, default: int = 0) -> int:
    """Coerce a DynamoDB number (Decimal) to int."""
    if value is None:
        return default
    return int(value)


class ChangeType(str, Enum):
    """Kinds of change a consumer can report."""

    PUT = "PUT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    @property
    def is_upsert(self) -> bool:
        return self is not ChangeType.DELETE


@dataclass
class ChangeEvent:
    """A change reported by a consumer, before it is buffered."""

    item: Item
    type: ChangeType = ChangeType.PUT

    def __post_init__(self) -> None:
        self.type = ChangeType(self.type)


@dataclass
class PendingEvent:
    """A buffered change, stored in the pending-event table until synced or expired."""

    cursor: int
    pk: str
    sk: str
    item: Item
    ttl: int
    type: ChangeType
    version: int | None = None

    def __post_init__(self) -> None:
        self.type = ChangeType(self.type)

    @property
    def item_version(self) -> int:
        """Version of the item itself, used to pick the winner when several events touch it."""
        return as_int(self.item.get(ATTR_VERSION))

    @property
    def merge_order(self) -> tuple[int, int, int]:
        """Item version, then cursor, then the store version of the event record."""
        return self.item_version, self.cursor, self.version or 0

    def to_item(self) -> Item:
        return {
            ATTR_CURSOR: self.cursor,
            ATTR_PK: self.pk,
            ATTR_SK: self.sk,
            ATTR_ITEM: self.item,
            ATTR_TTL: self.ttl,
            ATTR_TYPE: self.type.value,
        }

    @classmethod
    def from_item(cls, record: Mapping[str, Any]) -> "PendingEvent":
        version = record.get(ATTR_VERSION)
        return cls(
            cursor=as_int(record[ATTR_CURSOR]),
            pk=record[ATTR_PK],
            sk=record[ATTR_SK],
            item=dict(record[ATTR_ITEM]),
            ttl=as_int(record.get(ATTR_TTL)),
            type=ChangeType(record[ATTR_TYPE]),
            version=None if version is None else as_int(version),
        )


@dataclass
class LayerMeta:
    """Cursor and sync metrics for one logical table."""

    cursor: int = 0
    cursor_max: int = 0
    loaded: bool = False
    synced_last_total: int = 0
    synced_times: int = 0
    synced_total: int = 0
    unsynced_last_total: int = 0
    unsynced_total: int = 0

    @classmethod
    def from_item(cls, record: Mapping[str, Any], loaded: bool = True) -> "LayerMeta":
        """Build a meta view from a stored record, ignoring keys and bookkeeping."""
        counters = {
            f.name: as_int(record.get(f.name)) for f in fields(cls) if f.name != "loaded"
        }
        return cls(loaded=loaded, **counters)

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class MetaDelta:
    """Atomic change to apply to the meta record."""

    advance_cursor: int = 0
    synced_total: int = 0
    unsynced_total: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.advance_cursor or self.synced_total or self.unsynced_total)


@dataclass
class SyncResult:
    """Outcome of a sync or reset run."""

    count: int = 0
    locked: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"count": self.count, "locked": self.locked}


@dataclass
class TableIndex:
    """Secondary index description used for schema validation."""

    name: str
    partition: str
    partition_type: str
    sort: str | None = None
    sort_type: str | None = None


@dataclass
class TableSchema:
    """Primary key layout of a DynamoDB table."""

    partition: str
    sort: str | None = None
    indexes: list[TableIndex] = field(default_factory=list)


@dataclass
class QueryResult:
    """Items returned by a (possibly paginated) query or scan."""

    items: list[Item] = field(default_factory=list)
    count: int = 0
    last_key: dict[str, Any] | None = None
