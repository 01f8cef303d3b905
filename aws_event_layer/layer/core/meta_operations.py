"""
Meta record operations for the event layer.

The meta record holds the cursor range and sync counters of one logical
table. All changes are applied with a single atomic UpdateItem.
"""

import threading
from dataclasses import replace
from typing import Any

from ..constants import ATTR_PK, ATTR_SK, SK_META
from ..exceptions import ConditionFailedError, ValidationError
from ..expressions import concat_update_expression
from ..logging_config import get_logger
from ..models import LayerMeta, MetaDelta
from ..utils import lease_key
from .client import DynamoDBClient

logger = get_logger(__name__)

CURSOR_CONDITION = "(:cursor = :negative AND #cursor >= :positive) OR :cursor = :positive"


class MetaCache:
    """Process-local copy of a meta record."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._meta = LayerMeta()

    @property
    def loaded(self) -> bool:
        return self._meta.loaded

    def get(self) -> LayerMeta:
        with self._lock:
            return replace(self._meta)

    def store(self, meta: LayerMeta) -> LayerMeta:
        with self._lock:
            self._meta = replace(meta)
            return replace(meta)

    def invalidate(self) -> None:
        with self._lock:
            self._meta = LayerMeta()


def meta_key(table: str) -> dict[str, str]:
    """Key of the meta record for a logical table."""
    return {ATTR_PK: lease_key(table), ATTR_SK: SK_META}


def validate_delta(delta: MetaDelta) -> None:
    """
    Reject deltas the meta record cannot apply.

    Raises:
        ValidationError: If the delta is malformed
    """
    if delta.synced_total > 0 and delta.unsynced_total > 0:
        raise ValidationError("Cannot set both synced_total and unsynced_total at the same time")
    if delta.advance_cursor not in (-1, 0, 1):
        raise ValidationError("advance_cursor must be -1, 0 or 1")
    if delta.synced_total < 0 or delta.unsynced_total < 0:
        raise ValidationError("Totals cannot be negative")


def build_meta_update(delta: MetaDelta) -> dict[str, Any]:
    """
    Build the UpdateItem arguments for a meta delta.

    Args:
        delta: Validated meta delta

    Returns:
        Keyword arguments for DynamoDBClient.update_item (without the key)
    """
    names: dict[str, str] = {}
    values: dict[str, Any] = {}
    set_clauses: list[str] = []
    add_clauses: list[str] = []
    condition = ""

    if delta.synced_total > 0:
        names.update(
            {
                "#synced_last_total": "synced_last_total",
                "#synced_times": "synced_times",
                "#synced_total": "synced_total",
                "#unsynced_last_total": "unsynced_last_total",
                "#unsynced_total": "unsynced_total",
            }
        )
        values.update(
            {":synced_times": 1, ":synced_total": delta.synced_total, ":unsynced_total": 0}
        )
        set_clauses += [
            "#synced_last_total = :synced_total",
            "#unsynced_last_total = :unsynced_total",
            "#unsynced_total = :unsynced_total",
        ]
        add_clauses += ["#synced_times :synced_times", "#synced_total :synced_total"]

    if delta.unsynced_total > 0:
        names.update(
            {"#unsynced_last_total": "unsynced_last_total", "#unsynced_total": "unsynced_total"}
        )
        values[":unsynced_total"] = delta.unsynced_total
        set_clauses.append("#unsynced_last_total = :unsynced_total")
        add_clauses.append("#unsynced_total :unsynced_total")

    if delta.advance_cursor:
        names["#cursor"] = "cursor"
        values.update({":cursor": delta.advance_cursor, ":negative": -1, ":positive": 1})
        add_clauses.insert(0, "#cursor :cursor")
        # cursor_max only ever grows
        if delta.advance_cursor > 0:
            names["#cursor_max"] = "cursor_max"
            values[":cursor_max"] = 1
            add_clauses.insert(1, "#cursor_max :cursor_max")
        condition = CURSOR_CONDITION

    update_expression = concat_update_expression(
        f"SET {', '.join(set_clauses)}" if set_clauses else "",
        f"ADD {', '.join(add_clauses)}" if add_clauses else "",
    )

    return {
        "update_expression": update_expression,
        "expression_attribute_names": names,
        "expression_attribute_values": values,
        "condition_expression": condition or None,
    }


def load_meta(client: DynamoDBClient, table: str) -> LayerMeta:
    """
    Read the meta record with a consistent read.

    Args:
        client: DynamoDB client
        table: Logical table name

    Returns:
        Stored meta (loaded=True), or zero-value defaults (loaded=False) if absent
    """
    record = client.get_item(meta_key(table), consistent_read=True)

    if record is None:
        return LayerMeta()

    return LayerMeta.from_item(record)


def update_meta(client: DynamoDBClient, table: str, delta: MetaDelta) -> LayerMeta | None:
    """
    Atomically apply a delta to the meta record, creating it if needed.

    Args:
        client: DynamoDB client
        table: Logical table name
        delta: Change to apply

    Returns:
        Updated meta, or None if the cursor would have dropped below zero

    Raises:
        ValidationError: If the delta is malformed
    """
    validate_delta(delta)

    try:
        record = client.update_item(meta_key(table), upsert=True, **build_meta_update(delta))
    except ConditionFailedError:
        logger.info(f"Cursor of '{table}' is already at zero, decrement ignored")
        return None

    return LayerMeta.from_item(record)


def delete_meta(client: DynamoDBClient, table: str) -> None:
    """Delete the meta record so the next read yields defaults."""
    client.delete_item(meta_key(table))
