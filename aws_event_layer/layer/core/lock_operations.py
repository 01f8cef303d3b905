"""
Lease lock operations for the event layer.

A single lease record per logical table serializes sync and reset across
processes. A lease older than its TTL is considered abandoned and may be
taken over by the next acquirer.
"""

from typing import Any

from boto3.dynamodb.conditions import Attr

from ..constants import ATTR_PK, ATTR_SK, ATTR_TIMESTAMP, ATTR_TTL, DEFAULT_LEASE_TTL, SK_LOCK
from ..exceptions import ConditionFailedError
from ..logging_config import get_logger
from ..utils import lease_key, now_ms
from .client import DynamoDBClient

logger = get_logger(__name__)


def lock_key(table: str) -> dict[str, str]:
    """Key of the lease record for a logical table."""
    return {ATTR_PK: lease_key(table), ATTR_SK: SK_LOCK}


def acquire_lock(client: DynamoDBClient, table: str, ttl: int = DEFAULT_LEASE_TTL) -> bool:
    """
    Acquire the lease for a logical table.

    Args:
        client: DynamoDB client
        table: Logical table name
        ttl: Lease TTL in seconds; older leases may be stolen

    Returns:
        True if acquired, False if a live lease is held by someone else
    """
    timestamp = now_ms()
    expired_before = timestamp - ttl * 1000

    item = {
        **lock_key(table),
        ATTR_TIMESTAMP: timestamp,
        ATTR_TTL: timestamp // 1000 + ttl,
    }

    # Allow acquisition if:
    # 1. Lease doesn't exist
    # 2. Lease is older than its TTL
    condition = Attr(ATTR_PK).not_exists() | Attr(ATTR_TIMESTAMP).lt(expired_before)

    try:
        client.put_item(item, condition_expression=condition)
    except ConditionFailedError:
        logger.info(f"Lease for '{table}' is held by another process")
        return False

    logger.debug(f"Lease for '{table}' acquired")
    return True


def release_lock(client: DynamoDBClient, table: str) -> bool:
    """
    Release the lease for a logical table. This operation is idempotent.

    Args:
        client: DynamoDB client
        table: Logical table name

    Returns:
        Always True
    """
    client.delete_item(lock_key(table))
    logger.debug(f"Lease for '{table}' released")
    return True


def check_lock(client: DynamoDBClient, table: str) -> dict[str, Any] | None:
    """
    Check if the lease is held.

    Args:
        client: DynamoDB client
        table: Logical table name

    Returns:
        Lease information if held, None if free
    """
    item = client.get_item(lock_key(table), consistent_read=True)

    if not item:
        return None

    return {
        "table": table,
        "acquired_at": int(item[ATTR_TIMESTAMP]),
        "ttl": int(item.get(ATTR_TTL, 0)),
    }
