"""
Utility functions for event layer operations.
"""

import json
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from .constants import PARTITION_SEPARATOR


def resolve_partition(table: str, cursor: int | None = None, partition: str | None = None) -> str:
    """
    Build a physical partition key.

    Args:
        table: Logical table name
        cursor: Cursor generation (omitted from the key when None)
        partition: Optional sub-partition, whitespace is trimmed

    Returns:
        Non-empty segments joined with '#' (e.g., 'users#pk-0#3')
    """
    segments = [table, (partition or "").strip(), "" if cursor is None else str(cursor)]
    return PARTITION_SEPARATOR.join(segment for segment in segments if segment)


def strip_cursor(pk: str, cursor: int) -> str:
    """
    Remove the cursor suffix from a physical partition key.

    Args:
        pk: Physical partition key
        cursor: Cursor generation encoded in the key

    Returns:
        Logical partition key used by the snapshot store
    """
    suffix = f"{PARTITION_SEPARATOR}{cursor}"
    if pk.endswith(suffix):
        return pk[: -len(suffix)]
    return pk


def lease_key(table: str) -> str:
    """Partition key of the meta and lease records for a logical table."""
    return f"__{table}__"


def now_ms() -> int:
    """Current epoch time in milliseconds."""
    return int(time.time() * 1000)


def now_iso() -> str:
    """Current UTC time as ISO-8601."""
    return datetime.now(timezone.utc).isoformat()


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, set):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def output_json(data: Any, quiet: bool = False) -> None:
    """
    Output JSON to stdout.

    Args:
        data: Data to output as JSON
        quiet: If True, suppress output
    """
    if not quiet:
        print(json.dumps(data, default=_json_default))


def output_text(message: str, quiet: bool = False) -> None:
    """
    Output text to stdout.

    Args:
        message: Message to output
        quiet: If True, suppress output
    """
    if not quiet:
        print(message)


def error_json(error: str, solution: str, exit_code: int) -> str:
    """
    Format error as a JSON string.

    Args:
        error: Error message
        solution: Solution suggestion
        exit_code: Exit code

    Returns:
        Serialized error payload
    """
    return json.dumps({"error": error, "solution": solution, "exit_code": exit_code})


def error_text(error: str, solution: str) -> str:
    """
    Format error as human-readable text.

    Args:
        error: Error message
        solution: Solution suggestion

    Returns:
        Formatted error message
    """
    return f"Error: {error}\n\nSolution: {solution}"


def validate_table_name(table_name: str) -> bool:
    """
    Validate DynamoDB table name.

    Args:
        table_name: Table name to validate

    Returns:
        True if valid

    Raises:
        ValueError: If table name is invalid
    """
    if not table_name:
        raise ValueError("Table name cannot be empty")
    if len(table_name) < 3 or len(table_name) > 255:
        raise ValueError("Table name must be between 3 and 255 characters")
    if not all(c.isalnum() or c in "-_." for c in table_name):
        raise ValueError(
            "Table name can only contain alphanumeric characters, hyphens, underscores, and periods"
        )
    return True
