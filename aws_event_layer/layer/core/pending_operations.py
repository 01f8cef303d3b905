"""
Pending event queries for the event layer.
"""

from boto3.dynamodb.conditions import Key

from ..constants import ATTR_CURSOR, ATTR_PK, CURSOR_INDEX_NAME, PARTITION_SEPARATOR
from ..models import QueryResult
from .client import ChunkHandler, DynamoDBClient


def query_partition(client: DynamoDBClient, pk: str) -> QueryResult:
    """
    Fetch every pending event stored under one physical partition key.

    Args:
        client: Client of the pending-event table
        pk: Physical partition key (table, sub-partition and cursor)

    Returns:
        All events of the partition
    """
    return client.query(Key(ATTR_PK).eq(pk))


def query_generation(
    client: DynamoDBClient,
    table: str,
    cursor: int,
    index_name: str = CURSOR_INDEX_NAME,
    on_chunk: ChunkHandler | None = None,
) -> QueryResult:
    """
    Fetch every pending event of a logical table at one cursor generation.

    Args:
        client: Client of the pending-event table
        table: Logical table name
        cursor: Cursor generation
        index_name: Name of the (cursor, pk) secondary index
        on_chunk: Callback receiving each page of events

    Returns:
        All events of the generation, across sub-partitions
    """
    condition = Key(ATTR_CURSOR).eq(cursor) & Key(ATTR_PK).begins_with(table + PARTITION_SEPARATOR)
    return client.query(condition, index_name=index_name, on_chunk=on_chunk)
