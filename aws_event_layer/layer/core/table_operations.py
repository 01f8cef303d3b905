"""
Table management operations for the pending-event table.
"""

from typing import Any, Literal

import boto3
from botocore.exceptions import ClientError

from ..constants import ATTR_CURSOR, ATTR_PK, ATTR_SK, ATTR_TTL, CURSOR_INDEX_NAME
from ..exceptions import TableAlreadyExistsError, TableNotFoundError
from ..logging_config import get_logger
from ..models import TableIndex, TableSchema
from .client import DynamoDBClient

logger = get_logger(__name__)


def layer_table_schema() -> TableSchema:
    """Key layout required by a Layer: pk/sk plus a (cursor, pk) index."""
    return TableSchema(
        partition=ATTR_PK,
        sort=ATTR_SK,
        indexes=[
            TableIndex(
                name=CURSOR_INDEX_NAME,
                partition=ATTR_CURSOR,
                partition_type="N",
                sort=ATTR_PK,
                sort_type="S",
            )
        ],
    )


def layer_client(
    table_name: str,
    region: str | None = None,
    profile: str | None = None,
    endpoint_url: str | None = None,
) -> DynamoDBClient:
    """Create a DynamoDB client for a pending-event table."""
    return DynamoDBClient(
        table_name, region, profile, endpoint_url=endpoint_url, schema=layer_table_schema()
    )


def _dynamodb(region: str | None, profile: str | None, endpoint_url: str | None) -> Any:
    session = boto3.Session(profile_name=profile, region_name=region)
    return session.client("dynamodb", endpoint_url=endpoint_url)


def create_table(
    table_name: str,
    region: str | None = None,
    profile: str | None = None,
    endpoint_url: str | None = None,
    billing_mode: Literal["PAY_PER_REQUEST", "PROVISIONED"] = "PAY_PER_REQUEST",
) -> dict[str, Any]:
    """
    Create the pending-event table.

    Args:
        table_name: Table name
        region: AWS region (optional)
        profile: AWS profile (optional)
        endpoint_url: Custom endpoint (optional)
        billing_mode: Billing mode (PAY_PER_REQUEST or PROVISIONED)

    Returns:
        Table description

    Raises:
        TableAlreadyExistsError: If table already exists
    """
    dynamodb = _dynamodb(region, profile, endpoint_url)
    schema = layer_table_schema()
    index = schema.indexes[0]

    try:
        response = dynamodb.create_table(
            TableName=table_name,
            KeySchema=[
                {"AttributeName": ATTR_PK, "KeyType": "HASH"},  # Partition key
                {"AttributeName": ATTR_SK, "KeyType": "RANGE"},  # Sort key
            ],
            AttributeDefinitions=[
                {"AttributeName": ATTR_PK, "AttributeType": "S"},
                {"AttributeName": ATTR_SK, "AttributeType": "S"},
                {"AttributeName": ATTR_CURSOR, "AttributeType": "N"},
            ],
            BillingMode=billing_mode,
            GlobalSecondaryIndexes=[
                {
                    "IndexName": index.name,
                    "KeySchema": [
                        {"AttributeName": index.partition, "KeyType": "HASH"},
                        {"AttributeName": index.sort, "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                }
            ],
            Tags=[
                {"Key": "ManagedBy", "Value": "aws-event-layer"},
                {"Key": "Purpose", "Value": "pending-events"},
            ],
        )
        dynamodb.get_waiter("table_exists").wait(TableName=table_name)

        # Pending events expire on their own
        dynamodb.update_time_to_live(
            TableName=table_name,
            TimeToLiveSpecification={"Enabled": True, "AttributeName": ATTR_TTL},
        )

        logger.info(f"Created table '{table_name}'")
        return response["TableDescription"]  # type: ignore[return-value]

    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceInUseException":
            raise TableAlreadyExistsError(f"Table '{table_name}' already exists")
        raise


def drop_table(
    table_name: str,
    region: str | None = None,
    profile: str | None = None,
    endpoint_url: str | None = None,
) -> dict[str, Any]:
    """
    Drop the pending-event table. Deletion is asynchronous, the returned
    description reports status DELETING.

    Args:
        table_name: Table name
        region: AWS region (optional)
        profile: AWS profile (optional)
        endpoint_url: Custom endpoint (optional)

    Returns:
        Table description

    Raises:
        TableNotFoundError: If table does not exist
    """
    dynamodb = _dynamodb(region, profile, endpoint_url)

    try:
        response = dynamodb.delete_table(TableName=table_name)
        logger.info(f"Dropped table '{table_name}'")
        return response["TableDescription"]  # type: ignore[return-value]
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceNotFoundException":
            raise TableNotFoundError(f"Table '{table_name}' not found")
        raise


def check_table_exists(
    table_name: str,
    region: str | None = None,
    profile: str | None = None,
    endpoint_url: str | None = None,
) -> bool:
    """
    Check whether the pending-event table exists.

    Args:
        table_name: Table name
        region: AWS region (optional)
        profile: AWS profile (optional)
        endpoint_url: Custom endpoint (optional)

    Returns:
        True if table exists, False otherwise
    """
    dynamodb = _dynamodb(region, profile, endpoint_url)

    try:
        dynamodb.describe_table(TableName=table_name)
        return True
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceNotFoundException":
            return False
        raise
