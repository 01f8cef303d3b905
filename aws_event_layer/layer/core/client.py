"""
DynamoDB client wrapper with error handling.
"""

import threading
from collections.abc import Callable, Iterable
from typing import Any

import boto3
from botocore.exceptions import ClientError

from ..constants import ATTR_CREATED_AT, ATTR_PK, ATTR_SK, ATTR_UPDATED_AT, ATTR_VERSION
from ..exceptions import (
    AWSPermissionError,
    AWSThrottlingError,
    ConditionFailedError,
    LayerError,
    TableNotFoundError,
)
from ..expressions import concat_condition_expression, concat_update_expression
from ..logging_config import get_logger
from ..models import Item, QueryResult, TableSchema
from ..utils import now_iso, now_ms

logger = get_logger(__name__)

ChunkHandler = Callable[[list[Item]], None]

BOOKKEEPING_UPDATE = "SET #__cr = if_not_exists(#__cr, :__cr), #__up = :__up, #__ts = :__ts"


class DynamoDBClient:
    """DynamoDB client wrapper with error handling."""

    def __init__(
        self,
        table_name: str,
        region: str | None = None,
        profile: str | None = None,
        endpoint_url: str | None = None,
        schema: TableSchema | None = None,
    ):
        """
        Initialize DynamoDB client.

        Args:
            table_name: DynamoDB table name
            region: AWS region (optional, uses SDK default)
            profile: AWS profile (optional, uses SDK default)
            endpoint_url: Custom endpoint, e.g. DynamoDB Local (optional)
            schema: Key layout of the table (defaults to pk/sk, no indexes)
        """
        self.table_name = table_name
        self.region = region
        self.profile = profile
        self.endpoint_url = endpoint_url
        self.schema = schema or TableSchema(partition=ATTR_PK, sort=ATTR_SK)
        self._local = threading.local()

    @property
    def table(self) -> Any:
        """
        Table resource of the calling thread.

        Each thread builds its own session and resource on first use; boto3
        resources are not thread-safe.
        """
        table = getattr(self._local, "table", None)
        if table is None:
            session = boto3.Session(profile_name=self.profile, region_name=self.region)
            dynamodb = session.resource("dynamodb", endpoint_url=self.endpoint_url)
            table = self._local.table = dynamodb.Table(self.table_name)
        return table

    def key_of(self, item: Item) -> dict[str, Any]:
        """Extract the primary key attributes of an item."""
        key = {self.schema.partition: item[self.schema.partition]}
        if self.schema.sort:
            key[self.schema.sort] = item[self.schema.sort]
        return key

    def put_item(
        self,
        item: Item,
        condition_expression: Any = None,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> Item:
        """
        Put item with optional condition.

        Args:
            item: Item to put
            condition_expression: Optional condition (string or boto3 condition)
            expression_attribute_names: Optional expression attribute names
            expression_attribute_values: Optional expression attribute values

        Returns:
            The stored item, including bookkeeping attributes

        Raises:
            ConditionFailedError: If condition fails
            LayerError: For other DynamoDB errors
        """
        now = now_iso()
        item = {**item, ATTR_CREATED_AT: now, ATTR_UPDATED_AT: now, ATTR_VERSION: now_ms()}

        try:
            kwargs: dict[str, Any] = {"Item": item}
            if condition_expression is not None:
                kwargs["ConditionExpression"] = condition_expression
            if expression_attribute_names:
                kwargs["ExpressionAttributeNames"] = expression_attribute_names
            if expression_attribute_values:
                kwargs["ExpressionAttributeValues"] = expression_attribute_values
            self.table.put_item(**kwargs)
            return item
        except ClientError as e:
            self._handle_error(e)
            raise  # For type checker

    def get_item(self, key: dict[str, Any], consistent_read: bool = False) -> Item | None:
        """
        Get item by key.

        Args:
            key: Key to retrieve
            consistent_read: Use a strongly consistent read

        Returns:
            Item if found, None otherwise

        Raises:
            LayerError: For DynamoDB errors
        """
        try:
            response = self.table.get_item(Key=key, ConsistentRead=consistent_read)
            return response.get("Item")
        except ClientError as e:
            self._handle_error(e)
            raise  # For type checker

    def update_item(
        self,
        key: dict[str, Any],
        update_expression: str = "",
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
        condition_expression: str | None = None,
        upsert: bool = False,
    ) -> Item:
        """
        Update item attributes, stamping bookkeeping attributes.

        Args:
            key: Key of the item to update
            update_expression: Update expression (may be empty for a touch)
            expression_attribute_names: Optional expression attribute names
            expression_attribute_values: Optional expression attribute values
            condition_expression: Optional condition expression
            upsert: Create the item if missing (otherwise it must exist)

        Returns:
            Item attributes after the update

        Raises:
            ConditionFailedError: If condition fails (or item missing and upsert=False)
            LayerError: For other DynamoDB errors
        """
        now = now_iso()
        names = {
            **(expression_attribute_names or {}),
            "#__cr": ATTR_CREATED_AT,
            "#__up": ATTR_UPDATED_AT,
            "#__ts": ATTR_VERSION,
        }
        values = {
            **(expression_attribute_values or {}),
            ":__cr": now,
            ":__up": now,
            ":__ts": now_ms(),
        }
        condition = condition_expression or ""

        if not upsert:
            condition = concat_condition_expression(
                "attribute_exists(#__pk)", f"({condition})" if condition else ""
            )
            names["#__pk"] = self.schema.partition

        try:
            kwargs: dict[str, Any] = {
                "Key": key,
                "UpdateExpression": concat_update_expression(update_expression, BOOKKEEPING_UPDATE),
                "ExpressionAttributeNames": names,
                "ExpressionAttributeValues": values,
                "ReturnValues": "ALL_NEW",
            }
            if condition:
                kwargs["ConditionExpression"] = condition
            response = self.table.update_item(**kwargs)
            return response.get("Attributes", {})
        except ClientError as e:
            self._handle_error(e)
            raise  # For type checker

    def delete_item(
        self,
        key: dict[str, Any],
        condition_expression: Any = None,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> Item | None:
        """
        Delete item with optional condition.

        Args:
            key: Key to delete
            condition_expression: Optional condition expression
            expression_attribute_names: Optional expression attribute names
            expression_attribute_values: Optional expression attribute values

        Returns:
            The deleted item, or None if it did not exist

        Raises:
            ConditionFailedError: If condition fails
            LayerError: For other DynamoDB errors
        """
        try:
            kwargs: dict[str, Any] = {"Key": key, "ReturnValues": "ALL_OLD"}
            if condition_expression is not None:
                kwargs["ConditionExpression"] = condition_expression
            if expression_attribute_names:
                kwargs["ExpressionAttributeNames"] = expression_attribute_names
            if expression_attribute_values:
                kwargs["ExpressionAttributeValues"] = expression_attribute_values
            response = self.table.delete_item(**kwargs)
            return response.get("Attributes")
        except ClientError as e:
            self._handle_error(e)
            raise  # For type checker

    def query(
        self,
        key_condition_expression: Any,
        index_name: str | None = None,
        limit: int | None = None,
        on_chunk: ChunkHandler | None = None,
        scan_index_forward: bool = True,
        consistent_read: bool = False,
        filter_expression: Any = None,
    ) -> QueryResult:
        """
        Query items by key condition.

        Without a limit every page is fetched. on_chunk is called once per page.

        Args:
            key_condition_expression: Key condition (boto3 Key condition)
            index_name: Secondary index to query (optional)
            limit: Maximum number of items to return (None for all)
            on_chunk: Callback receiving each page of items
            scan_index_forward: Sort order on the sort key
            consistent_read: Use a strongly consistent read
            filter_expression: Optional filter (boto3 Attr condition)

        Returns:
            QueryResult with items, count and last evaluated key

        Raises:
            LayerError: For DynamoDB errors
        """
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": key_condition_expression,
            "ScanIndexForward": scan_index_forward,
        }
        if index_name:
            kwargs["IndexName"] = index_name
        elif consistent_read:
            kwargs["ConsistentRead"] = True
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression

        return self._paginate(self.table.query, kwargs, limit, on_chunk)

    def scan(
        self,
        filter_expression: Any = None,
        limit: int | None = None,
        on_chunk: ChunkHandler | None = None,
    ) -> QueryResult:
        """
        Scan the table.

        Args:
            filter_expression: Optional filter (boto3 Attr condition)
            limit: Maximum number of items to return (None for all)
            on_chunk: Callback receiving each page of items

        Returns:
            QueryResult with items, count and last evaluated key

        Raises:
            LayerError: For DynamoDB errors
        """
        kwargs: dict[str, Any] = {}
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression

        return self._paginate(self.table.scan, kwargs, limit, on_chunk)

    def batch_write(self, items: Iterable[Item]) -> list[Item]:
        """
        Put many items. Chunking to the 25-item API limit and retrying
        unprocessed items is handled by the boto3 batch writer. Every item in
        the batch shares one version.

        Args:
            items: Items to put

        Returns:
            The stored items, including bookkeeping attributes
        """
        now = now_iso()
        version = now_ms()
        stamped = [
            {**item, ATTR_CREATED_AT: now, ATTR_UPDATED_AT: now, ATTR_VERSION: version}
            for item in items
        ]

        try:
            with self.table.batch_writer(overwrite_by_pkeys=self._key_names()) as batch:
                for item in stamped:
                    batch.put_item(Item=item)
        except ClientError as e:
            self._handle_error(e)
            raise  # For type checker

        logger.debug(f"Batch wrote {len(stamped)} items to '{self.table_name}'")
        return stamped

    def batch_delete(self, items: Iterable[Item]) -> list[dict[str, Any]]:
        """
        Delete many items by key.

        Args:
            items: Items (or keys) to delete

        Returns:
            Keys that were deleted
        """
        keys = [self.key_of(item) for item in items]

        try:
            with self.table.batch_writer(overwrite_by_pkeys=self._key_names()) as batch:
                for key in keys:
                    batch.delete_item(Key=key)
        except ClientError as e:
            self._handle_error(e)
            raise  # For type checker

        logger.debug(f"Batch deleted {len(keys)} items from '{self.table_name}'")
        return keys

    def clear(self) -> int:
        """
        Delete every item in the table.

        Returns:
            Number of items deleted
        """
        result = self.scan(on_chunk=self.batch_delete)
        return result.count

    def _key_names(self) -> list[str]:
        names = [self.schema.partition]
        if self.schema.sort:
            names.append(self.schema.sort)
        return names

    def _paginate(
        self,
        operation: Callable[..., dict[str, Any]],
        kwargs: dict[str, Any],
        limit: int | None,
        on_chunk: ChunkHandler | None,
    ) -> QueryResult:
        items: list[Item] = []
        last_key: dict[str, Any] | None = None

        try:
            while True:
                page_kwargs = dict(kwargs)
                if limit is not None:
                    page_kwargs["Limit"] = limit - len(items)
                if last_key:
                    page_kwargs["ExclusiveStartKey"] = last_key

                response = operation(**page_kwargs)
                page = response.get("Items", [])
                last_key = response.get("LastEvaluatedKey")

                if on_chunk is not None:
                    on_chunk(page)
                items.extend(page)

                if not last_key or (limit is not None and len(items) >= limit):
                    break
        except ClientError as e:
            self._handle_error(e)
            raise  # For type checker

        return QueryResult(items=items, count=len(items), last_key=last_key)

    def _handle_error(self, error: ClientError) -> None:
        """
        Convert boto3 errors to event layer exceptions.

        Args:
            error: ClientError from boto3

        Raises:
            ConditionFailedError: If condition check failed
            TableNotFoundError: If table not found
            AWSThrottlingError: If throttled
            AWSPermissionError: If permission denied
            LayerError: For other errors
        """
        code = error.response["Error"]["Code"]

        if code == "ConditionalCheckFailedException":
            raise ConditionFailedError(f"Condition failed: {error}")
        elif code == "ResourceNotFoundException":
            raise TableNotFoundError(f"Table '{self.table_name}' not found")
        elif code in ("ProvisionedThroughputExceededException", "ThrottlingException"):
            raise AWSThrottlingError("DynamoDB throttling - retry with backoff")
        elif code == "AccessDeniedException":
            raise AWSPermissionError("AWS permission denied")
        else:
            raise LayerError(f"DynamoDB error: {error}")
