"""Shared fixtures for event layer tests."""

from collections.abc import Iterator
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

from aws_event_layer import ChangeEvent
from aws_event_layer.layer.core.client import DynamoDBClient
from aws_event_layer.layer.core.layer import Layer
from aws_event_layer.layer.core.table_operations import create_table, layer_client

REGION = "us-east-1"
EVENTS_TABLE = "test-events"
SOURCE_TABLE = "test-source"
LOGICAL_TABLE = "table-1"


def put(pk: str, sk: str, **fields) -> ChangeEvent:
    """PUT change for an item in sub-partition pk."""
    return ChangeEvent({"pk": pk, "sk": sk, **fields})


class SnapshotStore:
    """In-memory external snapshot store keyed by logical partition."""

    def __init__(self) -> None:
        self.snapshots: dict[str, list[dict]] = {}

    def get(self, partition: str) -> list[dict]:
        return [dict(item) for item in self.snapshots.get(partition, [])]

    def set(self, partition: str, items: list[dict]) -> None:
        self.snapshots[partition] = [dict(item) for item in items]


@pytest.fixture
def aws_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Fake credentials so boto3 never reaches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    monkeypatch.delenv("AWS_PROFILE", raising=False)


@pytest.fixture
def mocked_aws(aws_credentials: None) -> Iterator[None]:
    with mock_aws():
        yield


@pytest.fixture
def client(mocked_aws: None) -> DynamoDBClient:
    create_table(EVENTS_TABLE, region=REGION)
    return layer_client(EVENTS_TABLE, region=REGION)


@pytest.fixture
def source(mocked_aws: None) -> DynamoDBClient:
    """Authoritative source table with a plain pk/sk key."""
    boto3.client("dynamodb", region_name=REGION).create_table(
        TableName=SOURCE_TABLE,
        KeySchema=[
            {"AttributeName": "pk", "KeyType": "HASH"},
            {"AttributeName": "sk", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "pk", "AttributeType": "S"},
            {"AttributeName": "sk", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    return DynamoDBClient(SOURCE_TABLE, region=REGION)


@pytest.fixture
def store() -> SnapshotStore:
    return SnapshotStore()


@pytest.fixture
def make_layer(client: DynamoDBClient, store: SnapshotStore):
    """Build a Layer over the mocked table with spy getter/setter."""

    def factory(**kwargs) -> Layer:
        options = {
            "client": client,
            "table": LOGICAL_TABLE,
            "getter": MagicMock(side_effect=store.get),
            "setter": MagicMock(side_effect=store.set),
            "get_item_unique_identifier": lambda item: item["sk"],
            "get_item_partition": lambda item: item["pk"],
        }
        options.update(kwargs)
        return Layer(**options)

    return factory


@pytest.fixture
def layer(make_layer) -> Layer:
    return make_layer()
