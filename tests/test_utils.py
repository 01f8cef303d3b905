import json
from decimal import Decimal

import pytest

from aws_event_layer.layer.utils import (
    error_json,
    lease_key,
    output_json,
    resolve_partition,
    strip_cursor,
    validate_table_name,
)


@pytest.mark.parametrize(
    ("cursor", "partition", "expected"),
    [
        (0, None, "users#0"),
        (3, "eu", "users#eu#3"),
        (3, "  eu  ", "users#eu#3"),
        (3, "", "users#3"),
        (3, "   ", "users#3"),
        (None, "eu", "users#eu"),
        (None, None, "users"),
    ],
)
def test_resolve_partition(cursor, partition, expected):
    assert resolve_partition("users", cursor, partition) == expected


def test_strip_cursor():
    assert strip_cursor("users#eu#3", 3) == "users#eu"
    assert strip_cursor("users#13", 3) == "users#13"
    assert strip_cursor("users#eu", 3) == "users#eu"


def test_strip_cursor_inverts_resolve_partition():
    for cursor in (0, 1, 12):
        for partition in (None, "eu", "a#b"):
            pk = resolve_partition("users", cursor, partition)
            assert strip_cursor(pk, cursor) == resolve_partition("users", None, partition)


def test_lease_key():
    assert lease_key("users") == "__users__"


def test_output_json_handles_decimals(capsys):
    output_json({"count": Decimal("3"), "ratio": Decimal("0.5"), "tags": {"b", "a"}})

    assert json.loads(capsys.readouterr().out) == {"count": 3, "ratio": 0.5, "tags": ["a", "b"]}


def test_error_json():
    payload = json.loads(error_json("boom", "retry", 3))

    assert payload == {"error": "boom", "solution": "retry", "exit_code": 3}


def test_validate_table_name():
    assert validate_table_name("aws-event-layer-events")

    with pytest.raises(ValueError):
        validate_table_name("ab")
    with pytest.raises(ValueError):
        validate_table_name("bad name")
