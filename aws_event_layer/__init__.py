"""Event-sourcing cache layer that keeps an external snapshot store in sync with DynamoDB."""

from aws_event_layer.layer.core.layer import Layer
from aws_event_layer.layer.models import (
    ChangeEvent,
    ChangeType,
    LayerMeta,
    MetaDelta,
    PendingEvent,
    SyncResult,
)

__all__ = [
    "ChangeEvent",
    "ChangeType",
    "Layer",
    "LayerMeta",
    "MetaDelta",
    "PendingEvent",
    "SyncResult",
]

__version__ = "0.1.0"
