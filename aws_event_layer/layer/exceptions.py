"""
Custom exceptions for event layer operations.
"""


class LayerError(Exception):
    """Base exception for event layer operations."""

    pass


class ConditionFailedError(LayerError):
    """Conditional write failed."""

    pass


class ConfigurationError(LayerError):
    """Table schema or layer options are unusable."""

    pass


class ValidationError(LayerError):
    """Caller supplied invalid input."""

    pass


class LockUnavailableError(LayerError):
    """Lease is held by another process."""

    pass


class AWSThrottlingError(LayerError):
    """DynamoDB throttling occurred."""

    pass


class AWSPermissionError(LayerError):
    """AWS permission denied."""

    pass


class TableNotFoundError(LayerError):
    """DynamoDB table does not exist."""

    pass


class TableAlreadyExistsError(LayerError):
    """DynamoDB table already exists."""

    pass
