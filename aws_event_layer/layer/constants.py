"""
Constants for the event layer.
"""

# Default pending-event table name (CLI)
DEFAULT_TABLE_NAME = "aws-event-layer-events"

# Default TTLs (in seconds)
DEFAULT_EVENT_TTL = 5 * 24 * 60 * 60  # 5 days
DEFAULT_LEASE_TTL = 300  # 5 minutes

# Read path fan-out (max concurrent generation queries)
DEFAULT_QUERY_CONCURRENCY = 8

# Physical partition key separator
PARTITION_SEPARATOR = "#"

# DynamoDB attribute names
ATTR_PK = "pk"
ATTR_SK = "sk"
ATTR_CURSOR = "cursor"
ATTR_ITEM = "item"
ATTR_TYPE = "type"
ATTR_TTL = "ttl"
ATTR_TIMESTAMP = "timestamp"

# Store bookkeeping attributes (stamped on every write)
ATTR_CREATED_AT = "__created_at"
ATTR_UPDATED_AT = "__updated_at"
ATTR_VERSION = "__ts"

# Secondary index used to drain a cursor generation
CURSOR_INDEX_NAME = "cursor-pk-index"

# Singleton records per logical table
SK_META = "__meta__"
SK_LOCK = "__lock__"
