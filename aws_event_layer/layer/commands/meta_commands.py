"""
Inspection commands for the event layer.
"""

import click

from ..core.meta_operations import load_meta
from ..core.pending_operations import query_partition
from ..core.table_operations import layer_client
from ..exceptions import LayerError, TableNotFoundError
from ..logging_config import get_logger, setup_logging
from ..models import PendingEvent
from ..utils import output_json, output_text, resolve_partition
from .options import fail, table_options

logger = get_logger(__name__)


@click.command("meta")
@click.argument("logical_table")
@table_options
@click.pass_context
def meta_command(
    ctx: click.Context,
    logical_table: str,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Show the cursor and sync metrics of a logical table.

    Examples:

    \b
        aws-event-layer layer meta users

    \b
    Output Format:
        Returns JSON:
        {"cursor": 3, "cursor_max": 3, "loaded": true, "synced_times": 3, ...}
    """
    setup_logging(verbose)

    try:
        client = layer_client(table, region, profile, endpoint_url)
        meta = load_meta(client, logical_table)

        if text:
            if not meta.loaded:
                output_text(f"No meta record for '{logical_table}', showing defaults")
            for name, value in meta.to_dict().items():
                output_text(f"{name}: {value}")
        else:
            output_json(meta.to_dict())

    except TableNotFoundError as e:
        fail(ctx, e, "Create the table first with 'aws-event-layer layer create-table'", 1, text)

    except LayerError as e:
        fail(ctx, e, "Check AWS credentials and permissions", 3, text)


@click.command("pending")
@click.argument("logical_table")
@click.option("--cursor", type=int, help="Cursor generation (default: current cursor)")
@click.option("--partition", help="Sub-partition (default: none)")
@table_options
@click.pass_context
def pending_command(
    ctx: click.Context,
    logical_table: str,
    cursor: int | None,
    partition: str | None,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """List the unsynced events of a logical partition.

    Examples:

    \b
        # Events written since the last sync
        aws-event-layer layer pending users

    \b
        # Events of sub-partition 'eu' at cursor 2
        aws-event-layer layer pending users --partition eu --cursor 2

    \b
    Output Format:
        Returns JSON list:
        [{"sk": "user-1", "type": "PUT", "cursor": 2, "item": {...}}, ...]
    """
    setup_logging(verbose)

    try:
        client = layer_client(table, region, profile, endpoint_url)

        if cursor is None:
            cursor = load_meta(client, logical_table).cursor

        pk = resolve_partition(logical_table, cursor, partition)
        logger.info(f"Listing pending events of '{pk}'")

        events = [PendingEvent.from_item(record) for record in query_partition(client, pk).items]

        if text:
            output_text(f"{len(events)} pending events in '{pk}'")
            for event in events:
                output_text(f"  {event.type.value:<6} {event.sk}")
        else:
            output_json(
                [
                    {
                        "sk": event.sk,
                        "type": event.type.value,
                        "cursor": event.cursor,
                        "ttl": event.ttl,
                        "item": event.item,
                    }
                    for event in events
                ]
            )

    except TableNotFoundError as e:
        fail(ctx, e, "Create the table first with 'aws-event-layer layer create-table'", 1, text)

    except LayerError as e:
        fail(ctx, e, "Check AWS credentials and permissions", 3, text)
