"""
Table management commands for the pending-event table.
"""

from typing import Literal

import click

from ..core.table_operations import create_table, drop_table, layer_client
from ..exceptions import LayerError, TableAlreadyExistsError, TableNotFoundError
from ..logging_config import get_logger, setup_logging
from ..utils import output_json, output_text, validate_table_name
from .options import fail, table_options

logger = get_logger(__name__)


@click.command("create-table")
@table_options
@click.option(
    "--billing",
    type=click.Choice(["on-demand", "provisioned"]),
    default="on-demand",
    help="Billing mode (default: on-demand)",
)
@click.pass_context
def create_table_command(
    ctx: click.Context,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
    billing: str,
) -> None:
    """Create the pending-event table.

    Creates a table with partition key (pk), sort key (sk), the
    cursor-pk-index GSI used to drain a cursor generation, and TTL.

    Examples:

    \b
        # Create table with default name
        aws-event-layer layer create-table

    \b
        # Create table against DynamoDB Local
        aws-event-layer layer create-table --endpoint-url http://localhost:8000

    \b
    Output Format:
        Returns JSON with table details:
        {"table": "...", "status": "ACTIVE", "arn": "..."}
    """
    setup_logging(verbose)

    try:
        validate_table_name(table)
    except ValueError as e:
        fail(ctx, e, "Use 3-255 alphanumeric characters, hyphens, underscores or periods", 2, text)

    try:
        logger.info(f"Creating table '{table}'")
        logger.debug(f"Region: {region}, Billing: {billing}")

        billing_mode: Literal["PAY_PER_REQUEST", "PROVISIONED"] = (
            "PAY_PER_REQUEST" if billing == "on-demand" else "PROVISIONED"
        )
        table_desc = create_table(table, region, profile, endpoint_url, billing_mode)

        if text:
            output_text(f"Table '{table}' created successfully")
            output_text(f"Status: {table_desc['TableStatus']}")
            output_text(f"ARN: {table_desc['TableArn']}")
        else:
            output_json(
                {
                    "table": table,
                    "status": table_desc["TableStatus"],
                    "arn": table_desc["TableArn"],
                }
            )

    except TableAlreadyExistsError as e:
        fail(ctx, e, "Use a different table name or drop existing table", 1, text)

    except LayerError as e:
        fail(ctx, e, "Check AWS credentials and permissions", 3, text)


@click.command("drop-table")
@table_options
@click.option("--approve", is_flag=True, help="Required flag to confirm table deletion")
@click.pass_context
def drop_table_command(
    ctx: click.Context,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
    approve: bool,
) -> None:
    """Drop the pending-event table.

    WARNING: This permanently deletes every unsynced event and all meta records.

    Examples:

    \b
        # Drop with approval
        aws-event-layer layer drop-table --approve

    \b
    Output Format:
        Returns JSON with confirmation:
        {"table": "...", "status": "DELETING"}
    """
    setup_logging(verbose)

    if not approve:
        solution = (
            f"Add --approve flag to confirm: "
            f"aws-event-layer layer drop-table --table {table} --approve"
        )
        fail(ctx, Exception("Table deletion requires approval"), solution, 2, text)

    try:
        logger.info(f"Dropping table '{table}'")

        table_desc = drop_table(table, region, profile, endpoint_url)

        if text:
            output_text(f"Table '{table}' deletion initiated")
            output_text(f"Status: {table_desc['TableStatus']}")
        else:
            output_json({"table": table, "status": table_desc["TableStatus"]})

    except TableNotFoundError as e:
        fail(ctx, e, "Check table name", 1, text)

    except LayerError as e:
        fail(ctx, e, "Check AWS credentials and permissions", 3, text)


@click.command("clear")
@table_options
@click.option("--approve", is_flag=True, help="Required flag to confirm deletion")
@click.pass_context
def clear_command(
    ctx: click.Context,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
    approve: bool,
) -> None:
    """Delete every record in the pending-event table.

    Removes pending events, meta records and leases of every logical table,
    but keeps the table itself.

    Examples:

    \b
        aws-event-layer layer clear --approve

    \b
    Output Format:
        Returns JSON:
        {"table": "...", "deleted": 42}
    """
    setup_logging(verbose)

    if not approve:
        solution = (
            f"Add --approve flag to confirm: aws-event-layer layer clear --table {table} --approve"
        )
        fail(ctx, Exception("Clearing the table requires approval"), solution, 2, text)

    try:
        logger.info(f"Clearing table '{table}'")

        client = layer_client(table, region, profile, endpoint_url)
        deleted = client.clear()

        if text:
            output_text(f"Deleted {deleted} records from '{table}'")
        else:
            output_json({"table": table, "deleted": deleted})

    except TableNotFoundError as e:
        fail(ctx, e, "Create the table first with 'aws-event-layer layer create-table'", 1, text)

    except LayerError as e:
        fail(ctx, e, "Check AWS credentials and permissions", 3, text)
