"""
Lease commands for the event layer.
"""

import click

from ..constants import DEFAULT_LEASE_TTL
from ..core.lock_operations import acquire_lock, check_lock, release_lock
from ..core.table_operations import layer_client
from ..exceptions import LayerError, LockUnavailableError
from ..logging_config import get_logger, setup_logging
from ..utils import output_json, output_text
from .options import fail, table_options

logger = get_logger(__name__)


@click.command("lock-acquire")
@click.argument("logical_table")
@click.option(
    "--lease-ttl",
    type=int,
    default=DEFAULT_LEASE_TTL,
    help=f"Lease TTL in seconds (default: {DEFAULT_LEASE_TTL})",
)
@table_options
@click.pass_context
def lock_acquire_command(
    ctx: click.Context,
    logical_table: str,
    lease_ttl: int,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Acquire the sync lease of a logical table.

    While the lease is held no sync or reset runs for the logical table.
    A lease older than its TTL is taken over.

    Examples:

    \b
        # Pause syncing of 'users' for 10 minutes
        aws-event-layer layer lock-acquire users --lease-ttl 600

    \b
    Output Format:
        Returns JSON:
        {"table": "users", "acquired_at": 1731696000000, "ttl": 1731696600}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Acquiring lease for '{logical_table}'")

        client = layer_client(table, region, profile, endpoint_url)
        if not acquire_lock(client, logical_table, lease_ttl):
            raise LockUnavailableError(f"Lease for '{logical_table}' is held by another process")

        lease = check_lock(client, logical_table)

        if text:
            output_text(f"Lease for '{logical_table}' acquired")
            output_text(f"TTL: {lease_ttl} seconds")
        else:
            output_json(lease)

    except LockUnavailableError as e:
        solution = (
            f"Wait for the lease to expire or release it with "
            f"'aws-event-layer layer lock-release {logical_table}'"
        )
        fail(ctx, e, solution, 4, text)

    except LayerError as e:
        fail(ctx, e, "Check table exists and AWS credentials", 3, text)


@click.command("lock-release")
@click.argument("logical_table")
@table_options
@click.pass_context
def lock_release_command(
    ctx: click.Context,
    logical_table: str,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Release the sync lease of a logical table.

    Idempotent. Use it to clear a lease left behind by a crashed process.

    Examples:

    \b
        aws-event-layer layer lock-release users

    \b
    Output Format:
        Returns JSON:
        {"table": "users", "released": true}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Releasing lease for '{logical_table}'")

        client = layer_client(table, region, profile, endpoint_url)
        released = release_lock(client, logical_table)

        if text:
            output_text(f"Lease for '{logical_table}' released")
        else:
            output_json({"table": logical_table, "released": released})

    except LayerError as e:
        fail(ctx, e, "Check table exists and AWS credentials", 3, text)


@click.command("lock-check")
@click.argument("logical_table")
@table_options
@click.pass_context
def lock_check_command(
    ctx: click.Context,
    logical_table: str,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Check whether the sync lease of a logical table is held.

    Exits with code 1 when the lease is free.

    Examples:

    \b
        aws-event-layer layer lock-check users

    \b
    Output Format:
        Returns JSON:
        {"table": "users", "held": true, "acquired_at": 1731696000000, "ttl": 1731696300}
    """
    setup_logging(verbose)

    try:
        client = layer_client(table, region, profile, endpoint_url)
        lease = check_lock(client, logical_table)

        if lease is None:
            if text:
                output_text(f"Lease for '{logical_table}' is free")
            else:
                output_json({"table": logical_table, "held": False})
            ctx.exit(1)

        if text:
            output_text(f"Lease for '{logical_table}' is held")
            output_text(f"Acquired at: {lease['acquired_at']}")
        else:
            output_json({**lease, "held": True})

    except LayerError as e:
        fail(ctx, e, "Check table exists and AWS credentials", 3, text)
