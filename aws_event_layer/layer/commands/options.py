"""
Shared click options and error reporting for event layer commands.
"""

import click

from ..constants import DEFAULT_TABLE_NAME
from ..utils import error_json, error_text


def table_options(command: click.Command) -> click.Command:
    """Attach the connection and output options shared by every command."""
    for option in reversed(
        [
            click.option(
                "--table",
                envvar="EVENT_LAYER_TABLE",
                default=DEFAULT_TABLE_NAME,
                help="Pending-event DynamoDB table name",
            ),
            click.option("--region", envvar="AWS_REGION", help="AWS region"),
            click.option("--profile", envvar="AWS_PROFILE", help="AWS profile"),
            click.option(
                "--endpoint-url",
                envvar="EVENT_LAYER_ENDPOINT_URL",
                help="Custom DynamoDB endpoint (e.g. DynamoDB Local)",
            ),
            click.option("--text", is_flag=True, help="Output as human-readable text"),
            click.option(
                "--verbose",
                "-v",
                count=True,
                help="Increase verbosity (-v INFO, -vv DEBUG, -vvv TRACE)",
            ),
        ]
    ):
        command = option(command)
    return command


def fail(ctx: click.Context, error: Exception, solution: str, exit_code: int, text: bool) -> None:
    """Print an error in the selected format and exit."""
    if text:
        click.echo(error_text(str(error), solution), err=True)
    else:
        click.echo(error_json(str(error), solution, exit_code), err=True)
    ctx.exit(exit_code)
