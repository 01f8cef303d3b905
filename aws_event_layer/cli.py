"""CLI entry point for aws-event-layer."""

import click

from aws_event_layer import __version__
from aws_event_layer.layer.commands.lock_commands import (
    lock_acquire_command,
    lock_check_command,
    lock_release_command,
)
from aws_event_layer.layer.commands.meta_commands import meta_command, pending_command
from aws_event_layer.layer.commands.table_commands import (
    clear_command,
    create_table_command,
    drop_table_command,
)


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Event-sourcing cache layer backed by DynamoDB"""
    pass


@main.group("layer")
def layer() -> None:
    """Pending-event table, cursor meta and sync lease management"""
    pass


# Register table commands
layer.add_command(create_table_command)
layer.add_command(drop_table_command)
layer.add_command(clear_command)

# Register inspection commands
layer.add_command(meta_command)
layer.add_command(pending_command)

# Register lease commands
layer.add_command(lock_acquire_command)
layer.add_command(lock_release_command)
layer.add_command(lock_check_command)


if __name__ == "__main__":
    main()
