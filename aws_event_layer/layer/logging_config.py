"""
Logging configuration for the event layer.

Verbosity levels map to:
    0: WARNING
    1 (-v): INFO
    2 (-vv): DEBUG
    3+ (-vvv): DEBUG, including boto3/botocore wire logs
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(verbose: int = 0) -> None:
    """
    Configure root logging to stderr.

    Args:
        verbose: Verbosity count from the CLI
    """
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)

    library_level = logging.DEBUG if verbose >= 3 else logging.WARNING
    for name in ("boto3", "botocore", "urllib3"):
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger."""
    return logging.getLogger(name)
