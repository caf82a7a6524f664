"""
Common utilities for CLI commands.
"""

import sys
from typing import Any

from evmsnap.rpc.client import NodeClient
from evmsnap.utils.exceptions import TransportError, format_error
from evmsnap.utils.logging import logger, setup_logging


def configure_logging(args: Any) -> None:
    """Set up console/file logging from the verbosity flags."""
    setup_logging(
        quiet=getattr(args, 'quiet', False),
        debug=getattr(args, 'debug', False),
        verbose=getattr(args, 'verbose', False),
        log_file=getattr(args, 'log_file', None),
    )


def create_client(rpc_url: str, timeout: int) -> NodeClient:
    """
    Create a NodeClient and make sure the node answers.

    Raises:
        TransportError: If the node cannot be reached
    """
    logger.debug(f"Connecting to RPC: {rpc_url}")
    client = NodeClient(rpc_url, timeout=timeout)
    try:
        block_number = client.check_connection()
    except TransportError as e:
        raise TransportError(
            f"Failed to connect to {rpc_url}: {e.message}",
            rpc_url=rpc_url,
        ) from e
    logger.debug(f"Connected, latest block {block_number}")
    return client


def handle_command_error(
    e: Exception,
    json_mode: bool = False,
    exit_code: int = 1
) -> int:
    """
    Handle command errors uniformly.

    Args:
        e: The exception that occurred
        json_mode: If True, output as JSON on stdout
        exit_code: Exit code to return

    Returns:
        Exit code
    """
    error_output = format_error(e, json_mode)
    if json_mode:
        print(error_output)
    else:
        print(error_output, file=sys.stderr)
    return exit_code
