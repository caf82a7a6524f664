"""
Extract command implementation.

Fetches a transaction, its block and its struct-log trace, replays the
trace and prints (or writes) the resulting state snapshot as JSON.
"""

import sys

from evmsnap.config import load_config
from evmsnap.core.serializer import SnapshotSerializer
from evmsnap.extractor import StateExtractor
from evmsnap.utils.colors import info, success, warning
from evmsnap.utils.exceptions import EvmsnapError
from evmsnap.utils.logging import logger
from evmsnap.cli.common import configure_logging, create_client, handle_command_error


def extract_command(args) -> int:
    """
    Execute the extract command.

    Args:
        args: Parsed command arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    json_mode = getattr(args, 'json_errors', False)
    configure_logging(args)

    try:
        config = load_config(args)
    except ValueError as e:
        return handle_command_error(e, json_mode)

    logger.info(f"Connecting to RPC: {info(config.rpc_url)}")

    try:
        client = create_client(config.rpc_url, config.timeout)
        extractor = StateExtractor(client, prefetch_workers=config.prefetch_workers)
        snapshot = extractor.extract(config.tx_hash)
    except EvmsnapError as e:
        logger.debug(f"Extraction failed: {e.to_dict()}")
        return handle_command_error(e, json_mode)

    for diagnostic in snapshot.diagnostics:
        logger.debug(warning(f"step {diagnostic.step} ({diagnostic.op}): {diagnostic.message}"))

    serializer = SnapshotSerializer(indent=config.indent)
    try:
        if config.output:
            serializer.write(snapshot, config.output)
            logger.info(success(f"Wrote {len(snapshot.states)} contract states to {config.output}"))
        else:
            serializer.dump(snapshot, sys.stdout)
    except OSError as e:
        return handle_command_error(e, json_mode)

    return 0
