#!/usr/bin/env python3
"""
Main entry point for evmsnap

Handles argument parsing and routes to the command implementations in the
cli/ module.
"""

import sys
import argparse
from typing import List, Optional

from .. import __version__
from .extract import extract_command


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='evmsnap',
        description='evmsnap - extract the partial pre/post state of an EVM transaction'
    )
    parser.add_argument('--version', '-v', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Commands')
    subparsers.required = True

    # extract command
    extract_parser = subparsers.add_parser(
        'extract', help='Replay a transaction trace and dump touched storage and code'
    )
    extract_parser.add_argument('tx_hash', help='Transaction hash to extract')
    extract_parser.add_argument('--rpc-url', '-r', default=None,
                                help='RPC URL with the debug namespace (default: $EVMSNAP_RPC_URL or http://localhost:8545)')
    extract_parser.add_argument('--output', '-o', default=None,
                                help='Write the snapshot JSON to this file instead of stdout')
    extract_parser.add_argument('--timeout', type=int, default=None,
                                help='Per-request RPC timeout in seconds (default: $EVMSNAP_TIMEOUT or 30)')
    extract_parser.add_argument('--prefetch-workers', type=int, default=None,
                                help='Fetch contract code with this many threads before the walk (default: 1, no prefetch)')
    extract_parser.add_argument('--indent', type=int, default=2,
                                help='JSON indentation; negative for compact output (default: 2)')
    extract_parser.add_argument('--json-errors', action='store_true',
                                help='Report errors as JSON on stdout')

    verbosity = extract_parser.add_mutually_exclusive_group()
    verbosity.add_argument('--debug', '-d', action='store_true', help='Log RPC calls and cache activity')
    verbosity.add_argument('--verbose', action='store_true', help='Log every storage and call opcode')
    verbosity.add_argument('--quiet', '-q', action='store_true', help='Suppress log output')
    extract_parser.add_argument('--log-file', default=None, help='Also write logs to this file')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for evmsnap CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == 'extract':
        return extract_command(args)

    return 0


if __name__ == '__main__':
    sys.exit(main())
