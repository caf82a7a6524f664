"""
RPC module for evmsnap: node access through web3.
"""

from .client import (
    NodeClient,
    DEFAULT_RPC_URL,
    DEFAULT_TRACE_OPTIONS,
    normalize_tx_hash,
)

__all__ = [
    'NodeClient',
    'DEFAULT_RPC_URL',
    'DEFAULT_TRACE_OPTIONS',
    'normalize_tx_hash',
]
