"""
evmsnap - partial pre/post state snapshots of EVM transactions
"""

__version__ = "0.1.0"

# Main entry point
from .cli.main import main

# Core components
from .core import (
    Address,
    ContractCodeCache,
    ContextBuilder,
    TransactionContext,
    TraceWalker,
    OpLog,
    ContractState,
    WalkResult,
    OutputAssembler,
    StateSnapshot,
    SnapshotSerializer,
)
from .extractor import StateExtractor
from .rpc import NodeClient

# Utilities
from .utils import (
    EvmsnapError,
    TransportError,
    TransactionError,
    MalformedTraceError,
)

__all__ = [
    # Version
    '__version__',
    # Main
    'main',
    # Core
    'Address',
    'ContractCodeCache',
    'ContextBuilder',
    'TransactionContext',
    'TraceWalker',
    'OpLog',
    'ContractState',
    'WalkResult',
    'OutputAssembler',
    'StateSnapshot',
    'SnapshotSerializer',
    'StateExtractor',
    'NodeClient',
    # Utils
    'EvmsnapError',
    'TransportError',
    'TransactionError',
    'MalformedTraceError',
]
