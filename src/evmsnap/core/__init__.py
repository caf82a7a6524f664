"""
Core module for evmsnap.

- Address: canonical account address
- ContractCodeCache: fetch-once bytecode cache
- ContextBuilder: transaction metadata
- TraceWalker: storage attribution from struct logs
- OutputAssembler / SnapshotSerializer: result record and its JSON form
"""

from .address import Address
from .code_cache import ContractCodeCache
from .context_builder import ContextBuilder, TransactionContext, compute_contract_address
from .trace_walker import (
    TraceWalker,
    OpLog,
    ContractState,
    TraceDiagnostic,
    WalkResult,
    parse_struct_logs,
    collect_call_targets,
)
from .assembler import OutputAssembler, StateSnapshot
from .serializer import SnapshotSerializer

__all__ = [
    'Address',
    'ContractCodeCache',
    'ContextBuilder',
    'TransactionContext',
    'compute_contract_address',
    'TraceWalker',
    'OpLog',
    'ContractState',
    'TraceDiagnostic',
    'WalkResult',
    'parse_struct_logs',
    'collect_call_targets',
    'OutputAssembler',
    'StateSnapshot',
    'SnapshotSerializer',
]
