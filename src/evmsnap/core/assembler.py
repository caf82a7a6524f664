"""
Final result record of one extraction.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .address import Address
from .context_builder import TransactionContext
from .serializer import SnapshotSerializer
from .trace_walker import ContractState, TraceDiagnostic, WalkResult


@dataclass
class StateSnapshot:
    """Pre/post storage and code of every contract a transaction touched."""
    context: TransactionContext
    states: Dict[Address, ContractState]
    diagnostics: List[TraceDiagnostic] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return SnapshotSerializer().serialize(self)


class OutputAssembler:
    """Composes the context and the walk result; no transformation."""

    def assemble(self, context: TransactionContext, walk: WalkResult) -> StateSnapshot:
        return StateSnapshot(
            context=context,
            states=walk.states,
            diagnostics=list(walk.diagnostics),
        )
