"""
JSON serialization for evmsnap snapshots.

Storage slots and values are written as 0x-prefixed 32-byte words, byte
strings as 0x-prefixed hex and quantities as JSON numbers.
"""

import json
import os
from typing import Any, Dict, Optional, TextIO

from hexbytes import HexBytes

from ..utils.logging import get_logger

logger = get_logger('serializer')


def to_word(value: int) -> str:
    """Render a 256-bit word as 0x plus 64 hex digits."""
    return '0x' + format(value, '064x')


def to_hex(data: Optional[bytes]) -> Optional[str]:
    if data is None:
        return None
    return '0x' + bytes(data).hex()


class SnapshotSerializer:
    """Serializes a StateSnapshot to the evmsnap output record."""

    def __init__(self, indent: Optional[int] = 2):
        self.indent = indent

    def _convert_to_serializable(self, obj: Any) -> Any:
        """Convert non-serializable objects to JSON-serializable format."""
        if isinstance(obj, (HexBytes, bytes, bytearray)):
            return to_hex(obj)
        elif isinstance(obj, dict):
            return {str(k): self._convert_to_serializable(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [self._convert_to_serializable(item) for item in obj]
        return obj

    def serialize_context(self, context) -> Dict[str, Any]:
        return self._convert_to_serializable({
            "from": context.from_address,
            "to": context.to,
            "input": context.input,
            "value": context.value,
            "block_number": context.block_number,
            "timestamp": context.timestamp,
            "block_hash": context.block_hash,
            "block_difficulty": context.block_difficulty,
            "status": context.status,
            "return": context.return_data,
        })

    def serialize_state(self, state) -> Dict[str, Any]:
        return {
            "address": str(state.address),
            "partial_storage_before": {
                to_word(slot): to_word(value) for slot, value in state.storage_before.items()
            },
            "partial_storage_after": {
                to_word(slot): to_word(value) for slot, value in state.storage_after.items()
            },
            "code": to_hex(state.code),
        }

    def serialize(self, snapshot) -> Dict[str, Any]:
        """Build the output record as plain Python data."""
        result = {
            "context": self.serialize_context(snapshot.context),
            "states": {
                str(address): self.serialize_state(state)
                for address, state in snapshot.states.items()
            },
        }
        if snapshot.diagnostics:
            result["diagnostics"] = [d.to_dict() for d in snapshot.diagnostics]
        return result

    def to_json(self, snapshot) -> str:
        return json.dumps(self.serialize(snapshot), indent=self.indent)

    def dump(self, snapshot, stream: TextIO):
        stream.write(self.to_json(snapshot))
        stream.write('\n')

    def write(self, snapshot, path: str):
        """Write the snapshot to ``path``, creating parent directories."""
        parent = os.path.dirname(os.path.abspath(path))
        os.makedirs(parent, exist_ok=True)
        with open(path, 'w') as f:
            self.dump(snapshot, f)
        logger.info(f"Snapshot written to {path}")
