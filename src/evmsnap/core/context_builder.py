"""
Transaction-level metadata for a state snapshot.

Works on web3 ``AttributeDict`` results as well as plain dicts decoded from
JSON, where quantities may still be hex strings.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import rlp
from eth_utils import keccak, to_bytes
from hexbytes import HexBytes

from ..utils.exceptions import TransactionError
from ..utils.logging import get_logger
from .address import Address

logger = get_logger('context')


@dataclass
class TransactionContext:
    """Everything about the transaction that is not contract state."""
    from_address: Address
    to: Address
    input: bytes
    value: int
    block_number: int
    timestamp: int
    block_hash: bytes
    block_difficulty: int
    status: int
    return_data: bytes
    is_creation: bool = False
    tx_hash: Optional[str] = None

    @property
    def storage_owner(self) -> Address:
        """Owner of the outermost frame: the recipient or the created contract."""
        return self.to

    @property
    def success(self) -> bool:
        return self.status == 1


def compute_contract_address(sender: Address, nonce: int) -> Address:
    """Address of a contract created by ``sender`` with ``nonce`` (CREATE rule)."""
    return Address(keccak(rlp.encode([sender.to_bytes(), nonce]))[-20:])


def _quantity(value: Any, name: str) -> int:
    if value is None:
        raise TransactionError(f"Missing field: {name}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.startswith(('0x', '0X')) else int(value)
    raise TransactionError(f"Invalid {name}: {value!r}")


def _data(value: Any) -> bytes:
    if value is None or value == '':
        return b''
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return bytes(HexBytes(value))
    return to_bytes(value)


def _hash_text(value: Any) -> Optional[str]:
    if isinstance(value, (bytes, bytearray)):
        return '0x' + bytes(value).hex()
    return str(value) if value else None


def _field(record: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        value = record.get(name)
        if value is not None:
            return value
    return None


class ContextBuilder:
    """Assembles a TransactionContext from transaction, block and trace."""

    def build(
        self,
        transaction: Mapping[str, Any],
        block: Mapping[str, Any],
        trace: Mapping[str, Any],
    ) -> TransactionContext:
        try:
            return self._build(transaction, block, trace)
        except (TypeError, ValueError) as e:
            raise TransactionError(
                f"Malformed transaction data: {e}",
                tx_hash=_hash_text(_field(transaction, 'hash')),
            ) from e

    def _build(
        self,
        transaction: Mapping[str, Any],
        block: Mapping[str, Any],
        trace: Mapping[str, Any],
    ) -> TransactionContext:
        sender = _field(transaction, 'from')
        if sender is None:
            raise TransactionError("Transaction has no sender")
        from_address = Address(sender)

        tx_hash = _hash_text(_field(transaction, 'hash'))

        recipient = _field(transaction, 'to')
        is_creation = recipient is None or recipient in ('', '0x')
        if is_creation:
            to = self.resolve_created_address(transaction, from_address)
            logger.info(f"Contract creation transaction, created address {to}")
        else:
            to = Address(recipient)

        status = 0 if trace.get('failed') else 1

        return TransactionContext(
            from_address=from_address,
            to=to,
            input=_data(_field(transaction, 'input', 'data')),
            value=_quantity(_field(transaction, 'value') or 0, 'value'),
            block_number=_quantity(_field(transaction, 'blockNumber'), 'blockNumber'),
            timestamp=_quantity(_field(block, 'timestamp'), 'timestamp'),
            block_hash=_data(_field(block, 'hash')),
            block_difficulty=_quantity(_field(block, 'difficulty') or 0, 'difficulty'),
            status=status,
            return_data=_data(trace.get('returnValue')),
            is_creation=is_creation,
            tx_hash=tx_hash,
        )

    def resolve_created_address(self, transaction: Mapping[str, Any], sender: Address) -> Address:
        """Address of the contract a creation transaction deploys.

        Uses the node-reported ``creates`` field when present, otherwise
        derives it from the sender and nonce.
        """
        creates = _field(transaction, 'creates', 'contractAddress')
        if creates is not None:
            return Address(creates)

        nonce = _field(transaction, 'nonce')
        if nonce is None:
            raise TransactionError(
                "Cannot resolve the created contract address: no 'creates' field and no nonce",
                tx_hash=_hash_text(_field(transaction, 'hash')),
            )
        return compute_contract_address(sender, _quantity(nonce, 'nonce'))
