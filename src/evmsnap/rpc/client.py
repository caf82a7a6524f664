"""
Node access over JSON-RPC.

Thin wrapper around web3 that exposes the four calls an extraction needs and
turns every transport-level failure into ``TransportError``. Retries, if
any, belong to the provider configuration, not to this class.
"""

from typing import Any, Callable, Dict, Optional, TypeVar, Union

import requests
from web3 import HTTPProvider, Web3
from web3.exceptions import TransactionNotFound, Web3Exception

from ..core.address import Address, AddressLike
from ..utils.exceptions import (
    DebugTraceUnavailableError,
    TransactionNotFoundError,
    TransportError,
    format_exception_message,
)
from ..utils.logging import get_logger

logger = get_logger('rpc')

T = TypeVar('T')

DEFAULT_RPC_URL = "http://localhost:8545"

# Struct logger with the stack only; storage and memory are not needed
DEFAULT_TRACE_OPTIONS = {
    "disableStorage": True,
    "disableStack": False,
    "enableMemory": False,
    "enableReturnData": False,
}

# JSON-RPC "method not found"
METHOD_NOT_FOUND = -32601


def normalize_tx_hash(tx_hash: str) -> str:
    """Return ``tx_hash`` as 0x plus 64 lowercase hex digits."""
    if not isinstance(tx_hash, str):
        raise ValueError(f"Invalid transaction hash: {tx_hash!r}")
    text = tx_hash.strip().lower()
    if not text.startswith('0x'):
        text = '0x' + text
    digits = text[2:]
    if len(digits) != 64 or any(c not in '0123456789abcdef' for c in digits):
        raise ValueError(f"Invalid transaction hash: {tx_hash}")
    return text


def _is_method_missing(e: Exception) -> bool:
    payload = e.args[0] if e.args else None
    if isinstance(payload, dict) and payload.get('code') == METHOD_NOT_FOUND:
        return True
    message = format_exception_message(e).lower()
    return (
        'method not found' in message or
        'does not exist' in message or
        'not available' in message or
        'not supported' in message
    )


class NodeClient:
    """
    RPC collaborator for one extraction run.
    """

    def __init__(self, rpc_url: str = DEFAULT_RPC_URL, timeout: int = 30, w3: Optional[Web3] = None):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.w3 = w3 or Web3(HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))

    def _call(self, method: str, fn: Callable[[], T]) -> T:
        logger.debug(f"RPC {method} -> {self.rpc_url}")
        try:
            return fn()
        except (requests.RequestException, Web3Exception, ValueError, OSError) as e:
            raise TransportError(
                f"{method} failed: {format_exception_message(e)}",
                rpc_url=self.rpc_url,
                method=method,
            ) from e

    def check_connection(self) -> int:
        """Return the node's latest block number, failing if unreachable."""
        return self._call("eth_blockNumber", lambda: self.w3.eth.block_number)

    def get_transaction(self, tx_hash: str) -> Dict[str, Any]:
        try:
            tx = self._call("eth_getTransactionByHash", lambda: self.w3.eth.get_transaction(tx_hash))
        except TransportError as e:
            if isinstance(e.__cause__, TransactionNotFound):
                raise TransactionNotFoundError(tx_hash, rpc_url=self.rpc_url) from e.__cause__
            raise
        if tx is None:
            raise TransactionNotFoundError(tx_hash, rpc_url=self.rpc_url)
        if tx.get('blockNumber') is None:
            raise TransactionNotFoundError(tx_hash, rpc_url=self.rpc_url, reason="transaction is pending")
        return tx

    def get_block(self, number: Union[int, str]) -> Dict[str, Any]:
        block = self._call("eth_getBlockByNumber", lambda: self.w3.eth.get_block(number))
        if block is None:
            raise TransportError(
                f"Block {number} not returned by node", rpc_url=self.rpc_url, method="eth_getBlockByNumber"
            )
        return block

    def get_code(self, address: AddressLike, block_identifier: Union[int, str, None] = None) -> bytes:
        address = Address(address)
        if block_identifier is None:
            block_identifier = 'latest'
        code = self._call(
            "eth_getCode",
            lambda: self.w3.eth.get_code(address, block_identifier=block_identifier),
        )
        return bytes(code or b'')

    def trace_transaction(self, tx_hash: str, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run debug_traceTransaction with the struct logger."""
        params = [tx_hash, dict(options if options is not None else DEFAULT_TRACE_OPTIONS)]
        try:
            result = self._call(
                "debug_traceTransaction",
                lambda: self.w3.manager.request_blocking("debug_traceTransaction", params),
            )
        except TransportError as e:
            cause = e.__cause__
            if cause is not None and not isinstance(cause, requests.RequestException) and _is_method_missing(cause):
                raise DebugTraceUnavailableError(
                    tx_hash, reason=format_exception_message(cause), rpc_url=self.rpc_url
                ) from cause
            raise
        if not result or 'structLogs' not in result:
            raise DebugTraceUnavailableError(tx_hash, reason="response has no structLogs", rpc_url=self.rpc_url)
        logger.debug(f"Trace has {len(result['structLogs'])} struct logs")
        return result
