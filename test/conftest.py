"""Shared fixtures and builders for the evmsnap test suite."""

from typing import Any, Dict, List, Optional

import pytest

from evmsnap.core.address import Address
from evmsnap.core.code_cache import ContractCodeCache

ADDR_A = "0x" + "aa" * 20
ADDR_B = "0x" + "bb" * 20
ADDR_C = "0x" + "cc" * 20
ADDR_D = "0x" + "dd" * 20
SENDER = "0x" + "11" * 20

TX_HASH = "0x" + "ab" * 32

CODE_A = bytes.fromhex("6080604052")
CODE_B = bytes.fromhex("60016000")
CODE_C = bytes.fromhex("363d3d37")


def struct_log(op: str, *stack_top_first: int, depth: int = 1, pc: int = 0) -> Dict[str, Any]:
    """A geth struct log; geth lists the stack bottom first."""
    return {
        "pc": pc,
        "op": op,
        "gas": 100000,
        "gasCost": 3,
        "depth": depth,
        "stack": [hex(word) for word in reversed(stack_top_first)],
    }


def call_log(op: str, target: str, depth: int = 1) -> Dict[str, Any]:
    """A call-family struct log with ``target`` as the second stack word."""
    target_word = int(target, 16)
    if op in ("CALL", "CALLCODE"):
        # gas, address, value, argsOffset, argsSize, retOffset, retSize
        return struct_log(op, 50000, target_word, 0, 0, 0, 0, 0, depth=depth)
    # gas, address, argsOffset, argsSize, retOffset, retSize
    return struct_log(op, 50000, target_word, 0, 0, 0, 0, depth=depth)


class CountingFetcher:
    """Code fetcher backed by a dict that records every request."""

    def __init__(self, codes: Optional[Dict[str, bytes]] = None):
        self.codes = {Address(k): v for k, v in (codes or {}).items()}
        self.calls: List[Address] = []

    def __call__(self, address: Address) -> bytes:
        self.calls.append(address)
        return self.codes.get(address, b"")


class FakeNodeClient:
    """Stands in for NodeClient; serves canned transaction, block and trace."""

    def __init__(
        self,
        transaction: Dict[str, Any],
        block: Dict[str, Any],
        trace: Dict[str, Any],
        codes: Optional[Dict[str, bytes]] = None,
    ):
        self.transaction = transaction
        self.block = block
        self.trace = trace
        self.codes = {Address(k): v for k, v in (codes or {}).items()}
        self.code_requests: List[tuple] = []
        self.requested_blocks: List[Any] = []
        self.rpc_url = "http://fake-node"

    def check_connection(self) -> int:
        return self.transaction["blockNumber"]

    def get_transaction(self, tx_hash: str) -> Dict[str, Any]:
        return self.transaction

    def get_block(self, number) -> Dict[str, Any]:
        self.requested_blocks.append(number)
        return self.block

    def get_code(self, address, block_identifier=None) -> bytes:
        self.code_requests.append((Address(address), block_identifier))
        return self.codes.get(Address(address), b"")

    def trace_transaction(self, tx_hash: str, options=None) -> Dict[str, Any]:
        return self.trace


@pytest.fixture
def fetcher():
    return CountingFetcher({ADDR_A: CODE_A, ADDR_B: CODE_B, ADDR_C: CODE_C})


@pytest.fixture
def code_cache(fetcher):
    return ContractCodeCache(fetcher)


@pytest.fixture
def transaction():
    return {
        "hash": TX_HASH,
        "from": SENDER,
        "to": ADDR_A,
        "input": "0xa9059cbb",
        "value": 5,
        "blockNumber": 1234,
        "nonce": 7,
    }


@pytest.fixture
def block():
    return {
        "number": 1234,
        "timestamp": 1700000000,
        "hash": "0x" + "cd" * 32,
        "difficulty": 0,
    }


@pytest.fixture
def trace():
    return {
        "failed": False,
        "gas": 21000,
        "returnValue": "0000000000000000000000000000000000000000000000000000000000000001",
        "structLogs": [
            struct_log("SLOAD", 1, depth=1),
            struct_log("DUP1", 0xAA, depth=1),
            call_log("CALL", ADDR_B, depth=1),
            struct_log("SSTORE", 2, 0x22, depth=2),
            struct_log("STOP", depth=2),
            struct_log("SSTORE", 1, 0xBB, depth=1),
            struct_log("STOP", depth=1),
        ],
    }
