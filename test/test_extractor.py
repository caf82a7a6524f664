"""End-to-end tests for StateExtractor against a fake node."""

import pytest

from evmsnap.core.address import Address
from evmsnap.extractor import StateExtractor, pre_state_block
from evmsnap.utils.exceptions import MalformedTraceError

from conftest import (
    ADDR_A,
    ADDR_B,
    ADDR_C,
    CODE_A,
    CODE_B,
    CODE_C,
    TX_HASH,
    FakeNodeClient,
    call_log,
    struct_log,
)

CODES = {ADDR_A: CODE_A, ADDR_B: CODE_B, ADDR_C: CODE_C}


def test_extracts_storage_and_code(transaction, block, trace):
    client = FakeNodeClient(transaction, block, trace, CODES)
    snapshot = StateExtractor(client).extract(TX_HASH)

    a = snapshot.states[Address(ADDR_A)]
    b = snapshot.states[Address(ADDR_B)]
    assert a.storage_before == {1: 0xAA}
    assert a.storage_after == {1: 0xBB}
    assert b.storage_before == {}
    assert b.storage_after == {2: 0x22}
    assert a.code == CODE_A
    assert b.code == CODE_B
    assert snapshot.context.status == 1
    assert snapshot.context.tx_hash == TX_HASH


def test_code_is_read_at_the_parent_block(transaction, block, trace):
    client = FakeNodeClient(transaction, block, trace, CODES)
    StateExtractor(client).extract(TX_HASH)
    assert client.requested_blocks == [1234]
    assert {blk for _, blk in client.code_requests} == {1233}
    assert len(client.code_requests) == 2


def test_unprefixed_hash_is_accepted(transaction, block, trace):
    client = FakeNodeClient(transaction, block, trace, CODES)
    snapshot = StateExtractor(client).extract(TX_HASH[2:].upper())
    assert snapshot.context.tx_hash == TX_HASH


def test_contract_creation_seeds_created_address(transaction, block, trace):
    transaction["to"] = None
    transaction["creates"] = ADDR_C
    trace["structLogs"] = [
        struct_log("SSTORE", 0x0, 0x1),
        struct_log("STOP"),
    ]
    client = FakeNodeClient(transaction, block, trace, CODES)
    snapshot = StateExtractor(client).extract(TX_HASH)

    assert snapshot.context.to == Address(ADDR_C)
    assert snapshot.states[Address(ADDR_C)].storage_after == {0: 1}
    assert snapshot.states[Address(ADDR_C)].code == CODE_C


def test_prefetch_fetches_each_address_once(transaction, block, trace):
    trace["structLogs"] = [
        call_log("CALL", ADDR_B, depth=1),
        call_log("DELEGATECALL", ADDR_C, depth=2),
        struct_log("STOP", depth=3),
        struct_log("STOP", depth=2),
        call_log("CALL", ADDR_B, depth=1),
        struct_log("STOP", depth=2),
        struct_log("STOP", depth=1),
    ]
    client = FakeNodeClient(transaction, block, trace, CODES)
    snapshot = StateExtractor(client, prefetch_workers=4).extract(TX_HASH)

    fetched = sorted(address for address, _ in client.code_requests)
    assert fetched == sorted(Address(a) for a in (ADDR_A, ADDR_B, ADDR_C))
    assert snapshot.states[Address(ADDR_C)].code == CODE_C


def test_malformed_trace_aborts(transaction, block, trace):
    trace["structLogs"] = [struct_log("SSTORE", 0x1)]
    client = FakeNodeClient(transaction, block, trace, CODES)
    with pytest.raises(MalformedTraceError):
        StateExtractor(client).extract(TX_HASH)


def test_invocations_do_not_share_state(transaction, block, trace):
    client = FakeNodeClient(transaction, block, trace, CODES)
    extractor = StateExtractor(client)
    first = extractor.extract(TX_HASH)
    second = extractor.extract(TX_HASH)
    assert first.states is not second.states
    assert len(client.code_requests) == 4


@pytest.mark.parametrize("block_number, expected", [(1234, 1233), (0, 0), (None, None)])
def test_pre_state_block(block_number, expected):
    assert pre_state_block(block_number) == expected
