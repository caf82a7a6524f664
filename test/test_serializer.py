"""Tests for OutputAssembler and SnapshotSerializer."""

import json

from evmsnap.core.address import Address
from evmsnap.core.assembler import OutputAssembler
from evmsnap.core.context_builder import ContextBuilder
from evmsnap.core.serializer import SnapshotSerializer, to_word
from evmsnap.core.trace_walker import ContractState, TraceDiagnostic, WalkResult

from conftest import ADDR_A, ADDR_B, CODE_A, SENDER


def make_snapshot(transaction, block, trace, diagnostics=None):
    context = ContextBuilder().build(transaction, block, trace)
    a = ContractState(address=Address(ADDR_A), code=CODE_A,
                      storage_before={1: 0xAA}, storage_after={1: 0xBB})
    b = ContractState(address=Address(ADDR_B), storage_after={2: 0x22})
    walk = WalkResult(states={a.address: a, b.address: b}, diagnostics=diagnostics or [])
    return OutputAssembler().assemble(context, walk)


def test_assembler_composes_without_copying_states(transaction, block, trace):
    context = ContextBuilder().build(transaction, block, trace)
    states = {Address(ADDR_A): ContractState(address=Address(ADDR_A))}
    snapshot = OutputAssembler().assemble(context, WalkResult(states=states))
    assert snapshot.context is context
    assert snapshot.states is states
    assert snapshot.diagnostics == []


def test_to_word():
    assert to_word(1) == "0x" + "0" * 63 + "1"
    assert len(to_word(2 ** 256 - 1)) == 66


def test_record_shape(transaction, block, trace):
    record = SnapshotSerializer().serialize(make_snapshot(transaction, block, trace))

    assert set(record) == {"context", "states"}
    assert record["context"] == {
        "from": Address(SENDER),
        "to": Address(ADDR_A),
        "input": "0xa9059cbb",
        "value": 5,
        "block_number": 1234,
        "timestamp": 1700000000,
        "block_hash": "0x" + "cd" * 32,
        "block_difficulty": 0,
        "status": 1,
        "return": "0x" + "00" * 31 + "01",
    }

    state_a = record["states"][Address(ADDR_A)]
    assert state_a == {
        "address": Address(ADDR_A),
        "partial_storage_before": {to_word(1): to_word(0xAA)},
        "partial_storage_after": {to_word(1): to_word(0xBB)},
        "code": "0x6080604052",
    }
    assert record["states"][Address(ADDR_B)]["code"] is None


def test_diagnostics_only_when_present(transaction, block, trace):
    diagnostic = TraceDiagnostic(step=3, op="SLOAD", message="no successor")
    record = make_snapshot(transaction, block, trace, [diagnostic]).to_dict()
    assert record["diagnostics"] == [{"step": 3, "op": "SLOAD", "message": "no successor"}]


def test_to_json_is_valid_json(transaction, block, trace):
    text = SnapshotSerializer(indent=None).to_json(make_snapshot(transaction, block, trace))
    assert "\n" not in text
    assert json.loads(text)["context"]["status"] == 1


def test_write_creates_parent_directories(tmp_path, transaction, block, trace):
    path = tmp_path / "out" / "snapshot.json"
    SnapshotSerializer().write(make_snapshot(transaction, block, trace), str(path))
    data = json.loads(path.read_text())
    assert Address(ADDR_B) in data["states"]
