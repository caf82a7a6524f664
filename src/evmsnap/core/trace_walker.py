"""
Storage attribution by replaying a struct-log trace.

``debug_traceTransaction`` (with the default struct logger) reports one
record per executed opcode: the opcode name, the operand stack before the
opcode runs and the call depth. ``TraceWalker`` walks those records once, in
order, and keeps an owner stack: the address whose storage SLOAD/SSTORE
touch in the current frame. Plain calls (CALL, STATICCALL) switch storage to
the callee; delegated calls (DELEGATECALL, CALLCODE) run foreign code against
the caller's storage, so the current owner is pushed again.

SLOAD values are not on the stack when the opcode executes; they are read
from the top of the stack of the following record, provided that record is in
the same frame and the SLOAD itself did not fault.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..utils.exceptions import MalformedTraceError
from ..utils.logging import get_logger, log_trace
from .address import Address, AddressLike
from .code_cache import ContractCodeCache

logger = get_logger('walker')

OP_SSTORE = 'SSTORE'
OP_SLOAD = 'SLOAD'
OP_CALL = 'CALL'
OP_STATICCALL = 'STATICCALL'
OP_DELEGATECALL = 'DELEGATECALL'
OP_CALLCODE = 'CALLCODE'

PLAIN_CALLS = frozenset({OP_CALL, OP_STATICCALL})
DELEGATED_CALLS = frozenset({OP_DELEGATECALL, OP_CALLCODE})
CALL_OPCODES = PLAIN_CALLS | DELEGATED_CALLS

# All call-family opcodes take the target address as the second stack word
CALL_TARGET_POSITION = 1


def parse_word(value: Any) -> int:
    """Convert a stack word as reported by a node into an int."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid stack word: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, 'big')
    if isinstance(value, str):
        text = value.strip()
        if text.startswith(('0x', '0X')):
            text = text[2:]
        # Older geth releases emit bare 64-digit hex words
        return int(text or '0', 16)
    raise ValueError(f"Invalid stack word: {value!r}")


@dataclass(frozen=True)
class OpLog:
    """One struct-log record. ``stack`` is ordered top-of-stack first."""
    op: str
    stack: Tuple[int, ...]
    depth: int
    pc: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def from_struct_log(cls, raw: Mapping[str, Any], step: Optional[int] = None) -> "OpLog":
        """Build an OpLog from a geth struct log (stack bottom first)."""
        try:
            op = raw['op']
            depth = int(raw['depth'])
            stack = tuple(parse_word(word) for word in reversed(raw.get('stack') or []))
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedTraceError(f"Unreadable struct log: {e}", step=step)
        return cls(
            op=str(op).upper(),
            stack=stack,
            depth=depth,
            pc=raw.get('pc'),
            error=raw.get('error') or None,
        )

    def peek(self, position: int = 0, step: Optional[int] = None) -> int:
        """Return the stack word ``position`` places below the top."""
        if position >= len(self.stack):
            raise MalformedTraceError(
                f"{self.op} reads stack position {position} but only "
                f"{len(self.stack)} words are available",
                step=step,
                op=self.op,
            )
        return self.stack[position]


def parse_struct_logs(struct_logs: Iterable[Mapping[str, Any]]) -> List[OpLog]:
    """Convert raw ``structLogs`` entries into OpLogs."""
    return [OpLog.from_struct_log(raw, step) for step, raw in enumerate(struct_logs)]


def collect_call_targets(logs: Sequence[OpLog]) -> List[Address]:
    """Distinct call-family targets in trace order."""
    targets: List[Address] = []
    seen = set()
    for step, log in enumerate(logs):
        if log.op not in CALL_OPCODES:
            continue
        target = Address.from_stack_word(log.peek(CALL_TARGET_POSITION, step))
        if target not in seen:
            seen.add(target)
            targets.append(target)
    return targets


@dataclass
class ContractState:
    """Storage touched in one contract, plus its code once fetched.

    ``code`` is None until fetched; an account without code holds ``b""``.
    """
    address: Address
    code: Optional[bytes] = None
    storage_before: Dict[int, int] = field(default_factory=dict)
    storage_after: Dict[int, int] = field(default_factory=dict)

    def record_read(self, slot: int, value: int):
        if slot not in self.storage_before and slot not in self.storage_after:
            self.storage_before[slot] = value
        self.storage_after[slot] = value

    def record_write(self, slot: int, value: int):
        self.storage_after[slot] = value


@dataclass
class TraceDiagnostic:
    """A recoverable oddity met during the walk."""
    step: int
    op: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"step": self.step, "op": self.op, "message": self.message}


@dataclass
class WalkResult:
    """Per-address storage state produced by one walk."""
    states: Dict[Address, ContractState]
    diagnostics: List[TraceDiagnostic] = field(default_factory=list)
    steps: int = 0
    max_owner_depth: int = 1


class TraceWalker:
    """Replays struct logs and attributes storage accesses to contracts."""

    def __init__(self, code_cache: ContractCodeCache):
        self.code_cache = code_cache
        self._states: Dict[Address, ContractState] = {}
        self._owners: List[Address] = []
        self._depth = 1
        self._diagnostics: List[TraceDiagnostic] = []
        self._max_owner_depth = 1

    @property
    def current_owner(self) -> Address:
        return self._owners[-1]

    @property
    def owner_stack(self) -> Tuple[Address, ...]:
        return tuple(self._owners)

    def walk(self, logs: Sequence[OpLog], initial_owner: AddressLike) -> WalkResult:
        """Replay ``logs`` with ``initial_owner`` as the outermost storage owner."""
        if initial_owner is None:
            raise ValueError("initial_owner is required")

        owner = Address(initial_owner)
        self._states = {}
        self._owners = [owner]
        self._depth = 1
        self._diagnostics = []
        self._max_owner_depth = 1

        self._load_code(owner)
        logger.debug(f"Walking {len(logs)} struct logs, initial owner {owner}")

        for step, log in enumerate(logs):
            self._unwind(log, step)
            self._dispatch(logs, step, log)

        logger.debug(
            f"Walk finished: {len(self._states)} contracts, "
            f"{len(self._diagnostics)} diagnostics"
        )
        return WalkResult(
            states=self._states,
            diagnostics=self._diagnostics,
            steps=len(logs),
            max_owner_depth=self._max_owner_depth,
        )

    def state_for(self, address: AddressLike) -> ContractState:
        """Get or create the ContractState for ``address``."""
        address = Address(address)
        state = self._states.get(address)
        if state is None:
            state = ContractState(address=address)
            self._states[address] = state
        return state

    def _unwind(self, log: OpLog, step: int):
        if log.depth < 1:
            raise MalformedTraceError(
                f"Invalid call depth {log.depth}", step=step, op=log.op
            )
        if log.depth >= self._depth:
            return

        frames = self._depth - log.depth
        if frames >= len(self._owners):
            raise MalformedTraceError(
                f"Depth drop from {self._depth} to {log.depth} would pop "
                f"{frames} of {len(self._owners)} storage owners",
                step=step,
                op=log.op,
            )
        del self._owners[-frames:]
        self._depth = log.depth
        log_trace(logger, f"[{step}] return to depth {log.depth}, owner {self.current_owner}")

    def _dispatch(self, logs: Sequence[OpLog], step: int, log: OpLog):
        op = log.op
        if op == OP_SSTORE:
            slot = log.peek(0, step)
            value = log.peek(1, step)
            self.state_for(self.current_owner).record_write(slot, value)
            log_trace(logger, f"[{step}] SSTORE {self.current_owner} {slot:#x} = {value:#x}")

        elif op == OP_SLOAD:
            slot = log.peek(0, step)
            reason = self._lookahead_problem(logs, step, log)
            if reason:
                message = f"SLOAD of slot {slot:#x} {reason}; value unknown"
                logger.warning(message)
                self._diagnostics.append(TraceDiagnostic(step=step, op=op, message=message))
                return
            value = logs[step + 1].peek(0, step + 1)
            self.state_for(self.current_owner).record_read(slot, value)
            log_trace(logger, f"[{step}] SLOAD {self.current_owner} {slot:#x} -> {value:#x}")

        elif op in PLAIN_CALLS:
            target = Address.from_stack_word(log.peek(CALL_TARGET_POSITION, step))
            self._depth += 1
            self._load_code(target)
            self._push(target)
            log_trace(logger, f"[{step}] {op} {target}")

        elif op in DELEGATED_CALLS:
            target = Address.from_stack_word(log.peek(CALL_TARGET_POSITION, step))
            self._depth += 1
            self._load_code(target)
            self._push(self.current_owner)
            log_trace(logger, f"[{step}] {op} {target} in storage of {self.current_owner}")

    @staticmethod
    def _lookahead_problem(logs: Sequence[OpLog], step: int, log: OpLog) -> Optional[str]:
        """Why the next record cannot supply the SLOAD result, or None."""
        if log.error:
            return f"faulted ({log.error})"
        if step + 1 >= len(logs):
            return "is the last trace entry"
        following = logs[step + 1]
        if following.depth != log.depth:
            return f"is followed by an entry at depth {following.depth}, not {log.depth}"
        return None

    def _push(self, owner: Address):
        self._owners.append(owner)
        self.state_for(owner)
        self._max_owner_depth = max(self._max_owner_depth, len(self._owners))

    def _load_code(self, address: Address):
        state = self.state_for(address)
        if state.code is None:
            state.code = self.code_cache.ensure_code(address)
