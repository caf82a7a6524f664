"""
State extraction for a single transaction.

Ties the node client to the context builder, the trace walker and the
output assembler. Every call to ``extract`` builds its own cache, walker and
result; nothing is shared between transactions.
"""

from typing import Optional

from .rpc.client import NodeClient, normalize_tx_hash
from .utils.exceptions import TransactionError
from .utils.logging import get_logger
from .core.assembler import OutputAssembler, StateSnapshot
from .core.code_cache import ContractCodeCache
from .core.context_builder import ContextBuilder
from .core.trace_walker import TraceWalker, collect_call_targets, parse_struct_logs

logger = get_logger('extractor')


def pre_state_block(block_number: Optional[int]) -> Optional[int]:
    """Block whose post-state is the state the transaction's block starts from."""
    if block_number is None:
        return None
    return max(block_number - 1, 0)


class StateExtractor:
    """
    Extracts the partial pre/post state of a transaction from a node.
    """

    def __init__(self, client: NodeClient, prefetch_workers: int = 1):
        self.client = client
        self.prefetch_workers = prefetch_workers
        self.context_builder = ContextBuilder()
        self.assembler = OutputAssembler()

    def extract(self, tx_hash: str) -> StateSnapshot:
        tx_hash = normalize_tx_hash(tx_hash)
        logger.info(f"Loading transaction {tx_hash}")

        transaction = self.client.get_transaction(tx_hash)
        block = self.client.get_block(transaction['blockNumber'])
        trace = self.client.trace_transaction(tx_hash)

        context = self.context_builder.build(transaction, block, trace)
        if context.tx_hash is None:
            context.tx_hash = tx_hash

        struct_logs = trace.get('structLogs')
        if struct_logs is None:
            raise TransactionError("Trace has no structLogs", tx_hash=tx_hash)
        logs = parse_struct_logs(struct_logs)

        code_cache = self.create_code_cache(context.block_number)
        if self.prefetch_workers > 1:
            targets = [context.storage_owner] + collect_call_targets(logs)
            fetched = code_cache.prefetch(targets, max_workers=self.prefetch_workers)
            logger.debug(f"Prefetched code for {fetched} contracts")

        walker = TraceWalker(code_cache)
        walk = walker.walk(logs, context.storage_owner)

        snapshot = self.assembler.assemble(context, walk)
        logger.info(
            f"Extracted {len(snapshot.states)} contracts from {walk.steps} steps "
            f"({code_cache.fetch_count} code fetches)"
        )
        return snapshot

    def create_code_cache(self, block_number: Optional[int]) -> ContractCodeCache:
        """Cache bound to code as of the end of the block before ``block_number``."""
        code_block = pre_state_block(block_number)
        return ContractCodeCache(lambda address: self.client.get_code(address, code_block))
