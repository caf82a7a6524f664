"""
Memoized contract bytecode lookups.

One ``ContractCodeCache`` lives for exactly one transaction's extraction.
Each distinct address is fetched at most once, including when several
threads ask for it at the same time.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, List, Optional

from ..utils.logging import get_logger
from .address import Address, AddressLike

logger = get_logger('code_cache')

CodeFetcher = Callable[[Address], bytes]


class ContractCodeCache:
    """Fetch-once bytecode cache keyed by canonical address.

    An entry is a ``Future`` created when the first fetch starts, so "not
    fetched yet" (no entry) is never confused with "fetched, no code"
    (an entry resolved to ``b""``).
    """

    def __init__(self, fetch: CodeFetcher):
        self._fetch = fetch
        self._entries: Dict[Address, Future] = {}
        self._lock = threading.Lock()
        self.fetch_count = 0

    def ensure_code(self, address: AddressLike) -> bytes:
        """Return the code at ``address``, fetching it on first use.

        Raises whatever the fetcher raises; a failed fetch is not cached.
        """
        address = Address(address)
        with self._lock:
            entry = self._entries.get(address)
            owner = entry is None
            if owner:
                entry = Future()
                self._entries[address] = entry
                self.fetch_count += 1

        if not owner:
            return entry.result()

        logger.debug(f"Fetching code for {address}")
        try:
            code = bytes(self._fetch(address) or b'')
        except BaseException as exc:
            with self._lock:
                del self._entries[address]
                self.fetch_count -= 1
            entry.set_exception(exc)
            raise
        entry.set_result(code)
        logger.debug(f"Cached {len(code)} bytes of code for {address}")
        return code

    def prefetch(self, addresses: Iterable[AddressLike], max_workers: int = 4) -> int:
        """Fetch code for many addresses concurrently.

        Addresses already cached or in flight are skipped. Returns the number
        of addresses that were not cached before the call. The first fetch
        error is re-raised after all submitted fetches finish.
        """
        pending: List[Address] = []
        seen = set()
        for raw in addresses:
            address = Address(raw)
            if address in seen or address in self:
                continue
            seen.add(address)
            pending.append(address)

        if not pending:
            return 0

        logger.debug(f"Prefetching code for {len(pending)} addresses with {max_workers} workers")
        first_error: Optional[BaseException] = None
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            futures = {executor.submit(self.ensure_code, address): address for address in pending}
            for future in as_completed(futures):
                exc = future.exception()
                if exc is not None and first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error
        return len(pending)

    def has_code(self, address: AddressLike) -> bool:
        """True once the code at ``address`` has been fetched successfully."""
        entry = self._entries.get(Address(address))
        return entry is not None and entry.done() and entry.exception() is None

    def get(self, address: AddressLike) -> Optional[bytes]:
        """Cached code, or ``None`` when the address was never fetched."""
        if not self.has_code(address):
            return None
        return self._entries[Address(address)].result()

    def __contains__(self, address: AddressLike) -> bool:
        return Address(address) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
