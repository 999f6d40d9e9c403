"""
Bidder Registry - maps bidder codes to registered adapter instances.

Adapters register themselves at module load, before any auction runs.
Entries are never removed; the last registration for a code wins.
"""

import threading
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any, Optional, Protocol, runtime_checkable

from ..errors import UnknownBidderError
from ..logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class BidderAdapter(Protocol):
    """
    Capability every bidder adapter exposes.

    request is an AggregatedS2SRequest on the S2S path and a BidderRequest
    on the client path. An adapter may return an iterable of BidResponse;
    anything else it reports through its own side channel.
    """

    def call_bids(self, request: Any) -> Optional[Iterable[Any]]:
        ...


class BidderRegistry:
    """
    Process-wide mapping from bidder code to adapter.

    Lookups are case-exact. Passed by reference into the dispatcher so
    auctions stay testable in isolation.
    """

    def __init__(self, adapters: Optional[Mapping[str, BidderAdapter]] = None):
        self._adapters: dict[str, BidderAdapter] = dict(adapters or {})
        self._lock = threading.Lock()

    def register(self, code: str, adapter: BidderAdapter) -> None:
        """
        Add or replace the adapter for a bidder code.

        Args:
            code: Bidder code
            adapter: Object exposing call_bids(request)
        """
        if not code:
            raise ValueError("Bidder code must be a non-empty string")
        if not callable(getattr(adapter, "call_bids", None)):
            raise TypeError(f"Adapter for {code!r} does not expose call_bids()")

        with self._lock:
            replaced = code in self._adapters
            self._adapters[code] = adapter

        logger.debug("Bidder adapter registered", bidder=code, replaced=replaced)

    def register_alias(self, alias: str, code: str) -> None:
        """
        Register an existing adapter under another bidder code.

        Raises:
            UnknownBidderError: If code has no registry entry
        """
        adapter = self.resolve(code)
        if adapter is None:
            raise UnknownBidderError(f"Cannot alias unregistered bidder: {code}")
        self.register(alias, adapter)
        logger.info("Bidder alias registered", alias=alias, bidder=code)

    def resolve(self, code: str) -> Optional[BidderAdapter]:
        """Get the adapter for a bidder code, or None."""
        return self._adapters.get(code)

    def codes(self) -> list[str]:
        """Registered bidder codes, in registration order."""
        with self._lock:
            return list(self._adapters)

    def snapshot(self) -> Mapping[str, BidderAdapter]:
        """Read-only copy of the current entries for one auction."""
        with self._lock:
            return MappingProxyType(dict(self._adapters))

    def __contains__(self, code: object) -> bool:
        return code in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)
