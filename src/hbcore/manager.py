"""
Adapter Manager - the single entry point for running an auction.

Wires the bidder registry, the S2S configuration store, the partitioner
and the dispatcher together.
"""

import os
import threading
from collections.abc import Callable, Sequence
from typing import Any, Optional

from .adapters.registry import BidderAdapter, BidderRegistry
from .config.s2s_config import S2SConfig, S2SConfigStore
from .dispatcher.dispatcher import Dispatcher
from .errors import ConfigurationError, InvalidAuctionInputError
from .logging import LogContext, auction_logger, config_logger, generate_auction_id
from .models.ad_unit import AdUnit
from .models.auction import Auction, AuctionState
from .partitioner.request_partitioner import RequestPartitioner

DEFAULT_AUCTION_TIMEOUT_MS = int(os.environ.get("AUCTION_TIMEOUT_MS", "3000"))

logger = auction_logger()


class AdapterManager:
    """
    Runs auctions across client-side adapters and the S2S path.

    Registration and configuration writes may happen between auctions.
    Each auction works from one snapshot of both, taken under a lock at
    the start of partitioning.
    """

    def __init__(
        self,
        registry: Optional[BidderRegistry] = None,
        s2s_store: Optional[S2SConfigStore] = None,
        dispatcher: Optional[Dispatcher] = None,
        partitioner: Optional[RequestPartitioner] = None,
        default_timeout: int = DEFAULT_AUCTION_TIMEOUT_MS,
    ):
        """
        Initialize the manager.

        Args:
            registry: Bidder registry (a fresh one if not provided)
            s2s_store: S2S configuration store (a fresh one if not provided)
            dispatcher: Dispatcher (a fresh one if not provided)
            partitioner: Request partitioner
            default_timeout: Timeout in ms when neither the call nor the
                S2S config supplies one
        """
        self.registry = registry or BidderRegistry()
        self.s2s_store = s2s_store or S2SConfigStore()
        self.dispatcher = dispatcher or Dispatcher()
        self.partitioner = partitioner or RequestPartitioner()
        self.default_timeout = default_timeout
        self._state_lock = threading.Lock()

    # =========================================
    # Registration and configuration
    # =========================================

    def register_bidder(self, code: str, adapter: BidderAdapter) -> None:
        """Register (or replace) the adapter for a bidder code."""
        with self._state_lock:
            self.registry.register(code, adapter)

    def alias_bidder(self, alias: str, code: str) -> None:
        """Expose an already registered adapter under another code."""
        with self._state_lock:
            self.registry.register_alias(alias, code)

    def replace_s2s_config(self, config: S2SConfig | dict[str, Any]) -> S2SConfig:
        """
        Replace the S2S configuration between auctions.

        Returns:
            The new active configuration

        Raises:
            ConfigurationError: If the configuration is invalid (previous kept)
        """
        with self._state_lock:
            return self.s2s_store.set_config(config)

    def set_s2s_config(self, config: S2SConfig | dict[str, Any]) -> bool:
        """
        Replace the S2S configuration.

        Invalid configuration is logged and the previous one kept; auctions
        carry on with it (or client-side only).

        Returns:
            True if the new configuration is active
        """
        try:
            self.replace_s2s_config(config)
            return True
        except ConfigurationError as e:
            config_logger().warning(
                "Rejected S2S configuration, keeping previous", error=str(e)
            )
            return False

    def get_s2s_config(self) -> S2SConfig:
        """Current S2S configuration (disabled sentinel if none)."""
        return self.s2s_store.get_config()

    def disable_s2s(self) -> None:
        """Turn the S2S path off."""
        with self._state_lock:
            self.s2s_store.disable()

    # =========================================
    # Auctions
    # =========================================

    def call_bids(
        self,
        ad_units: Optional[Sequence[AdUnit | dict[str, Any]]] = None,
        timeout: Optional[int] = None,
        auction_id: Optional[str] = None,
        on_complete: Optional[Callable[[Auction], None]] = None,
    ) -> Auction:
        """
        Run one auction.

        Args:
            ad_units: Ad units (AdUnit objects or their dict form)
            timeout: Per-call timeout override in milliseconds
            auction_id: Optional auction ID (generated if not provided)
            on_complete: Called with the auction once it reaches a
                terminal state

        Returns:
            The finished Auction

        Raises:
            InvalidAuctionInputError: If ad_units is missing or malformed
        """
        units = self._parse_ad_units(ad_units)
        if timeout is not None and (
            isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0
        ):
            raise InvalidAuctionInputError(
                f"timeout must be a positive integer, got {timeout!r}"
            )

        with self._state_lock:
            adapters = self.registry.snapshot()
            s2s_config = self.s2s_store.get_config()

        if timeout is None:
            timeout = s2s_config.timeout if s2s_config.is_active else self.default_timeout

        auction = Auction(
            auction_id=auction_id or generate_auction_id(),
            ad_units=units,
            timeout=timeout,
        )

        with LogContext(auction.auction_id, ad_units=len(units)):
            logger.info("Auction created", timeout_ms=timeout)

            partition = self.partitioner.partition(
                units,
                s2s_config,
                adapters,
                auction_id=auction.auction_id,
                timeout=timeout,
            )
            auction.dropped_ad_units = list(partition.dropped_ad_units)
            auction.transition(AuctionState.PARTITIONED)

            self.dispatcher.dispatch(auction, partition, adapters)

        if on_complete:
            on_complete(auction)
        return auction

    @staticmethod
    def _parse_ad_units(
        ad_units: Optional[Sequence[AdUnit | dict[str, Any]]],
    ) -> list[AdUnit]:
        """Validate and normalize top-level auction input."""
        if ad_units is None:
            raise InvalidAuctionInputError("call_bids requires ad_units")
        if isinstance(ad_units, (str, bytes, dict)) or not isinstance(
            ad_units, Sequence
        ):
            raise InvalidAuctionInputError("ad_units must be a list of ad units")

        units = []
        for i, unit in enumerate(ad_units):
            if isinstance(unit, AdUnit):
                units.append(unit)
                continue
            if not isinstance(unit, dict):
                raise InvalidAuctionInputError(f"ad_units[{i}] is not an ad unit")
            try:
                units.append(AdUnit.from_dict(unit))
            except (KeyError, TypeError, ValueError) as e:
                raise InvalidAuctionInputError(
                    f"ad_units[{i}] is malformed: {e}"
                ) from e
        return units


# Global manager instance
_adapter_manager: Optional[AdapterManager] = None


def get_adapter_manager() -> AdapterManager:
    """Get the process-wide default adapter manager."""
    global _adapter_manager

    if _adapter_manager is None:
        _adapter_manager = AdapterManager()

    return _adapter_manager
