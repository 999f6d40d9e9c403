"""
Dispatcher - invokes the selected adapters for one auction.

Every adapter call is submitted before any is awaited, each on its own
worker thread, so no call waits for a pool slot. One deadline is shared by
the whole auction; calls still running at the deadline are left to finish
in the background and reported as late.
"""

import threading
import time
import warnings
from collections.abc import Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Optional

from ..errors import DispatchTimeout, UnregisteredBidderWarning
from ..logging import auction_logger, bidder_logger, in_current_context
from ..models.auction import AdapterPath, AdapterResponse, Auction, AuctionState
from ..partitioner.request_partitioner import PartitionResult

logger = auction_logger()

LateResponseHook = Callable[[Auction, AdapterResponse], None]


class Dispatcher:
    """
    Issues adapter calls for a partitioned auction.

    Each bidder code is invoked at most once per auction: one call with the
    aggregated request for the S2S adapter, one call per client bidder.

    A worker pool sized to the auction's planned calls is created per
    dispatch and released at the deadline. Threads of abandoned calls are
    not shared with later auctions.
    """

    def __init__(self, on_late_response: Optional[LateResponseHook] = None):
        """
        Initialize the dispatcher.

        Args:
            on_late_response: Called for responses arriving after the deadline
        """
        self.on_late_response = on_late_response
        self._lock = threading.Lock()
        # Pools with calls still running past their deadline -> pending count
        self._stragglers: dict[ThreadPoolExecutor, int] = {}

    def dispatch(
        self,
        auction: Auction,
        partition: PartitionResult,
        adapters: Mapping[str, Any],
    ) -> Auction:
        """
        Invoke adapters and wait for responses up to the auction timeout.

        Args:
            auction: Auction in the PARTITIONED state
            partition: Buckets produced by the partitioner
            adapters: Registry snapshot taken for this auction

        Returns:
            The auction, in COMPLETED or TIMED_OUT state
        """
        if auction.state != AuctionState.PARTITIONED:
            raise ValueError(
                f"Cannot dispatch auction in state {auction.state.value}"
            )

        calls = self._plan_calls(auction, partition, adapters)
        if not calls:
            auction.transition(AuctionState.DISPATCHED)
            auction.transition(AuctionState.COMPLETED)
            logger.info("Auction completed", responses=0)
            return auction

        executor = ThreadPoolExecutor(
            max_workers=len(calls), thread_name_prefix="hbcore-dispatch"
        )
        futures: dict[Future, str] = {}
        for code, path, adapter, request in calls:
            future = executor.submit(
                in_current_context(self._invoke), code, path, adapter, request
            )
            futures[future] = code
            auction.dispatched.append(code)

        auction.transition(AuctionState.DISPATCHED)
        logger.info(
            "Adapters dispatched",
            adapters=auction.dispatched,
            timeout_ms=auction.timeout,
        )

        done, not_done = wait(futures, timeout=auction.timeout / 1000.0)

        with self._lock:
            for future in done:
                auction.responses[futures[future]] = future.result()

            if not not_done:
                auction.transition(AuctionState.COMPLETED)
            else:
                pending = [futures[f] for f in futures if f in not_done]
                auction.timeout_error = DispatchTimeout(auction.timeout, pending)
                auction.transition(AuctionState.TIMED_OUT)
                self._stragglers[executor] = len(not_done)

        # Running calls finish on their own threads; no new work is accepted
        executor.shutdown(wait=False)

        if not_done:
            logger.warning(
                "Auction timed out",
                timeout_ms=auction.timeout,
                pending=auction.timeout_error.pending,
            )
            for future in not_done:
                future.add_done_callback(
                    lambda f, code=futures[future]: self._record_late(
                        auction, code, f, executor
                    )
                )
        else:
            logger.info("Auction completed", responses=len(auction.responses))

        return auction

    def _plan_calls(
        self,
        auction: Auction,
        partition: PartitionResult,
        adapters: Mapping[str, Any],
    ) -> list[tuple[str, AdapterPath, Any, Any]]:
        """Resolve adapters for both buckets, skipping unregistered bidders."""
        calls = []
        planned: set[str] = set()

        if partition.has_s2s:
            code = partition.s2s_adapter_code
            adapter = adapters.get(code)
            if adapter is None:
                self._skip_unregistered(auction, code)
            else:
                calls.append((code, AdapterPath.S2S, adapter, partition.s2s_request))
                planned.add(code)

        for code, request in partition.client_requests.items():
            if code in planned:
                logger.warning(
                    "Bidder code already dispatched this auction, skipping",
                    bidder=code,
                )
                continue
            adapter = adapters.get(code)
            if adapter is None:
                self._skip_unregistered(auction, code)
                continue
            calls.append((code, AdapterPath.CLIENT, adapter, request))
            planned.add(code)

        return calls

    @staticmethod
    def _skip_unregistered(auction: Auction, code: str) -> None:
        auction.skipped_bidders.append(code)
        bidder_logger(code).warning("Bidder not registered, skipping")
        warnings.warn(
            UnregisteredBidderWarning(f"Bidder not registered: {code}"),
            stacklevel=3,
        )

    @staticmethod
    def _invoke(
        code: str,
        path: AdapterPath,
        adapter: Any,
        request: Any,
    ) -> AdapterResponse:
        """Run one adapter call; failures land in the response slot."""
        log = bidder_logger(code)
        start = time.perf_counter()
        try:
            result = adapter.call_bids(request)
        except Exception as e:
            latency = (time.perf_counter() - start) * 1000
            log.error(
                "Adapter call failed",
                path=path.value,
                error=str(e),
                exc_info=True,
            )
            return AdapterResponse(
                adapter_code=code, path=path, error=str(e), latency_ms=latency
            )

        latency = (time.perf_counter() - start) * 1000
        bids = list(result) if result is not None else []
        log.debug(
            "Adapter call returned",
            path=path.value,
            bids=len(bids),
            latency_ms=round(latency, 2),
        )
        return AdapterResponse(
            adapter_code=code, path=path, bids=bids, latency_ms=latency
        )

    def _record_late(
        self,
        auction: Auction,
        code: str,
        future: Future,
        executor: ThreadPoolExecutor,
    ) -> None:
        """Keep a post-deadline response for reporting only."""
        response = future.result()
        with self._lock:
            auction.late_responses[code] = response
            remaining = self._stragglers.get(executor, 1) - 1
            if remaining > 0:
                self._stragglers[executor] = remaining
            else:
                self._stragglers.pop(executor, None)

        bidder_logger(code).info(
            "Late response received",
            auction_id=auction.auction_id,
            bids=len(response.bids),
        )
        if self.on_late_response:
            self.on_late_response(auction, response)

    @property
    def straggler_count(self) -> int:
        """Adapter calls still running past their auction's deadline."""
        with self._lock:
            return sum(self._stragglers.values())

    def shutdown(self, wait: bool = True) -> None:
        """Release pools of timed-out auctions, optionally joining their calls."""
        with self._lock:
            executors = list(self._stragglers)
        for executor in executors:
            executor.shutdown(wait=wait)
