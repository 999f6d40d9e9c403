"""
Request Partitioner

Splits an auction's bids between the server-side (S2S) path and the
client-side path.

Rules:
1. S2S disabled, or its adapter code unresolved: everything goes client-side.
2. An ad unit with any S2S-routed bidder goes, whole, into the aggregated
   S2S request, in original ad-unit order.
3. Every bid whose bidder is not S2S-routed is grouped per bidder code for
   the client path. An ad unit can therefore sit on both paths.
4. Ad units with no bid that either path can serve (no bids, or only
   bidders without a registered adapter) are reported as dropped, without
   error.

max_bids caps the S2S bidder list to a prefix in declaration order.
Capped-out bidders fall through to the client path.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

from ..config.s2s_config import S2SConfig
from ..logging import auction_logger
from ..models.ad_unit import AdUnit, AggregatedS2SRequest, BidderRequest, BidPlacement
from ..utils.id_generator import generate_transaction_id

logger = auction_logger()


@dataclass
class PartitionResult:
    """Outcome of partitioning one auction's ad units."""

    s2s_request: Optional[AggregatedS2SRequest] = None
    s2s_adapter_code: Optional[str] = None
    client_requests: dict[str, BidderRequest] = field(default_factory=dict)
    dropped_ad_units: list[str] = field(default_factory=list)

    @property
    def has_s2s(self) -> bool:
        return self.s2s_request is not None and bool(self.s2s_request.ad_units)

    @property
    def client_bidder_codes(self) -> list[str]:
        return list(self.client_requests)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "s2s_adapter_code": self.s2s_adapter_code,
            "s2s_ad_units": (
                [u.code for u in self.s2s_request.ad_units] if self.s2s_request else []
            ),
            "s2s_bidders": list(self.s2s_request.bidders) if self.s2s_request else [],
            "client": {
                code: req.ad_unit_codes for code, req in self.client_requests.items()
            },
            "dropped_ad_units": list(self.dropped_ad_units),
        }


class RequestPartitioner:
    """Deterministic split of bids into S2S and client buckets."""

    def partition(
        self,
        ad_units: Sequence[AdUnit],
        s2s_config: S2SConfig,
        adapters: Mapping[str, Any],
        auction_id: str = "",
        timeout: int = 0,
    ) -> PartitionResult:
        """
        Partition ad units for one auction.

        Args:
            ad_units: All ad units of the auction
            s2s_config: S2S configuration snapshot
            adapters: Registry snapshot (bidder code -> adapter)
            auction_id: Auction identifier stamped on client requests
            timeout: Auction timeout in milliseconds

        Returns:
            PartitionResult with both buckets
        """
        result = PartitionResult()

        live_units = [unit for unit in ad_units if unit.bids]

        s2s_bidders = self._resolve_s2s_bidders(s2s_config, adapters)

        if s2s_bidders:
            s2s_units = [
                unit
                for unit in live_units
                if any(bid.bidder in s2s_bidders for bid in unit.bids)
            ]
            if s2s_units:
                result.s2s_adapter_code = s2s_config.adapter
                result.s2s_request = AggregatedS2SRequest(
                    tid=generate_transaction_id(),
                    ad_units=s2s_units,
                    bidders=list(s2s_bidders),
                    endpoint=s2s_config.endpoint,
                    timeout=timeout,
                )

        # dicts keep first-appearance order, so dispatch order is stable
        for unit in live_units:
            for bid in unit.bids:
                if bid.bidder in s2s_bidders:
                    continue
                request = result.client_requests.get(bid.bidder)
                if request is None:
                    request = BidderRequest(
                        bidder_code=bid.bidder,
                        auction_id=auction_id,
                        timeout=timeout,
                    )
                    result.client_requests[bid.bidder] = request
                request.bids.append(
                    BidPlacement(
                        ad_unit_code=unit.code,
                        params=dict(bid.params),
                        sizes=unit.sizes,
                    )
                )

        s2s_codes = (
            {u.code for u in result.s2s_request.ad_units} if result.s2s_request else set()
        )
        result.dropped_ad_units = [
            unit.code
            for unit in ad_units
            if unit.code not in s2s_codes
            and not any(bid.bidder in adapters for bid in unit.bids)
        ]

        logger.debug(
            "Ad units partitioned",
            s2s_ad_units=len(result.s2s_request.ad_units) if result.s2s_request else 0,
            client_bidders=result.client_bidder_codes,
            dropped=result.dropped_ad_units,
        )
        return result

    @staticmethod
    def _resolve_s2s_bidders(
        s2s_config: S2SConfig,
        adapters: Mapping[str, Any],
    ) -> tuple[str, ...]:
        """Effective S2S bidder codes, empty when the path is unavailable."""
        if not s2s_config.is_active:
            return ()
        if s2s_config.adapter not in adapters:
            logger.warning(
                "S2S adapter not registered, routing all bids client-side",
                adapter=s2s_config.adapter,
            )
            return ()
        return s2s_config.effective_bidders
