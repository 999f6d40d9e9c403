"""
HTTP adapter servicing the server-side (S2S) bidding path.

Posts the aggregated request to the aggregation endpoint and turns the
returned bids into BidResponse objects.
"""

import json
import time
from collections.abc import Callable
from typing import Optional

import requests

from ..logging import http_logger
from ..models.ad_unit import AggregatedS2SRequest, BidResponse

DEFAULT_S2S_ENDPOINT = "https://prebid.adnxs.com/pbs/v1/auction"


class PrebidServerAdapter:
    """
    S2S adapter: one POST per auction carrying every S2S-routed ad unit.

    Register it under the code named by S2SConfig.adapter.
    """

    bidder_code = "prebidServer"

    def __init__(
        self,
        endpoint: Optional[str] = None,
        session: Optional[requests.Session] = None,
        on_bid: Optional[Callable[[BidResponse], None]] = None,
    ):
        """
        Initialize the adapter.

        Args:
            endpoint: Fallback endpoint when the request carries none
            session: requests Session (a new one if not provided)
            on_bid: Side-channel callback invoked for each parsed bid
        """
        self.endpoint = endpoint or DEFAULT_S2S_ENDPOINT
        self.session = session or requests.Session()
        self.on_bid = on_bid
        self._logger = http_logger().bind(adapter=self.bidder_code)

    def call_bids(self, request: AggregatedS2SRequest) -> list[BidResponse]:
        """Send the aggregated request and return the parsed bids."""
        url = request.endpoint or self.endpoint
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        start = time.time()
        try:
            response = self.session.post(
                url,
                json=request.to_dict(),
                headers=headers,
                timeout=request.timeout / 1000.0 if request.timeout else None,
            )
        except requests.Timeout:
            self._logger.warning(
                "S2S request timed out", tid=request.tid, timeout_ms=request.timeout
            )
            return []
        except requests.RequestException as e:
            self._logger.error("S2S request failed", tid=request.tid, error=str(e))
            return []

        latency = (time.time() - start) * 1000
        self._logger.debug(
            "S2S response received",
            tid=request.tid,
            status_code=response.status_code,
            latency_ms=round(latency, 2),
        )

        if response.status_code == 204 or not response.content:
            return []
        if response.status_code != 200:
            self._logger.warning(
                "S2S endpoint returned error status",
                tid=request.tid,
                status_code=response.status_code,
            )
            return []

        try:
            body = response.json()
        except json.JSONDecodeError:
            self._logger.error(
                "S2S response was not valid JSON",
                tid=request.tid,
                response_text=response.text,
            )
            return []

        bids = [BidResponse.from_dict(b) for b in body.get("bids", [])]
        if self.on_bid:
            for bid in bids:
                self.on_bid(bid)
        return bids
