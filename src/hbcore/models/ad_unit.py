"""Ad unit and bid request models."""

from dataclasses import dataclass, field
from typing import Any, Optional

Size = tuple[int, int]


def _parse_sizes(raw: Any) -> tuple[Size, ...]:
    """
    Normalize publisher size declarations.

    Accepts a single [w, h] pair or a list of pairs.
    """
    if not raw:
        return ()
    if len(raw) == 2 and all(isinstance(v, int) for v in raw):
        return ((raw[0], raw[1]),)
    return tuple((int(s[0]), int(s[1])) for s in raw)


@dataclass(frozen=True)
class BidRequestSpec:
    """
    One configured bidder on an ad unit.

    Attributes:
        bidder: Bidder code, a case-exact key into the registry
        params: Bidder-specific parameters, opaque to the core
    """

    bidder: str
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {"bidder": self.bidder, "params": dict(self.params)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BidRequestSpec":
        """Create from dictionary."""
        return cls(bidder=data["bidder"], params=dict(data.get("params") or {}))


@dataclass(frozen=True)
class AdUnit:
    """
    A placement on the page eligible to receive competing bids.

    Immutable once an auction starts; bids keep their configured order.
    """

    code: str
    sizes: tuple[Size, ...] = ()
    bids: tuple[BidRequestSpec, ...] = ()
    media_types: dict[str, Any] = field(default_factory=dict)

    @property
    def bidder_codes(self) -> list[str]:
        """Bidder codes configured on this ad unit, in order."""
        return [bid.bidder for bid in self.bids]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result = {
            "code": self.code,
            "sizes": [list(size) for size in self.sizes],
            "bids": [bid.to_dict() for bid in self.bids],
        }
        if self.media_types:
            result["mediaTypes"] = dict(self.media_types)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AdUnit":
        """
        Create from the publisher-facing dictionary shape.

        Example:
            {"code": "div-1", "sizes": [300, 250],
             "bids": [{"bidder": "appnexus", "params": {"placementId": 1}}]}
        """
        return cls(
            code=str(data["code"]),
            sizes=_parse_sizes(data.get("sizes")),
            bids=tuple(BidRequestSpec.from_dict(b) for b in data.get("bids") or []),
            media_types=dict(data.get("mediaTypes") or data.get("media_types") or {}),
        )


@dataclass(frozen=True)
class BidPlacement:
    """A single ad unit slot in a client-side bidder request."""

    ad_unit_code: str
    params: dict[str, Any] = field(default_factory=dict)
    sizes: tuple[Size, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "adUnitCode": self.ad_unit_code,
            "params": dict(self.params),
            "sizes": [list(size) for size in self.sizes],
        }


@dataclass
class BidderRequest:
    """
    Client-path request handed to one bidder adapter.

    Holds every placement referencing the bidder across the auction.
    """

    bidder_code: str
    bids: list[BidPlacement] = field(default_factory=list)
    auction_id: str = ""
    timeout: int = 0

    @property
    def ad_unit_codes(self) -> list[str]:
        """Ad unit codes covered by this request."""
        return [b.ad_unit_code for b in self.bids]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "bidderCode": self.bidder_code,
            "auctionId": self.auction_id,
            "timeout": self.timeout,
            "bids": [b.to_dict() for b in self.bids],
        }


@dataclass
class AggregatedS2SRequest:
    """
    Single request sent to the server-side aggregation adapter.

    Built fresh per auction. ad_units holds each ad unit with at least one
    S2S-routed bidder, whole and in original order.
    """

    tid: str
    ad_units: list[AdUnit] = field(default_factory=list)
    bidders: list[str] = field(default_factory=list)
    endpoint: str = ""
    timeout: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON payload posted to the S2S endpoint."""
        return {
            "tid": self.tid,
            "timeout_millis": self.timeout,
            "bidders": list(self.bidders),
            "ad_units": [unit.to_dict() for unit in self.ad_units],
        }


@dataclass
class BidResponse:
    """A bid returned by an adapter."""

    bidder_code: str
    ad_unit_code: str
    cpm: float = 0.0
    width: int = 0
    height: int = 0
    ad: Optional[str] = None
    creative_id: Optional[str] = None
    currency: str = "USD"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "bidderCode": self.bidder_code,
            "adUnitCode": self.ad_unit_code,
            "cpm": self.cpm,
            "width": self.width,
            "height": self.height,
            "ad": self.ad,
            "creativeId": self.creative_id,
            "currency": self.currency,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BidResponse":
        """Create from an S2S response bid object."""
        return cls(
            bidder_code=data.get("bidder") or data.get("bidder_code", ""),
            ad_unit_code=data.get("code") or data.get("ad_unit_code", ""),
            cpm=float(data.get("price", data.get("cpm", 0.0))),
            width=int(data.get("width", 0)),
            height=int(data.get("height", 0)),
            ad=data.get("adm") or data.get("ad"),
            creative_id=data.get("creative_id"),
            currency=data.get("currency", "USD"),
        )
