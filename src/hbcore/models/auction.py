"""Auction lifecycle model."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from .ad_unit import AdUnit, BidResponse

if TYPE_CHECKING:
    from ..errors import DispatchTimeout


class AuctionState(str, Enum):
    """Auction lifecycle states."""

    CREATED = "created"
    PARTITIONED = "partitioned"
    DISPATCHED = "dispatched"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (AuctionState.COMPLETED, AuctionState.TIMED_OUT)


# Allowed forward transitions; terminal states have none.
_TRANSITIONS = {
    AuctionState.CREATED: {AuctionState.PARTITIONED},
    AuctionState.PARTITIONED: {AuctionState.DISPATCHED},
    AuctionState.DISPATCHED: {AuctionState.COMPLETED, AuctionState.TIMED_OUT},
    AuctionState.COMPLETED: set(),
    AuctionState.TIMED_OUT: set(),
}


class AdapterPath(str, Enum):
    """Execution path an adapter call was dispatched on."""

    S2S = "s2s"
    CLIENT = "client"


@dataclass
class AdapterResponse:
    """Response slot for one adapter invocation."""

    adapter_code: str
    path: AdapterPath
    bids: list[BidResponse] = field(default_factory=list)
    error: Optional[str] = None
    latency_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "adapter_code": self.adapter_code,
            "path": self.path.value,
            "bids": [b.to_dict() for b in self.bids],
            "error": self.error,
            "latency_ms": round(self.latency_ms, 2),
        }


@dataclass
class Auction:
    """
    One call_bids invocation, from creation to a terminal state.

    responses holds results that arrived before the deadline; results that
    arrive afterwards go to late_responses and never count for this auction.
    """

    auction_id: str
    ad_units: list[AdUnit]
    timeout: int
    state: AuctionState = AuctionState.CREATED
    created_at: datetime = field(default_factory=datetime.utcnow)

    dispatched: list[str] = field(default_factory=list)
    responses: dict[str, AdapterResponse] = field(default_factory=dict)
    late_responses: dict[str, AdapterResponse] = field(default_factory=dict)
    skipped_bidders: list[str] = field(default_factory=list)
    dropped_ad_units: list[str] = field(default_factory=list)
    timeout_error: Optional["DispatchTimeout"] = None

    def transition(self, new_state: AuctionState) -> None:
        """Move to new_state, rejecting anything but a forward step."""
        if new_state not in _TRANSITIONS[self.state]:
            raise ValueError(
                f"Invalid auction transition: {self.state.value} -> {new_state.value}"
            )
        self.state = new_state

    @property
    def is_finished(self) -> bool:
        return self.state.is_terminal

    @property
    def timed_out(self) -> bool:
        return self.state == AuctionState.TIMED_OUT

    @property
    def bids(self) -> list[BidResponse]:
        """All bids that arrived within the deadline."""
        return [bid for resp in self.responses.values() for bid in resp.bids]

    @property
    def pending(self) -> list[str]:
        """Adapters dispatched but not yet answered."""
        return [
            code
            for code in self.dispatched
            if code not in self.responses and code not in self.late_responses
        ]

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "auction_id": self.auction_id,
            "state": self.state.value,
            "timeout": self.timeout,
            "created_at": self.created_at.isoformat(),
            "ad_units": [u.code for u in self.ad_units],
            "dispatched": list(self.dispatched),
            "responses": {k: v.to_dict() for k, v in self.responses.items()},
            "late_responses": {k: v.to_dict() for k, v in self.late_responses.items()},
            "skipped_bidders": list(self.skipped_bidders),
            "dropped_ad_units": list(self.dropped_ad_units),
            "timeout_error": str(self.timeout_error) if self.timeout_error else None,
        }
