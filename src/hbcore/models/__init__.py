"""Orchestration core models and data types."""

from .ad_unit import (
    AdUnit,
    AggregatedS2SRequest,
    BidPlacement,
    BidRequestSpec,
    BidResponse,
    BidderRequest,
)
from .auction import AdapterPath, AdapterResponse, Auction, AuctionState

__all__ = [
    "AdUnit",
    "BidRequestSpec",
    "BidPlacement",
    "BidderRequest",
    "AggregatedS2SRequest",
    "BidResponse",
    "Auction",
    "AuctionState",
    "AdapterPath",
    "AdapterResponse",
]
