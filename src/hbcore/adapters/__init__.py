"""
Bidder adapter registration.

Usage:
    from src.hbcore.adapters import BidderRegistry, PrebidServerAdapter

    registry = BidderRegistry()
    registry.register("prebidServer", PrebidServerAdapter())
    registry.register("appnexus", my_appnexus_adapter)
"""

from .registry import BidderAdapter, BidderRegistry
from .s2s_http import DEFAULT_S2S_ENDPOINT, PrebidServerAdapter

__all__ = [
    "BidderAdapter",
    "BidderRegistry",
    "PrebidServerAdapter",
    "DEFAULT_S2S_ENDPOINT",
]
