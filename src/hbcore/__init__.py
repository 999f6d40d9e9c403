"""
hbcore - orchestration core of a header-bidding auction client.

Partitions an auction's bids between client-side bidder adapters and a
single server-side (S2S) aggregation adapter, then dispatches both paths
concurrently under one auction deadline.
"""

from .adapters import BidderAdapter, BidderRegistry, PrebidServerAdapter
from .adserver import AdServerNamespace, VideoSupport
from .config import S2SConfig, S2SConfigStore, load_s2s_config
from .dispatcher import Dispatcher
from .errors import (
    ConfigurationError,
    DispatchTimeout,
    HBCoreError,
    InvalidAuctionInputError,
    UnknownBidderError,
    UnregisteredBidderWarning,
)
from .manager import AdapterManager, get_adapter_manager
from .models import (
    AdUnit,
    AggregatedS2SRequest,
    Auction,
    AuctionState,
    BidPlacement,
    BidRequestSpec,
    BidResponse,
    BidderRequest,
)
from .partitioner import PartitionResult, RequestPartitioner

__version__ = '1.0.0'

__all__ = [
    'AdapterManager',
    'get_adapter_manager',
    'BidderAdapter',
    'BidderRegistry',
    'PrebidServerAdapter',
    'S2SConfig',
    'S2SConfigStore',
    'load_s2s_config',
    'RequestPartitioner',
    'PartitionResult',
    'Dispatcher',
    'AdServerNamespace',
    'VideoSupport',
    'AdUnit',
    'BidRequestSpec',
    'BidPlacement',
    'BidderRequest',
    'AggregatedS2SRequest',
    'BidResponse',
    'Auction',
    'AuctionState',
    'HBCoreError',
    'ConfigurationError',
    'UnknownBidderError',
    'InvalidAuctionInputError',
    'DispatchTimeout',
    'UnregisteredBidderWarning',
]
