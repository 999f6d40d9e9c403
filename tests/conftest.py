"""Pytest configuration and fixtures."""

import threading

import pytest

from src.hbcore.models import AdUnit, BidRequestSpec


class RecordingAdapter:
    """Adapter double that records every call_bids invocation."""

    def __init__(self, bids=None, delay: threading.Event | None = None, error=None):
        self.calls = []
        self.bids = bids or []
        self.delay = delay
        self.error = error
        self._lock = threading.Lock()

    def call_bids(self, request):
        with self._lock:
            self.calls.append(request)
        if self.delay is not None:
            self.delay.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return list(self.bids)

    @property
    def call_count(self) -> int:
        return len(self.calls)


@pytest.fixture
def make_adapter():
    """Factory for recording adapters."""
    return RecordingAdapter


@pytest.fixture
def sample_ad_units() -> list[AdUnit]:
    """Two ad units: A with appnexus only, B with appnexus and adequant."""
    return [
        AdUnit(
            code="A",
            sizes=((300, 250),),
            bids=(BidRequestSpec("appnexus", {"placementId": "10433394"}),),
        ),
        AdUnit(
            code="B",
            sizes=((728, 90),),
            bids=(
                BidRequestSpec("appnexus", {"placementId": "10433395"}),
                BidRequestSpec("adequant", {"publisher_id": "1234567", "bidfloor": 0.01}),
            ),
        ),
    ]


@pytest.fixture
def sample_s2s_config_dict() -> dict:
    """S2S configuration routing appnexus server-side."""
    return {
        "enabled": True,
        "endpoint": "https://prebid.adnxs.com/pbs/v1/auction",
        "timeout": 1000,
        "maxBids": 1,
        "adapter": "prebidServer",
        "bidders": ["appnexus"],
    }
