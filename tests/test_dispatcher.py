"""Tests for the Dispatcher."""

import threading

import pytest

from src.hbcore.config import S2SConfig
from src.hbcore.dispatcher import Dispatcher
from src.hbcore.errors import DispatchTimeout, UnregisteredBidderWarning
from src.hbcore.models import (
    AdUnit,
    AggregatedS2SRequest,
    Auction,
    AuctionState,
    BidderRequest,
    BidRequestSpec,
    BidResponse,
)
from src.hbcore.partitioner import RequestPartitioner


def _partitioned_auction(ad_units, timeout=1000):
    auction = Auction(auction_id="auc-test", ad_units=list(ad_units), timeout=timeout)
    auction.transition(AuctionState.PARTITIONED)
    return auction


class TestDispatcher:
    """Test suite for Dispatcher."""

    @pytest.fixture
    def dispatcher(self):
        dispatcher = Dispatcher()
        yield dispatcher
        dispatcher.shutdown(wait=False)

    @pytest.fixture
    def partitioner(self):
        return RequestPartitioner()

    def test_s2s_and_client_each_called_once(
        self, dispatcher, partitioner, make_adapter
    ):
        s2s = make_adapter()
        rubicon = make_adapter()
        adapters = {"prebidServer": s2s, "rubicon": rubicon, "appnexus": make_adapter()}
        units = [
            AdUnit("A", bids=(BidRequestSpec("appnexus"), BidRequestSpec("rubicon"))),
            AdUnit("B", bids=(BidRequestSpec("rubicon"),)),
        ]
        partition = partitioner.partition(
            units, S2SConfig(bidders=("appnexus",)), adapters
        )
        auction = _partitioned_auction(units)

        dispatcher.dispatch(auction, partition, adapters)

        assert s2s.call_count == 1
        assert isinstance(s2s.calls[0], AggregatedS2SRequest)
        assert rubicon.call_count == 1
        assert isinstance(rubicon.calls[0], BidderRequest)
        assert rubicon.calls[0].ad_unit_codes == ["A", "B"]
        assert adapters["appnexus"].call_count == 0
        assert auction.state == AuctionState.COMPLETED
        assert auction.dispatched == ["prebidServer", "rubicon"]

    def test_responses_collected(self, dispatcher, partitioner, make_adapter):
        bid = BidResponse(bidder_code="rubicon", ad_unit_code="A", cpm=1.5)
        adapters = {"rubicon": make_adapter(bids=[bid])}
        units = [AdUnit("A", bids=(BidRequestSpec("rubicon"),))]
        partition = partitioner.partition(units, S2SConfig.disabled(), adapters)
        auction = _partitioned_auction(units)

        dispatcher.dispatch(auction, partition, adapters)

        assert auction.responses["rubicon"].bids == [bid]
        assert auction.bids == [bid]

    def test_unregistered_bidder_skipped_with_warning(
        self, dispatcher, partitioner, make_adapter
    ):
        rubicon = make_adapter()
        adapters = {"rubicon": rubicon}
        units = [
            AdUnit("A", bids=(BidRequestSpec("rubicon"), BidRequestSpec("ghost"))),
        ]
        partition = partitioner.partition(units, S2SConfig.disabled(), adapters)
        auction = _partitioned_auction(units)

        with pytest.warns(UnregisteredBidderWarning, match="ghost"):
            dispatcher.dispatch(auction, partition, adapters)

        assert auction.skipped_bidders == ["ghost"]
        assert rubicon.call_count == 1
        assert auction.state == AuctionState.COMPLETED

    def test_adapter_error_does_not_stop_auction(
        self, dispatcher, partitioner, make_adapter
    ):
        adapters = {
            "broken": make_adapter(error=RuntimeError("adapter exploded")),
            "rubicon": make_adapter(),
        }
        units = [AdUnit("A", bids=(BidRequestSpec("broken"), BidRequestSpec("rubicon")))]
        partition = partitioner.partition(units, S2SConfig.disabled(), adapters)
        auction = _partitioned_auction(units)

        dispatcher.dispatch(auction, partition, adapters)

        assert auction.responses["broken"].error == "adapter exploded"
        assert auction.responses["rubicon"].error is None
        assert auction.state == AuctionState.COMPLETED

    def test_calls_issued_before_any_awaited(self, dispatcher, partitioner, make_adapter):
        """Two blocking adapters both start before either finishes."""
        gate = threading.Event()
        started = threading.Barrier(2, timeout=2)

        class BarrierAdapter:
            def call_bids(self, request):
                started.wait()
                gate.set()
                return []

        adapters = {"a": BarrierAdapter(), "b": BarrierAdapter()}
        units = [AdUnit("A", bids=(BidRequestSpec("a"), BidRequestSpec("b")))]
        partition = partitioner.partition(units, S2SConfig.disabled(), adapters)
        auction = _partitioned_auction(units, timeout=3000)

        dispatcher.dispatch(auction, partition, adapters)

        assert gate.is_set()
        assert auction.state == AuctionState.COMPLETED
        assert set(auction.responses) == {"a", "b"}

    def test_timeout_excludes_late_responses(self, partitioner, make_adapter):
        release = threading.Event()
        late_seen = threading.Event()
        late = []

        def on_late(auction, response):
            late.append(response)
            late_seen.set()

        dispatcher = Dispatcher(on_late_response=on_late)
        slow_bid = BidResponse(bidder_code="slow", ad_unit_code="A", cpm=9.0)
        adapters = {
            "slow": make_adapter(bids=[slow_bid], delay=release),
            "fast": make_adapter(),
        }
        units = [AdUnit("A", bids=(BidRequestSpec("slow"), BidRequestSpec("fast")))]
        partition = partitioner.partition(units, S2SConfig.disabled(), adapters)
        auction = _partitioned_auction(units, timeout=200)

        try:
            dispatcher.dispatch(auction, partition, adapters)

            assert auction.state == AuctionState.TIMED_OUT
            assert isinstance(auction.timeout_error, DispatchTimeout)
            assert auction.timeout_error.pending == ["slow"]
            assert "slow" not in auction.responses
            assert "fast" in auction.responses
            assert auction.pending == ["slow"]

            release.set()
            assert late_seen.wait(timeout=2)

            assert auction.late_responses["slow"].bids == [slow_bid]
            assert late[0].adapter_code == "slow"
            assert "slow" not in auction.responses
            assert auction.bids == []
            assert auction.state == AuctionState.TIMED_OUT
        finally:
            release.set()
            dispatcher.shutdown(wait=False)

    def test_nothing_to_dispatch_completes(self, dispatcher, partitioner):
        units = [AdUnit("empty")]
        partition = partitioner.partition(units, S2SConfig.disabled(), {})
        auction = _partitioned_auction(units)

        dispatcher.dispatch(auction, partition, {})

        assert auction.state == AuctionState.COMPLETED
        assert auction.dispatched == []

    def test_dispatch_requires_partitioned_auction(
        self, dispatcher, partitioner, make_adapter
    ):
        adapters = {"rubicon": make_adapter()}
        units = [AdUnit("A", bids=(BidRequestSpec("rubicon"),))]
        partition = partitioner.partition(units, S2SConfig.disabled(), adapters)
        auction = Auction(auction_id="auc", ad_units=units, timeout=100)

        with pytest.raises(ValueError):
            dispatcher.dispatch(auction, partition, adapters)

    def test_many_adapters_all_run_concurrently(self, dispatcher, partitioner):
        """Forty adapters that each wait for all the others still complete."""
        count = 40
        everyone_started = threading.Barrier(count, timeout=2)

        class BarrierAdapter:
            def call_bids(self, request):
                everyone_started.wait()
                return []

        adapters = {f"b{i}": BarrierAdapter() for i in range(count)}
        units = [AdUnit(f"u{i}", bids=(BidRequestSpec(f"b{i}"),)) for i in range(count)]
        partition = partitioner.partition(units, S2SConfig.disabled(), adapters)
        auction = _partitioned_auction(units, timeout=3000)

        dispatcher.dispatch(auction, partition, adapters)

        assert auction.state == AuctionState.COMPLETED
        assert len(auction.responses) == count
        assert all(r.error is None for r in auction.responses.values())

    def test_abandoned_call_does_not_hold_up_next_auction(
        self, partitioner, make_adapter
    ):
        release = threading.Event()
        late_seen = threading.Event()
        dispatcher = Dispatcher(on_late_response=lambda a, r: late_seen.set())
        slow = {"slow": make_adapter(delay=release)}
        fast = {"fast": make_adapter()}
        slow_units = [AdUnit("A", bids=(BidRequestSpec("slow"),))]
        fast_units = [AdUnit("B", bids=(BidRequestSpec("fast"),))]

        try:
            first = _partitioned_auction(slow_units, timeout=100)
            dispatcher.dispatch(
                first,
                partitioner.partition(slow_units, S2SConfig.disabled(), slow),
                slow,
            )
            assert first.state == AuctionState.TIMED_OUT
            assert dispatcher.straggler_count == 1

            second = _partitioned_auction(fast_units, timeout=1000)
            dispatcher.dispatch(
                second,
                partitioner.partition(fast_units, S2SConfig.disabled(), fast),
                fast,
            )
            assert second.state == AuctionState.COMPLETED

            release.set()
            assert late_seen.wait(timeout=2)
            assert dispatcher.straggler_count == 0
        finally:
            release.set()
            dispatcher.shutdown(wait=True)
