"""Tests for the Request Partitioner."""

import pytest

from src.hbcore.config import S2SConfig
from src.hbcore.models import AdUnit, BidRequestSpec
from src.hbcore.partitioner import PartitionResult, RequestPartitioner


def _unit(code, *bidders):
    return AdUnit(
        code=code,
        sizes=((300, 250),),
        bids=tuple(BidRequestSpec(b, {"slot": f"{code}-{b}"}) for b in bidders),
    )


class TestRequestPartitioner:
    """Test suite for RequestPartitioner."""

    @pytest.fixture
    def partitioner(self):
        return RequestPartitioner()

    @pytest.fixture
    def adapters(self, make_adapter):
        """Registry snapshot with the S2S adapter and a few client bidders."""
        return {
            "prebidServer": make_adapter(),
            "appnexus": make_adapter(),
            "rubicon": make_adapter(),
            "openx": make_adapter(),
        }

    @pytest.fixture
    def s2s_config(self):
        return S2SConfig(bidders=("appnexus",), adapter="prebidServer", timeout=1000)

    def test_returns_result(self, partitioner, adapters, s2s_config, sample_ad_units):
        result = partitioner.partition(sample_ad_units, s2s_config, adapters)
        assert isinstance(result, PartitionResult)

    def test_s2s_includes_units_with_any_s2s_bidder(
        self, partitioner, adapters, s2s_config, sample_ad_units
    ):
        """Both A and B contain appnexus, so both go server-side."""
        result = partitioner.partition(sample_ad_units, s2s_config, adapters)

        assert result.has_s2s
        assert result.s2s_adapter_code == "prebidServer"
        assert [u.code for u in result.s2s_request.ad_units] == ["A", "B"]

    def test_s2s_ad_units_carried_whole(
        self, partitioner, adapters, s2s_config, sample_ad_units
    ):
        """An ad unit goes into the S2S request with all of its bids."""
        result = partitioner.partition(sample_ad_units, s2s_config, adapters)

        unit_b = result.s2s_request.ad_units[1]
        assert unit_b.bidder_codes == ["appnexus", "adequant"]
        assert result.s2s_request.bidders == ["appnexus"]

    def test_units_without_s2s_bidder_excluded(self, partitioner, adapters, s2s_config):
        units = [_unit("A", "appnexus"), _unit("B", "rubicon"), _unit("C", "appnexus")]

        result = partitioner.partition(units, s2s_config, adapters)

        assert [u.code for u in result.s2s_request.ad_units] == ["A", "C"]

    def test_split_unit_appears_on_both_paths(self, partitioner, adapters, s2s_config):
        units = [_unit("split", "appnexus", "rubicon")]

        result = partitioner.partition(units, s2s_config, adapters)

        assert [u.code for u in result.s2s_request.ad_units] == ["split"]
        assert result.client_requests["rubicon"].ad_unit_codes == ["split"]
        assert "appnexus" not in result.client_requests

    def test_client_requests_grouped_per_bidder(self, partitioner, adapters):
        """One request per bidder, covering every ad unit referencing it."""
        units = [
            _unit("A", "rubicon", "openx"),
            _unit("B", "rubicon"),
            _unit("C", "openx", "rubicon"),
        ]

        result = partitioner.partition(units, S2SConfig.disabled(), adapters)

        assert result.client_bidder_codes == ["rubicon", "openx"]
        assert result.client_requests["rubicon"].ad_unit_codes == ["A", "B", "C"]
        assert result.client_requests["openx"].ad_unit_codes == ["A", "C"]
        assert result.client_requests["openx"].bids[1].params == {"slot": "C-openx"}

    def test_client_request_carries_auction_context(self, partitioner, adapters):
        result = partitioner.partition(
            [_unit("A", "rubicon")],
            S2SConfig.disabled(),
            adapters,
            auction_id="auc-1",
            timeout=500,
        )

        request = result.client_requests["rubicon"]
        assert request.auction_id == "auc-1"
        assert request.timeout == 500
        assert request.bids[0].sizes == ((300, 250),)

    def test_s2s_disabled_routes_everything_client_side(
        self, partitioner, adapters, sample_ad_units
    ):
        config = S2SConfig(enabled=False, bidders=("appnexus",))

        result = partitioner.partition(sample_ad_units, config, adapters)

        assert result.s2s_request is None
        assert not result.has_s2s
        assert result.client_requests["appnexus"].ad_unit_codes == ["A", "B"]
        assert result.client_requests["adequant"].ad_unit_codes == ["B"]

    def test_unresolved_s2s_adapter_routes_client_side(
        self, partitioner, adapters, sample_ad_units
    ):
        config = S2SConfig(bidders=("appnexus",), adapter="missingServer")

        result = partitioner.partition(sample_ad_units, config, adapters)

        assert result.s2s_request is None
        assert "appnexus" in result.client_requests

    def test_no_matching_units_means_no_s2s_request(
        self, partitioner, adapters, s2s_config
    ):
        result = partitioner.partition([_unit("A", "rubicon")], s2s_config, adapters)

        assert result.s2s_request is None
        assert result.client_bidder_codes == ["rubicon"]

    def test_empty_units_dropped(self, partitioner, adapters, s2s_config):
        units = [AdUnit(code="empty"), _unit("A", "appnexus")]

        result = partitioner.partition(units, s2s_config, adapters)

        assert result.dropped_ad_units == ["empty"]
        assert [u.code for u in result.s2s_request.ad_units] == ["A"]

    def test_max_bids_prefix_cap(self, partitioner, adapters):
        """Only the declared prefix is S2S-routed; the rest fall to client."""
        config = S2SConfig(bidders=("appnexus", "rubicon"), max_bids=1)
        units = [_unit("A", "appnexus"), _unit("B", "rubicon")]

        result = partitioner.partition(units, config, adapters)

        assert result.s2s_request.bidders == ["appnexus"]
        assert [u.code for u in result.s2s_request.ad_units] == ["A"]
        assert result.client_requests["rubicon"].ad_unit_codes == ["B"]

    def test_fresh_s2s_request_per_call(
        self, partitioner, adapters, s2s_config, sample_ad_units
    ):
        first = partitioner.partition(sample_ad_units, s2s_config, adapters)
        second = partitioner.partition(sample_ad_units, s2s_config, adapters)

        assert first.s2s_request is not second.s2s_request
        assert first.s2s_request.tid != second.s2s_request.tid

    def test_to_dict(self, partitioner, adapters, s2s_config, sample_ad_units):
        data = partitioner.partition(sample_ad_units, s2s_config, adapters).to_dict()

        assert data["s2s_ad_units"] == ["A", "B"]
        assert data["client"] == {"adequant": ["B"]}

    def test_units_with_only_unregistered_bidders_dropped(
        self, partitioner, adapters, s2s_config
    ):
        """No adapter on either path can serve the unit, so it is reported."""
        units = [
            _unit("A", "appnexus"),
            _unit("ghost-only", "ghost"),
            _unit("mixed", "ghost", "rubicon"),
        ]

        result = partitioner.partition(units, s2s_config, adapters)

        assert result.dropped_ad_units == ["ghost-only"]
        assert "ghost" in result.client_requests

    def test_s2s_unit_never_dropped(self, partitioner, adapters, s2s_config):
        """An S2S-routed unit is served even if its other bidders are unknown."""
        units = [_unit("A", "appnexus", "ghost")]

        result = partitioner.partition(units, s2s_config, adapters)

        assert result.dropped_ad_units == []
