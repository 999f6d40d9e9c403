"""Tests for structured logging helpers."""

import threading

import structlog

from src.hbcore.logging import (
    MAX_PAYLOAD_CHARS,
    LogContext,
    add_auction_id,
    get_auction_id,
    in_current_context,
    truncate_payloads,
)


class TestLogContext:
    """Test suite for LogContext."""

    def test_sets_and_restores_auction_id(self):
        assert get_auction_id() == ""

        with LogContext("auc-1") as ctx:
            assert ctx.auction_id == "auc-1"
            assert get_auction_id() == "auc-1"

        assert get_auction_id() == ""

    def test_generates_auction_id(self):
        with LogContext() as ctx:
            assert ctx.auction_id
            assert get_auction_id() == ctx.auction_id

    def test_only_own_fields_unbound(self):
        structlog.contextvars.bind_contextvars(publisher="pub-1")
        try:
            with LogContext("auc-2", ad_units=3):
                bound = structlog.contextvars.get_contextvars()
                assert bound["ad_units"] == 3

            bound = structlog.contextvars.get_contextvars()
            assert bound == {"publisher": "pub-1"}
        finally:
            structlog.contextvars.clear_contextvars()


class TestProcessors:
    def test_add_auction_id(self):
        with LogContext("auc-3"):
            event = add_auction_id(None, "info", {"event": "x"})
        assert event["auction_id"] == "auc-3"

    def test_add_auction_id_keeps_explicit_value(self):
        with LogContext("auc-3"):
            event = add_auction_id(None, "info", {"auction_id": "other"})
        assert event["auction_id"] == "other"

    def test_truncate_payloads(self):
        creative = "<div>" + "x" * 2000 + "</div>"
        event = truncate_payloads(None, "info", {"ad": creative, "bidder": "appnexus"})

        assert len(event["ad"]) < len(creative)
        assert event["ad"].startswith(creative[:MAX_PAYLOAD_CHARS])
        assert event["bidder"] == "appnexus"


class TestInCurrentContext:
    def test_worker_thread_sees_auction_id(self):
        seen = []

        with LogContext("auc-4"):
            wrapped = in_current_context(lambda: seen.append(get_auction_id()))

        worker = threading.Thread(target=wrapped)
        worker.start()
        worker.join(timeout=2)

        assert seen == ["auc-4"]
