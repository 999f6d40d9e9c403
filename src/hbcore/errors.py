"""
Error taxonomy for the auction orchestration core.

Only InvalidAuctionInputError reaches the caller of call_bids. The rest
degrade the auction without stopping it.
"""


class HBCoreError(Exception):
    """Base exception for orchestration core errors."""
    pass


class ConfigurationError(HBCoreError):
    """Raised when an S2S configuration fails validation."""
    pass


class UnknownBidderError(HBCoreError):
    """Raised when an alias targets a bidder code with no registry entry."""
    pass


class InvalidAuctionInputError(HBCoreError):
    """Raised when call_bids receives malformed top-level input."""
    pass


class DispatchTimeout(HBCoreError):
    """
    Auction deadline elapsed with adapter calls still pending.

    Recorded on the auction rather than raised.
    """

    def __init__(self, timeout_ms: int, pending: list[str]):
        self.timeout_ms = timeout_ms
        self.pending = pending
        super().__init__(
            f"Auction timed out after {timeout_ms}ms with pending adapters: "
            f"{', '.join(pending)}"
        )


class UnregisteredBidderWarning(UserWarning):
    """A bid references a bidder code with no registry entry."""
    pass
