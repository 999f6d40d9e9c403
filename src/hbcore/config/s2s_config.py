"""
S2S Configuration Store

Holds zero-or-one active server-side configuration. A new configuration
replaces the old one wholesale; bidder sets are never merged across calls.
"""

import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError
from ..logging import config_logger

logger = config_logger()

DEFAULT_S2S_ADAPTER = "prebidServer"
DEFAULT_S2S_TIMEOUT_MS = 1000


@dataclass(frozen=True)
class S2SConfig:
    """
    Server-side bidding configuration.

    Attributes:
        enabled: Gates the whole S2S path
        endpoint: S2S call target, opaque to the core
        timeout: Auction-wide deadline in milliseconds
        adapter: Registry code of the adapter servicing S2S traffic
        bidders: Bidder codes routed server-side, in declaration order
        max_bids: Optional cap on how many of bidders are forwarded
    """

    enabled: bool = True
    endpoint: str = ""
    timeout: int = DEFAULT_S2S_TIMEOUT_MS
    adapter: str = DEFAULT_S2S_ADAPTER
    bidders: tuple[str, ...] = ()
    max_bids: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.enabled, bool):
            raise ConfigurationError(
                f"S2S enabled must be true or false, got {self.enabled!r}"
            )
        if not isinstance(self.bidders, (list, tuple)) or not all(
            isinstance(code, str) for code in self.bidders
        ):
            raise ConfigurationError(
                f"S2S bidders must be a list of bidder codes, got {self.bidders!r}"
            )
        # Normalize to an ordered, de-duplicated tuple
        object.__setattr__(self, "bidders", tuple(dict.fromkeys(self.bidders)))

    @property
    def effective_bidders(self) -> tuple[str, ...]:
        """S2S bidder codes after the max_bids prefix cap."""
        if self.max_bids is None:
            return self.bidders
        return self.bidders[: self.max_bids]

    @property
    def is_active(self) -> bool:
        return self.enabled and bool(self.bidders)

    def validate(self) -> None:
        """
        Check the configuration.

        Raises:
            ConfigurationError: If any field is invalid
        """
        if not self.bidders or not all(
            isinstance(code, str) and code for code in self.bidders
        ):
            raise ConfigurationError(
                "S2S config requires a non-empty set of bidder codes"
            )
        if (
            isinstance(self.timeout, bool)
            or not isinstance(self.timeout, (int, float))
            or self.timeout <= 0
        ):
            raise ConfigurationError(
                f"S2S timeout must be a positive duration, got {self.timeout!r}"
            )
        if not self.adapter or not isinstance(self.adapter, str):
            raise ConfigurationError("S2S config requires an adapter code")
        if self.max_bids is not None and (
            isinstance(self.max_bids, bool)
            or not isinstance(self.max_bids, int)
            or self.max_bids <= 0
        ):
            raise ConfigurationError(
                f"max_bids must be a positive integer, got {self.max_bids!r}"
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "enabled": self.enabled,
            "endpoint": self.endpoint,
            "timeout": self.timeout,
            "adapter": self.adapter,
            "bidders": list(self.bidders),
            "max_bids": self.max_bids,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "S2SConfig":
        """
        Create config from dictionary.

        Accepts snake_case keys as well as the publisher-facing
        adapterCode / maxBids spellings.

        Raises:
            ConfigurationError: If enabled or bidders has the wrong type
        """
        bidders = data.get("bidders")
        if bidders is None:
            bidders = ()
        elif isinstance(bidders, str):
            bidders = (bidders,)
        return cls(
            enabled=data.get("enabled", True),
            endpoint=data.get("endpoint", ""),
            timeout=data.get("timeout", DEFAULT_S2S_TIMEOUT_MS),
            adapter=(
                data.get("adapterCode")
                or data.get("adapter_code")
                or data.get("adapter")
                or DEFAULT_S2S_ADAPTER
            ),
            bidders=bidders,
            max_bids=data.get("maxBids", data.get("max_bids")),
        )

    @classmethod
    def disabled(cls) -> "S2SConfig":
        """Sentinel returned when no S2S configuration is active."""
        return cls(enabled=False)


class S2SConfigStore:
    """
    Holder of the single active S2S configuration.

    set_config keeps the previous value when validation fails.
    """

    def __init__(self, config: Optional[S2SConfig] = None):
        self._config: Optional[S2SConfig] = None
        self._lock = threading.Lock()
        if config is not None:
            self.set_config(config)

    def set_config(self, config: S2SConfig | dict[str, Any]) -> S2SConfig:
        """
        Validate and atomically replace the active configuration.

        Args:
            config: S2SConfig or its dictionary form

        Returns:
            The new active configuration

        Raises:
            ConfigurationError: If validation fails (previous value kept)
        """
        if isinstance(config, dict):
            config = S2SConfig.from_dict(config)
        config.validate()

        with self._lock:
            self._config = config

        logger.info(
            "S2S configuration updated",
            enabled=config.enabled,
            adapter=config.adapter,
            bidders=list(config.bidders),
            timeout_ms=config.timeout,
            max_bids=config.max_bids,
        )
        return config

    def get_config(self) -> S2SConfig:
        """Current configuration, or the disabled sentinel."""
        with self._lock:
            config = self._config
        return config if config is not None else S2SConfig.disabled()

    def disable(self) -> None:
        """Explicitly disable the S2S path."""
        with self._lock:
            self._config = None
        logger.info("S2S configuration disabled")

    @property
    def is_enabled(self) -> bool:
        return self.get_config().is_active


def load_s2s_config(path: str | Path | None = None) -> Optional[S2SConfig]:
    """
    Load an S2S configuration from a YAML file.

    The file holds an ``s2s`` mapping (or the mapping at top level).

    Args:
        path: YAML file path. Defaults to the S2S_CONFIG_PATH env var.

    Returns:
        S2SConfig, or None if no path is configured or the file is missing

    Raises:
        ConfigurationError: If the file is not valid YAML
    """
    if path is None:
        path = os.environ.get("S2S_CONFIG_PATH")
        if not path:
            return None

    path = Path(path)
    if not path.exists():
        logger.warning("S2S config file not found", path=str(path))
        return None

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"YAML error in {path}: {e}") from e

    if not data:
        return None
    section = data.get("s2s", data) if isinstance(data, dict) else data
    if not isinstance(section, dict):
        raise ConfigurationError(f"S2S config in {path} must be a mapping")
    return S2SConfig.from_dict(section)
