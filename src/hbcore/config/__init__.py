"""
S2S Configuration Module

Key components:
    - S2SConfig: Server-side bidding configuration
    - S2SConfigStore: Holder of the single active configuration
    - load_s2s_config(): YAML file loader
    - S2SConfigStorage: Redis persistence shared across instances
"""

from .s2s_config import (
    DEFAULT_S2S_ADAPTER,
    DEFAULT_S2S_TIMEOUT_MS,
    S2SConfig,
    S2SConfigStore,
    load_s2s_config,
)
from .storage import S2SConfigStorage

__all__ = [
    "DEFAULT_S2S_ADAPTER",
    "DEFAULT_S2S_TIMEOUT_MS",
    "S2SConfig",
    "S2SConfigStore",
    "S2SConfigStorage",
    "load_s2s_config",
]
