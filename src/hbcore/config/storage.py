"""
Redis-based persistence for the active S2S configuration.

Lets several client instances share one S2S setup. Read at startup and
written by the admin API; never touched while an auction is running.

Redis Key Structure:
    hbcore:s2s:config (string)   - JSON S2S configuration
    hbcore:s2s:updated_at (string) - ISO timestamp of the last save
"""

import json
import os
from datetime import datetime
from typing import Optional

import redis

from ..errors import ConfigurationError
from ..logging import config_logger
from .s2s_config import S2SConfig

REDIS_S2S_CONFIG_KEY = "hbcore:s2s:config"
REDIS_S2S_UPDATED_KEY = "hbcore:s2s:updated_at"

logger = config_logger()


class S2SConfigStorage:
    """Redis storage for the S2S configuration."""

    def __init__(self, redis_url: Optional[str] = None):
        """
        Initialize S2S config storage.

        Args:
            redis_url: Redis connection URL (default: REDIS_URL env var)
        """
        self._redis: redis.Redis | None = None
        self._redis_url = redis_url or os.environ.get(
            "REDIS_URL", "redis://localhost:6379"
        )
        self._connect(self._redis_url)

    def _connect(self, redis_url: str) -> bool:
        """Connect to Redis."""
        try:
            self._redis = redis.from_url(redis_url, decode_responses=True)
            self._redis.ping()
            return True
        except redis.RedisError as e:
            logger.warning("Redis connection failed", error=str(e))
            self._redis = None
            return False

    @property
    def is_connected(self) -> bool:
        """Check if Redis is connected."""
        if self._redis is None:
            return False
        try:
            self._redis.ping()
            return True
        except redis.RedisError:
            return False

    def save(self, config: S2SConfig) -> bool:
        """
        Persist the S2S configuration.

        Returns:
            True if saved successfully
        """
        if not self._redis:
            return False

        try:
            pipe = self._redis.pipeline()
            pipe.set(REDIS_S2S_CONFIG_KEY, json.dumps(config.to_dict()))
            pipe.set(REDIS_S2S_UPDATED_KEY, datetime.utcnow().isoformat())
            pipe.execute()
            return True
        except redis.RedisError as e:
            logger.error("Failed to save S2S config", error=str(e))
            return False

    def load(self) -> Optional[S2SConfig]:
        """
        Load the persisted S2S configuration.

        Returns:
            S2SConfig if one is stored, None otherwise
        """
        if not self._redis:
            return None

        try:
            json_str = self._redis.get(REDIS_S2S_CONFIG_KEY)
        except redis.RedisError as e:
            logger.error("Failed to load S2S config", error=str(e))
            return None

        if not json_str:
            return None
        try:
            return S2SConfig.from_dict(json.loads(json_str))
        except (json.JSONDecodeError, AttributeError, ConfigurationError) as e:
            logger.error("Stored S2S config is corrupt", error=str(e))
            return None

    def clear(self) -> bool:
        """Remove the persisted configuration."""
        if not self._redis:
            return False

        try:
            self._redis.delete(REDIS_S2S_CONFIG_KEY, REDIS_S2S_UPDATED_KEY)
            return True
        except redis.RedisError as e:
            logger.error("Failed to clear S2S config", error=str(e))
            return False
