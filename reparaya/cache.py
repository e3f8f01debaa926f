"""
Namespaced JSON cache on top of the shared Redis client.

Lookups are best effort: when Redis is down every read is a miss and every
write is dropped, so callers always fall back to the source of truth.
"""
import json
import logging
from typing import Any, Optional

from .config import GEOCODING_CACHE_SECONDS
from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)


class JsonCache:
    """JSON values under ``{namespace}:{key}`` with a default TTL"""

    def __init__(self, namespace: str, default_ttl: int = 3600):
        self.namespace = namespace
        self.default_ttl = default_ttl
        self._client = None

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def _redis(self):
        if self._client is None:
            try:
                self._client = get_redis_client()
            except Exception as e:
                logger.warning(f"⚠️ {self.namespace} cache disabled, Redis unavailable: {e}")
                return None
        return self._client

    def get(self, key: str) -> Optional[Any]:
        client = self._redis()
        if client is None:
            return None

        try:
            raw = client.get(self._key(key))
        except Exception as e:
            logger.error(f"❌ Cache read failed for {self._key(key)}: {e}")
            return None

        if raw is None:
            return None
        logger.debug(f"✅ Cache HIT: {self._key(key)}")
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        client = self._redis()
        if client is None:
            return False

        try:
            client.setex(self._key(key), ttl or self.default_ttl, json.dumps(value))
            return True
        except Exception as e:
            logger.error(f"❌ Cache write failed for {self._key(key)}: {e}")
            return False


# Address -> coordinates lookups
geocoding_cache = JsonCache("geo", default_ttl=GEOCODING_CACHE_SECONDS)
