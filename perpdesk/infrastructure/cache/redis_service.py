import hashlib
import json
import logging
from typing import Any, Optional

import redis

logger = logging.getLogger(__name__)


def _plain(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def content_key(prefix: str, *parts: Any) -> str:
    """
    Cache key derived from the content of `parts` (pydantic models, lists, plain JSON).
    Identical inputs always map to the same key.
    """
    canonical = json.dumps([_plain(p) for p in parts], sort_keys=True, separators=(",", ":"))
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{prefix}:{digest}"


class RedisService:
    def __init__(self, redis_url: Optional[str] = None, client: Optional[Any] = None):
        self.redis_url = redis_url
        self.client = client
        if self.client is not None:
            return
        if self.redis_url:
            try:
                self.client = redis.from_url(self.redis_url, decode_responses=True)
                # Test connection
                self.client.ping()
                logger.info("Connected to Redis for caching.")
            except Exception as e:
                logger.warning(f"Failed to connect to Redis: {e}. Caching disabled.")
                self.client = None
        else:
            logger.info("REDIS_URL not set. Caching disabled.")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def get(self, key: str) -> Optional[Any]:
        if not self.client:
            return None
        try:
            data = self.client.get(key)
            if data:
                return json.loads(data)
            return None
        except Exception as e:
            logger.warning(f"Redis get error: {e}")
            return None

    def set(self, key: str, value: Any, ttl_seconds: int = 60):
        if not self.client:
            return
        try:
            if hasattr(value, "model_dump_json"):
                serialized = value.model_dump_json()
            else:
                serialized = json.dumps(_plain(value))
            self.client.setex(key, ttl_seconds, serialized)
        except Exception as e:
            logger.warning(f"Redis set error: {e}")

    def delete(self, key: str):
        if not self.client:
            return
        try:
            self.client.delete(key)
        except Exception as e:
            logger.warning(f"Redis delete error: {e}")
