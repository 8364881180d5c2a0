"""
Cache Store

Redis-backed cache for single records. Values are stored as canonical JSON
(sorted keys, compact separators) so the same record always encodes to the
same string.
"""
import json
from contextlib import contextmanager
from typing import Any, Dict, Optional

import redis

from shared.modules.errors.exceptions import CacheError, StoreConnectionError
from shared.modules.log.logger import get_logger

logger = get_logger(__name__)


class CacheStore:
    """
    get/put/delete/exists over a flat key namespace with per-entry TTL.

    Every call goes through ``connection_manager.ensure_cache_store_connected()``
    so the Redis client is created lazily and shared with the rest of the process.
    """

    def __init__(self, connection_manager):
        self.connections = connection_manager

    @property
    def client(self) -> redis.Redis:
        return self.connections.ensure_cache_store_connected()

    @staticmethod
    def encode(record: Dict[str, Any]) -> str:
        return json.dumps(record, sort_keys=True, separators=(",", ":"))

    @staticmethod
    def decode(payload: str) -> Optional[Dict[str, Any]]:
        data = json.loads(payload)
        return data if isinstance(data, dict) else None

    @contextmanager
    def _translate_errors(self, action: str, key: Optional[str] = None):
        try:
            yield
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            logger.error(f"Redis unavailable during {action} of {key!r}: {e}")
            raise StoreConnectionError(f"Redis unavailable: {e}", service="redis") from e
        except redis.exceptions.RedisError as e:
            logger.error(f"Redis error during {action} of {key!r}: {e}")
            raise CacheError(f"Redis {action} failed: {e}") from e

    def put(self, key: str, record: Dict[str, Any], ttl_seconds: int) -> None:
        """
        Store a record under ``key``, replacing any existing entry.

        Args:
            key: Cache key, e.g. ``course:<id>``
            record: JSON-serializable mapping
            ttl_seconds: Expiry in seconds, must be positive
        """
        if ttl_seconds is None or int(ttl_seconds) <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds!r}")
        payload = self.encode(record)
        client = self.client
        with self._translate_errors("put", key):
            client.set(key, payload, ex=int(ttl_seconds))

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Return the cached record, or None on a miss.
        Entries that cannot be decoded count as a miss.
        """
        client = self.client
        with self._translate_errors("get", key):
            payload = client.get(key)
        if payload is None:
            return None
        try:
            record = self.decode(payload)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring undecodable cache entry {key!r}: {e}")
            return None
        if record is None:
            logger.warning(f"Ignoring non-object cache entry {key!r}")
        return record

    def delete(self, key: str) -> bool:
        client = self.client
        with self._translate_errors("delete", key):
            return client.delete(key) > 0

    def exists(self, key: str) -> bool:
        client = self.client
        with self._translate_errors("exists", key):
            return client.exists(key) == 1

    def clear_all(self) -> None:
        """
        Remove every key in the configured Redis database.

        Administrative only: this drops the cache for all resources at once
        and must never run on a request path.
        """
        client = self.client
        logger.warning("Flushing the entire record cache")
        with self._translate_errors("clear_all"):
            client.flushdb()
