"""
Connection Manager

Owns the process-wide MongoDB and Redis clients. Each client is created
lazily on first use, reused by every request, retried on a timer after a
failed connect (unless running in strict mode) and closed on shutdown.
"""
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import redis
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from backend.config import Settings
from backend.database.connection_state_enum import ConnectionState
from shared.modules.errors.exceptions import ConnectionCloseError, StoreConnectionError
from shared.modules.log.logger import get_logger

logger = get_logger(__name__)


class RetryPolicy:
    """
    Fixed-delay reconnect policy.

    Args:
        delay_seconds: Wait between a failed attempt and the next one
        max_attempts: Stop scheduling retries after this many attempts (None = never stop)
    """

    def __init__(self, delay_seconds: float = 5.0, max_attempts: Optional[int] = None):
        self.delay_seconds = delay_seconds
        self.max_attempts = max_attempts

    def should_retry(self, attempts: int) -> bool:
        return self.max_attempts is None or attempts < self.max_attempts


class ManagedConnection:
    """
    Lifecycle of one backing-service client:
    uninitialized -> connecting -> ready -> closed, with
    error -> retrying -> connecting when an attempt fails.
    """

    def __init__(
        self,
        name: str,
        connect: Callable[[], Tuple[Any, Any]],
        close: Callable[[Any], None],
        strict: bool = False,
        retry_policy: Optional[RetryPolicy] = None,
        timer_factory=threading.Timer,
    ):
        self.name = name
        self._connect = connect
        self._close = close
        self.strict = strict
        self.retry_policy = retry_policy or RetryPolicy()
        self._timer_factory = timer_factory
        self._lock = threading.RLock()

        self._client = None
        self._handle = None
        self._timer = None

        self.state = ConnectionState.UNINITIALIZED
        self.attempts = 0
        self.last_attempt_at: Optional[datetime] = None
        self.last_error: Optional[Exception] = None

    @property
    def retrying(self) -> bool:
        return self._timer is not None

    @property
    def handle(self):
        """The live handle, or None unless the connection is ready."""
        return self._handle if self.state == ConnectionState.READY else None

    def ensure_connected(self):
        """
        Return the live handle, connecting first if needed.

        Raises:
            StoreConnectionError: the attempt failed, a retry is still pending,
                or the connection was closed
        """
        with self._lock:
            if self.state == ConnectionState.READY:
                return self._handle
            if self.state == ConnectionState.CLOSED:
                raise StoreConnectionError(f"{self.name} connection is closed", service=self.name)
            if self.state == ConnectionState.RETRYING:
                raise StoreConnectionError(
                    f"{self.name} is unavailable, reconnect scheduled", service=self.name
                )
            if not self._attempt():
                raise StoreConnectionError(
                    f"{self.name} connection failed: {self.last_error}", service=self.name
                ) from self.last_error
            return self._handle

    def _attempt(self) -> bool:
        self.state = ConnectionState.CONNECTING
        self.attempts += 1
        self.last_attempt_at = datetime.now(timezone.utc)
        try:
            client, handle = self._connect()
        except Exception as e:
            self.last_error = e
            self.state = ConnectionState.ERROR
            logger.error(f"{self.name} connection attempt {self.attempts} failed: {e}")
            if not self.strict:
                self._schedule_retry()
            return False

        self._client, self._handle = client, handle
        self.last_error = None
        self.state = ConnectionState.READY
        logger.info(f"{self.name} connected after {self.attempts} attempt(s)")
        return True

    def _schedule_retry(self):
        if not self.retry_policy.should_retry(self.attempts):
            logger.error(f"{self.name} giving up scheduled reconnects after {self.attempts} attempt(s)")
            return
        delay = self.retry_policy.delay_seconds
        logger.warning(f"{self.name} reconnect scheduled in {delay}s")
        timer = self._timer_factory(delay, self._retry)
        timer.daemon = True
        self._timer = timer
        self.state = ConnectionState.RETRYING
        timer.start()

    def _retry(self):
        with self._lock:
            self._timer = None
            # Closed (or otherwise handled) while the timer was waiting
            if self.state != ConnectionState.RETRYING:
                return
            self._attempt()

    def close(self):
        """Cancel any pending retry and close the client if one is open."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            client = self._client
            self._client = None
            self._handle = None
            self.state = ConnectionState.CLOSED
        if client is not None:
            self._close(client)
            logger.info(f"{self.name} connection closed")

    def status(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "retrying": self.retrying,
            "attempts": self.attempts,
            "last_attempt_at": self.last_attempt_at.isoformat() if self.last_attempt_at else None,
            "last_error": str(self.last_error) if self.last_error else None,
        }


class ConnectionManager:
    """
    Process-wide owner of the MongoDB and Redis handles.

    Client factories and the timer factory are injectable so tests can run
    without real services or real threads.
    """

    def __init__(
        self,
        settings: Settings,
        mongo_client_factory=MongoClient,
        redis_client_factory=redis.StrictRedis.from_url,
        timer_factory=threading.Timer,
    ):
        self.settings = settings
        self._mongo_client_factory = mongo_client_factory
        self._redis_client_factory = redis_client_factory

        policy = RetryPolicy(
            delay_seconds=settings.connection_retry_delay,
            max_attempts=settings.connection_retry_max_attempts,
        )
        self.document_store = ManagedConnection(
            "MongoDB",
            self._connect_mongo,
            self._close_mongo,
            strict=settings.strict_connections,
            retry_policy=policy,
            timer_factory=timer_factory,
        )
        self.cache_store = ManagedConnection(
            "Redis",
            self._connect_redis,
            self._close_redis,
            strict=settings.strict_connections,
            retry_policy=policy,
            timer_factory=timer_factory,
        )

    # -------------------------------------------------------------------------
    # Public accessors
    # -------------------------------------------------------------------------

    def ensure_document_store_connected(self) -> Database:
        return self.document_store.ensure_connected()

    def ensure_cache_store_connected(self) -> redis.Redis:
        return self.cache_store.ensure_connected()

    def get_document_store_handle(self) -> Optional[Database]:
        return self.document_store.handle

    def get_cache_store_handle(self) -> Optional[redis.Redis]:
        return self.cache_store.handle

    def close_all(self) -> None:
        """
        Close both connections. A failure closing one does not stop the
        other; all failures are raised together afterwards.
        """
        errors: List[Exception] = []
        for connection in (self.document_store, self.cache_store):
            try:
                connection.close()
            except Exception as e:
                logger.error(f"Error closing {connection.name}: {e}")
                errors.append(e)
        if errors:
            raise ConnectionCloseError(errors)

    def status(self) -> Dict[str, Any]:
        return {
            "mongodb": self.document_store.status(),
            "redis": self.cache_store.status(),
        }

    # -------------------------------------------------------------------------
    # Backend-specific connect/close
    # -------------------------------------------------------------------------

    def _connect_mongo(self):
        client = None
        try:
            client = self._mongo_client_factory(
                self.settings.mongodb_uri,
                serverSelectionTimeoutMS=self.settings.mongodb_timeout_ms,
            )
            client.admin.command("ping")
        except PyMongoError as e:
            if client is not None:
                client.close()
            raise StoreConnectionError(f"Could not connect to MongoDB: {e}", service="MongoDB") from e
        db = client[self.settings.mongodb_db_name]
        logger.info(f"Using MongoDB database '{self.settings.mongodb_db_name}'")
        return client, db

    @staticmethod
    def _close_mongo(client) -> None:
        try:
            client.close()
        except PyMongoError as e:
            raise StoreConnectionError(f"Could not close MongoDB client: {e}", service="MongoDB") from e

    def _connect_redis(self):
        client = None
        try:
            client = self._redis_client_factory(
                self.settings.redis_uri,
                decode_responses=True,
            )
            client.ping()
        except redis.exceptions.RedisError as e:
            if client is not None:
                client.close()
            raise StoreConnectionError(f"Could not connect to Redis: {e}", service="Redis") from e
        return client, client

    @staticmethod
    def _close_redis(client) -> None:
        try:
            client.close()
        except redis.exceptions.RedisError as e:
            raise StoreConnectionError(f"Could not close Redis client: {e}", service="Redis") from e
