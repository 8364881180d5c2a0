"""
Cache-aside access for a single resource type.

Reads go to Redis first and fall back to MongoDB; writes go to MongoDB and
then refresh the Redis entry (write-through). MongoDB is always the store of
record, so a cache failure on the way in or out never fails a request that
MongoDB already satisfied. Deletes are the exception: a cache entry that
survives its record would keep serving it, so that failure is surfaced.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from backend.config import DEFAULT_CACHE_TTL_SECONDS
from backend.models.base_nosql_model import BaseNoSqlModel
from shared.modules.cache.cache_key_generator import CacheKeyGenerator
from shared.modules.cache.cache_store import CacheStore
from shared.modules.errors.exceptions import CacheError, StoreConnectionError
from shared.modules.log.logger import get_logger
from shared.modules.records.enums.resource_type_enum import ResourceType

_CACHE_FAILURES = (CacheError, StoreConnectionError)


class CachedRecordService:
    """
    Read-through / write-through façade over a BaseNoSqlModel and the CacheStore.

    Subclasses set ``resource`` and the labels used by ``stats``.
    """

    resource: ResourceType = None
    search_field = "name"
    count_label = "total"
    average_field: Optional[str] = None
    average_label: Optional[str] = None

    def __init__(self, model: BaseNoSqlModel, cache: CacheStore, ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS):
        self.model = model
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.logger = get_logger(self.__class__.__module__, {"resource": self.resource.value})

    def cache_key(self, record_id: str) -> str:
        return CacheKeyGenerator.generate(self.resource, record_id)

    # -------------------------------------------------------------------------
    # Single-record paths (cached)
    # -------------------------------------------------------------------------

    def create(self, payload: BaseModel) -> Any:
        record = self.model.create(payload.model_dump(by_alias=True))
        self._write_through(record)
        return record

    def get(self, record_id: str) -> Optional[Any]:
        """
        Cached record if present, otherwise the stored one (which is then
        cached). Absent records return None and are not cached.
        """
        self.model.validate_id(record_id)
        cached = self._read_cache(self.cache_key(record_id))
        if cached is not None:
            return cached

        record = self.model.find(record_id)
        if record is None:
            return None
        self._write_through(record)
        return record

    def update(self, record_id: str, patch: BaseModel) -> Optional[Any]:
        """
        Apply the fields set on ``patch`` and cache the post-update record.
        Returns None, leaving the cache untouched, when the record does not exist.
        """
        self.model.validate_id(record_id)
        fields = patch.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
        record = self.model.update(record_id, fields)
        if record is None:
            return None
        if not self._write_through(record):
            # Never leave the pre-update value behind
            self._invalidate(self.cache_key(record_id))
        return record

    def delete(self, record_id: str) -> bool:
        """
        Delete from MongoDB, then always drop the cache key.
        Returns whether MongoDB actually removed a record.
        """
        self.model.validate_id(record_id)
        deleted = self.model.delete(record_id)
        self.cache.delete(self.cache_key(record_id))
        return deleted

    # -------------------------------------------------------------------------
    # Multi-record views (never cached)
    # -------------------------------------------------------------------------

    def list_all(self) -> List[Any]:
        return self.model.all()

    def search(self, keyword: str) -> List[Any]:
        return self.model.search(self.search_field, keyword)

    def stats(self) -> Dict[str, Any]:
        result = {self.count_label: self.model.count()}
        if self.average_field:
            result[self.average_label] = self.model.average(self.average_field)
        return result

    # -------------------------------------------------------------------------
    # Cache helpers
    # -------------------------------------------------------------------------

    def _read_cache(self, key: str) -> Optional[Any]:
        try:
            doc = self.cache.get(key)
        except _CACHE_FAILURES as e:
            self.logger.warning(f"Cache read failed for {key}, falling back to MongoDB: {e}")
            return None
        if doc is None:
            return None
        try:
            return self.model.record_class.model_validate(doc)
        except ValidationError as e:
            self.logger.warning(f"Discarding malformed cache entry {key}: {e}")
            return None

    def _write_through(self, record: Any) -> bool:
        key = self.cache_key(record.id)
        try:
            self.cache.put(key, self.model.to_doc(record), self.ttl_seconds)
        except _CACHE_FAILURES as e:
            self.logger.warning(f"Cache write failed for {key}: {e}")
            return False
        return True

    def _invalidate(self, key: str) -> None:
        try:
            self.cache.delete(key)
        except _CACHE_FAILURES as e:
            self.logger.error(f"Cache invalidation failed for {key}, entry may be stale until expiry: {e}")
