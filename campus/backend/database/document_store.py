"""
Document Store

CRUD primitives over MongoDB collections. Documents go in as plain dicts
and come back as dicts whose ``_id`` is the ObjectId rendered as a string.
"""
import re
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import ConnectionFailure, PyMongoError

from shared.modules.errors.exceptions import InvalidIdentifier, StoreConnectionError, StoreError
from shared.modules.log.logger import get_logger

logger = get_logger(__name__)


class DocumentStore:
    """
    Generic MongoDB access keyed by ObjectId strings.
    Every operation ensures the MongoDB connection through the ConnectionManager first.
    """

    def __init__(self, connection_manager):
        self.connections = connection_manager

    @staticmethod
    def to_object_id(record_id: Any) -> ObjectId:
        """
        Parse a record id, raising InvalidIdentifier for anything that is not
        a 24-character hex string. Never touches the database.
        """
        if isinstance(record_id, ObjectId):
            return record_id
        if not isinstance(record_id, str) or not ObjectId.is_valid(record_id):
            raise InvalidIdentifier(record_id)
        return ObjectId(record_id)

    @staticmethod
    def _to_record(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if doc is None:
            return None
        record = dict(doc)
        record["_id"] = str(record["_id"])
        return record

    def _collection(self, name: str) -> Collection:
        db = self.connections.ensure_document_store_connected()
        return db[name]

    @contextmanager
    def _translate_errors(self, action: str, collection: str):
        try:
            yield
        except ConnectionFailure as e:
            logger.error(f"MongoDB unavailable during {action} on '{collection}': {e}")
            raise StoreConnectionError(f"MongoDB unavailable: {e}", service="MongoDB") from e
        except PyMongoError as e:
            logger.error(f"MongoDB error during {action} on '{collection}': {e}")
            raise StoreError(f"MongoDB {action} failed: {e}") from e

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a document and return it with its new ``_id``."""
        doc = dict(record)
        doc.pop("_id", None)
        coll = self._collection(collection)
        with self._translate_errors("insert", collection):
            result = coll.insert_one(doc)
        return self._to_record({**doc, "_id": result.inserted_id})

    def find_by_id(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        oid = self.to_object_id(record_id)
        coll = self._collection(collection)
        with self._translate_errors("find", collection):
            doc = coll.find_one({"_id": oid})
        return self._to_record(doc)

    def list_all(self, collection: str) -> List[Dict[str, Any]]:
        coll = self._collection(collection)
        with self._translate_errors("list", collection):
            return [self._to_record(doc) for doc in coll.find()]

    def update_by_id(
        self, collection: str, record_id: str, patch: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Merge ``patch`` into the document with ``$set`` and return the
        post-update document, or None if nothing matched.
        An empty patch writes nothing and returns the current document.
        """
        oid = self.to_object_id(record_id)
        fields = {k: v for k, v in patch.items() if k != "_id"}
        if not fields:
            return self.find_by_id(collection, record_id)
        coll = self._collection(collection)
        with self._translate_errors("update", collection):
            doc = coll.find_one_and_update(
                {"_id": oid},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        return self._to_record(doc)

    def delete_by_id(self, collection: str, record_id: str) -> bool:
        oid = self.to_object_id(record_id)
        coll = self._collection(collection)
        with self._translate_errors("delete", collection):
            result = coll.delete_one({"_id": oid})
        return result.deleted_count > 0

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def count(self, collection: str) -> int:
        coll = self._collection(collection)
        with self._translate_errors("count", collection):
            return coll.count_documents({})

    def search(self, collection: str, field_filter: Dict[str, str]) -> List[Dict[str, Any]]:
        """
        Case-insensitive substring match on each field of ``field_filter``.
        The search text is matched literally, not as a regex.
        """
        query = {
            field: {"$regex": re.escape(text), "$options": "i"}
            for field, text in field_filter.items()
        }
        coll = self._collection(collection)
        with self._translate_errors("search", collection):
            return [self._to_record(doc) for doc in coll.find(query)]

    def average(self, collection: str, field: str) -> Optional[float]:
        """Mean of ``field`` across the collection, None when it is empty."""
        coll = self._collection(collection)
        with self._translate_errors("aggregate", collection):
            result = list(coll.aggregate([
                {"$group": {"_id": None, "avgField": {"$avg": f"${field}"}}},
            ]))
        return result[0]["avgField"] if result else None
