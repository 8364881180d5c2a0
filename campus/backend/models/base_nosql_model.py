"""
Base model class for MongoDB-backed records.
Binds a collection name and a record class to the DocumentStore.
"""
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from backend.database.document_store import DocumentStore
from shared.modules.errors.exceptions import StoreError


class BaseNoSqlModel:
    """
    Typed persistence wrapper for one collection.

    Subclasses set ``collection_name`` and ``record_class``; raw documents
    coming back from MongoDB are turned into frozen pydantic records by
    ``_from_doc``.
    """

    collection_name: str = None
    record_class = None

    def __init__(self, document_store: DocumentStore):
        if not self.collection_name or self.record_class is None:
            raise NotImplementedError("Subclasses must set collection_name and record_class")
        self.store = document_store

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> Any:
        doc = self.store.insert(self.collection_name, data)
        return self._from_doc(doc)

    def find(self, record_id: str) -> Optional[Any]:
        doc = self.store.find_by_id(self.collection_name, record_id)
        return self._from_doc(doc) if doc else None

    def all(self) -> List[Any]:
        return [self._from_doc(doc) for doc in self.store.list_all(self.collection_name)]

    def update(self, record_id: str, patch: Dict[str, Any]) -> Optional[Any]:
        doc = self.store.update_by_id(self.collection_name, record_id, patch)
        return self._from_doc(doc) if doc else None

    def delete(self, record_id: str) -> bool:
        return self.store.delete_by_id(self.collection_name, record_id)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def count(self) -> int:
        return self.store.count(self.collection_name)

    def search(self, field: str, text: str) -> List[Any]:
        return [self._from_doc(doc) for doc in self.store.search(self.collection_name, {field: text})]

    def average(self, field: str) -> Optional[float]:
        return self.store.average(self.collection_name, field)

    def validate_id(self, record_id: str) -> None:
        """Raise InvalidIdentifier for a malformed id without any I/O."""
        DocumentStore.to_object_id(record_id)

    @classmethod
    def _from_doc(cls, doc: Dict[str, Any]) -> Any:
        """
        Raises:
            StoreError: the stored document does not match the record schema
        """
        try:
            return cls.record_class.model_validate(doc)
        except ValidationError as e:
            raise StoreError(
                f"Malformed document {doc.get('_id')!r} in '{cls.collection_name}': {e}"
            ) from e

    @staticmethod
    def to_doc(record: Any) -> Dict[str, Any]:
        """Serialize a record back to its stored shape (``_id`` included)."""
        return record.model_dump(by_alias=True)
