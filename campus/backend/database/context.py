"""
Database context for the Flask application.
Hands out the data-access objects built on the app's ConnectionManager.
"""
from flask import current_app, g

from backend.database.connection_manager import ConnectionManager
from backend.database.document_store import DocumentStore
from shared.modules.cache.cache_store import CacheStore

CONNECTION_MANAGER_KEY = "connection_manager"


class DatabaseContext:
    """
    Request-scoped access to the document store and the cache.
    The underlying clients are process-wide and owned by the ConnectionManager.
    """

    @staticmethod
    def get_connection_manager() -> ConnectionManager:
        """Get the ConnectionManager registered on the current app."""
        return current_app.extensions[CONNECTION_MANAGER_KEY]

    @staticmethod
    def get_document_store() -> DocumentStore:
        if "document_store" not in g:
            g.document_store = DocumentStore(DatabaseContext.get_connection_manager())
        return g.document_store

    @staticmethod
    def get_cache_store() -> CacheStore:
        if "cache_store" not in g:
            g.cache_store = CacheStore(DatabaseContext.get_connection_manager())
        return g.cache_store
