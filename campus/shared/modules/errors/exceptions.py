"""
Exception hierarchy shared by the data-access layer and the API.

Not-found is never raised: lookups return None and callers decide
what absence means.
"""
from typing import List, Optional


class CampusError(Exception):
    """Base class for every error raised by this project."""


class ConfigurationError(CampusError):
    """Required configuration is missing or malformed. Fatal before startup."""


class StoreConnectionError(CampusError, ConnectionError):
    """
    A backing service (MongoDB or Redis) is unavailable.

    Also a builtin ConnectionError so generic transport handlers catch it.
    """

    def __init__(self, message: str, service: Optional[str] = None):
        super().__init__(message)
        self.service = service


class ConnectionCloseError(CampusError):
    """One or more connections failed to close during shutdown."""

    def __init__(self, errors: List[Exception]):
        self.errors = errors
        details = "; ".join(str(e) for e in errors)
        super().__init__(f"Failed to close {len(errors)} connection(s): {details}")


class InvalidIdentifier(CampusError, ValueError):
    """A record identifier is not a well-formed ObjectId string."""

    def __init__(self, record_id):
        self.record_id = record_id
        super().__init__(f"Invalid ObjectId: {record_id!r}")


class StoreError(CampusError):
    """MongoDB rejected a well-formed request."""


class CacheError(CampusError):
    """Redis rejected a well-formed request."""
