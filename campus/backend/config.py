"""
Backend configuration loaded from environment variables.

A ``.env`` file in the working directory is read first; values already set
in the shell win.
"""
import os
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator
from pymongo.errors import PyMongoError
from pymongo.uri_parser import parse_uri
from redis.connection import parse_url

from shared.modules.errors.exceptions import ConfigurationError

REQUIRED_ENV_VARS = ("MONGODB_URI", "MONGODB_DB_NAME", "REDIS_URI")

DEFAULT_PORT = 3000
DEFAULT_CACHE_TTL_SECONDS = 3600
DEFAULT_RETRY_DELAY_SECONDS = 5.0

_TRUE_VALUES = ("1", "true", "yes", "on")


class Settings(BaseModel):
    mongodb_uri: str
    mongodb_db_name: str = Field(..., min_length=1)
    redis_uri: str

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    app_env: str = "development"

    # Strict connections fail the caller immediately and never schedule a retry
    strict_connections: bool = False
    connection_retry_delay: float = Field(default=DEFAULT_RETRY_DELAY_SECONDS, gt=0)
    connection_retry_max_attempts: Optional[int] = Field(default=None, ge=1)
    mongodb_timeout_ms: int = Field(default=5000, gt=0)

    cache_ttl_seconds: int = Field(default=DEFAULT_CACHE_TTL_SECONDS, gt=0)
    log_level: str = "INFO"

    @field_validator("mongodb_uri")
    @classmethod
    def _check_mongodb_uri(cls, value: str) -> str:
        if not value.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError("MONGODB_URI must start with mongodb:// or mongodb+srv://")
        # SRV records are resolved by the driver at connect time
        if value.startswith("mongodb://"):
            try:
                parse_uri(value)
            except (PyMongoError, ValueError) as e:
                raise ValueError(f"MONGODB_URI is malformed: {e}") from e
        return value

    @field_validator("redis_uri")
    @classmethod
    def _check_redis_uri(cls, value: str) -> str:
        if not value.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("REDIS_URI must start with redis://, rediss:// or unix://")
        try:
            parse_url(value)
        except ValueError as e:
            raise ValueError(f"REDIS_URI is malformed: {e}") from e
        return value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from the process environment (or an explicit mapping).

        Raises:
            ConfigurationError: a required variable is missing or a value is malformed
        """
        if environ is None:
            load_dotenv(find_dotenv(usecwd=True), override=False)
            environ = os.environ

        missing = [name for name in REQUIRED_ENV_VARS if not environ.get(name)]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        app_env = environ.get("APP_ENV", "development")
        strict = environ.get("STRICT_CONNECTIONS")
        values = {
            "mongodb_uri": environ["MONGODB_URI"],
            "mongodb_db_name": environ["MONGODB_DB_NAME"],
            "redis_uri": environ["REDIS_URI"],
            "host": environ.get("HOST", "0.0.0.0"),
            "port": environ.get("PORT", DEFAULT_PORT),
            "app_env": app_env,
            "strict_connections": (
                strict.lower() in _TRUE_VALUES if strict is not None else app_env == "test"
            ),
            "connection_retry_delay": environ.get("CONNECTION_RETRY_DELAY", DEFAULT_RETRY_DELAY_SECONDS),
            "connection_retry_max_attempts": environ.get("CONNECTION_RETRY_MAX_ATTEMPTS") or None,
            "mongodb_timeout_ms": environ.get("MONGODB_TIMEOUT_MS", 5000),
            "cache_ttl_seconds": environ.get("CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS),
            "log_level": environ.get("LOG_LEVEL", "INFO"),
        }
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
