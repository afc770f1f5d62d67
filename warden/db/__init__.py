"""Database access: connection pool and store errors."""

from warden.db.errors import ConnectionError, NotFoundError, StoreError, ValidationError
from warden.db.pool import PostgresPool

__all__ = [
    "ConnectionError",
    "NotFoundError",
    "PostgresPool",
    "StoreError",
    "ValidationError",
]
