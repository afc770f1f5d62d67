"""Store error hierarchy.

All store implementations raise these errors so the jobs can tell storage
failures apart from Vault and key failures.
"""


class StoreError(Exception):
    """Base exception for all store errors.

    Store implementations wrap backend-specific errors in one of the
    StoreError subclasses.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionError(StoreError):
    """Raised when the store cannot be reached or a query fails.

    Examples:
        - Database connection timeout
        - Network errors
        - Query rejected by the server
    """

    pass


class NotFoundError(StoreError):
    """Raised when a requested entity is not found.

    Raised for a specific entity lookup, not for empty search results.
    """

    pass


class ValidationError(StoreError):
    """Raised when a stored row cannot be mapped to a model."""

    pass
