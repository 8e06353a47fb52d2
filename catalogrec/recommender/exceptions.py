"""Custom exceptions for CatalogRec.

Defines the error taxonomy shared by the stores, the engine and the API.
"Nothing matched" is never an error: scorers return an empty list for it.
"""

from typing import Any, Dict, Optional


class CatalogRecException(Exception):
    """Base exception for CatalogRec errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class NotFoundError(CatalogRecException):
    """Raised when a user or product identifier does not resolve."""

    def __init__(self, entity: str, entity_id: Any):
        message = f"{entity.capitalize()} {entity_id} not found"
        super().__init__(
            message=message,
            status_code=404,
            details={"entity": entity, "id": entity_id},
        )
        self.entity = entity
        self.entity_id = entity_id


class InvalidArgumentError(CatalogRecException):
    """Raised when a caller-supplied argument is out of range."""

    def __init__(self, argument: str, value: Any, reason: str):
        message = f"Invalid {argument}={value!r}: {reason}"
        super().__init__(
            message=message,
            status_code=400,
            details={"argument": argument, "value": value, "reason": reason},
        )


class StoreUnavailableError(CatalogRecException):
    """Raised when the backing catalog or interaction store fails."""

    def __init__(self, store: str, error: Exception):
        message = f"{store} store unavailable: {str(error)}"
        super().__init__(
            message=message,
            status_code=503,
            details={
                "store": store,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
