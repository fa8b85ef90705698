"""Domain exceptions.

All catalog-level errors. Each concrete error carries a machine-readable
``error_code`` that the API layer places in the error envelope, so the
kind of failure is visible to clients without parsing the message.
"""

from typing import Any


class CatalogError(Exception):
    """Base class for all catalog exceptions.

    All catalog errors should inherit from this class to allow
    catching domain-specific errors at the API boundary.
    """

    error_code: str = "CATALOG_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize catalog error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Validation Errors
# ============================================================================


class ProductValidationError(CatalogError):
    """Raised when a submission breaks a field rule.

    Always raised before anything is persisted; the client can correct
    the request and retry.
    """

    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error.

        Args:
            message: Human-readable error message.
            field: Name of the offending field, if any.
            details: Optional dictionary with additional error context.
        """
        context = dict(details or {})
        if field is not None:
            context["field"] = field
        super().__init__(message, details=context)
        self.field = field


class MissingFieldError(ProductValidationError):
    """Raised when a required field is absent or blank."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Field '{field}' is required", field=field)


class ImagePolicyError(ProductValidationError):
    """Raised when an upload violates the deployment's image policy."""

    error_code = "IMAGE_POLICY_VIOLATION"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, field="image", details=details)


# ============================================================================
# Lookup Errors
# ============================================================================


class ProductNotFoundError(CatalogError):
    """Raised when an id does not resolve to a stored product."""

    error_code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str, message: str | None = None) -> None:
        """Initialize not found error.

        Args:
            product_id: The id that failed to resolve.
            message: Optional override for the default message.
        """
        super().__init__(
            message or f"Product not found: {product_id}",
            details={"product_id": product_id},
        )
        self.product_id = product_id


# ============================================================================
# Store Errors
# ============================================================================


class TransientStoreError(CatalogError):
    """Raised when the backing store is unreachable or timed out.

    Not the caller's fault; the operation may be retried as-is.
    """

    error_code = "STORE_UNAVAILABLE"

    def __init__(self, operation: str, reason: str) -> None:
        """Initialize transient store error.

        Args:
            operation: Repository operation that failed.
            reason: Short description of the underlying fault.
        """
        super().__init__(
            f"Product store unavailable during '{operation}'",
            details={"operation": operation, "reason": reason},
        )
        self.operation = operation


# ============================================================================
# Input Decoding Errors
# ============================================================================


class MalformedInputError(CatalogError):
    """Raised when serialized input cannot be decoded.

    Recovered inside the service; never returned to clients.
    """

    error_code = "MALFORMED_INPUT"

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(
            f"Could not decode '{field}': {reason}",
            details={"field": field, "reason": reason},
        )
        self.field = field
