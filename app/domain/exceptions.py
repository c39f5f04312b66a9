"""Domain exceptions.

All domain-level errors raised by the catalog resolver, the pagination
engine, the cache layer and the admin gateway. The API layer maps each
class onto an HTTP status in one place (see ``app.main``).
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.
    """

    error_code = "DOMAIN_ERROR"
    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Input Errors
# ============================================================================


class ValidationError(DomainError):
    """Raised when input is missing or malformed."""

    error_code = "VALIDATION_ERROR"
    status_code = 400


class RequiredFieldError(ValidationError):
    """Raised when a required field is absent or blank."""

    def __init__(self, entity_type: str, field: str) -> None:
        """Initialize required field error.

        Args:
            entity_type: Type of entity being written (e.g., "product").
            field: Name of the missing field.
        """
        super().__init__(
            f"{field} is required",
            details={"entity_type": entity_type, "field": field},
        )


# ============================================================================
# Lookup Errors
# ============================================================================


class NotFoundError(DomainError):
    """Raised when a store, category, product or order cannot be found."""

    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        """Initialize not found error.

        Args:
            entity_type: Type of entity (e.g., "store", "order").
            entity_id: Identifier that was looked up.
        """
        super().__init__(
            f"{entity_type.capitalize()} not found: {entity_id}",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )


class StoreNotResolvableError(NotFoundError):
    """Raised when a store is unknown or not in the active state."""

    error_code = "STORE_NOT_RESOLVABLE"

    def __init__(self, store_id: Any) -> None:
        """Initialize store not resolvable error.

        Args:
            store_id: Store identifier or slug.
        """
        super().__init__("store", store_id)
        self.message = f"Store not resolvable: {store_id}"


# ============================================================================
# Write Errors
# ============================================================================


class ConflictError(DomainError):
    """Raised on referential integrity violations or duplicate keys."""

    error_code = "CONFLICT"
    status_code = 409


class ReferencedRecordError(ConflictError):
    """Raised when a delete is blocked by rows that still reference it."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        """Initialize referenced record error.

        Args:
            entity_type: Type of entity being deleted.
            entity_id: ID of the entity.
        """
        super().__init__(
            "cannot delete: referenced by other records",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )


# ============================================================================
# Access & Configuration Errors
# ============================================================================


class UnauthorizedError(DomainError):
    """Raised when a presented secret does not match."""

    error_code = "UNAUTHORIZED"
    status_code = 401


class MisconfiguredError(DomainError):
    """Raised when a required secret or setting is absent."""

    error_code = "MISCONFIGURED"
    status_code = 500


# ============================================================================
# Storage Errors
# ============================================================================


class StorageError(DomainError):
    """Raised when the relational store is unreachable or erroring."""

    error_code = "STORAGE_ERROR"
    status_code = 503
    retryable = False


class CatalogStorageError(StorageError):
    """Raised by catalog reads on storage failure.

    Distinct from "no matching rows", which is a normal empty result.
    Callers may retry.
    """

    error_code = "CATALOG_STORAGE_ERROR"
    retryable = True
