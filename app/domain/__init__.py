"""Domain layer - value objects, state machines and exceptions.

Example usage:
    from app.domain import OrderStatus, slugify

    slugify("Fresh Mart")  # "fresh-mart"
    OrderStatus.PENDING.can_transition_to(OrderStatus.CONFIRMED)  # True
"""

from app.domain.exceptions import (
    CatalogStorageError,
    ConflictError,
    DomainError,
    MisconfiguredError,
    NotFoundError,
    ReferencedRecordError,
    RequiredFieldError,
    StorageError,
    StoreNotResolvableError,
    UnauthorizedError,
    ValidationError,
)
from app.domain.state_machines import OrderStatus, StoreStatus
from app.domain.value_objects import EffectiveProduct, ProductSource, slugify

__all__ = [
    # Exceptions
    "CatalogStorageError",
    "ConflictError",
    "DomainError",
    "MisconfiguredError",
    "NotFoundError",
    "ReferencedRecordError",
    "RequiredFieldError",
    "StorageError",
    "StoreNotResolvableError",
    "UnauthorizedError",
    "ValidationError",
    # State machines
    "OrderStatus",
    "StoreStatus",
    # Value objects
    "EffectiveProduct",
    "ProductSource",
    "slugify",
]
