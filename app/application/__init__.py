"""Application layer module.

Contains application services (use cases) that orchestrate
domain logic and infrastructure.
"""

from app.application.admin_service import AdminGateway
from app.application.cache_service import CacheService, CacheStore, CacheTag, ResourceClass
from app.application.revalidation_service import RevalidationService, secrets_match
from app.application.store_directory import StoreDirectory
from app.application.storefront_service import StorefrontService

__all__ = [
    "AdminGateway",
    "CacheService",
    "CacheStore",
    "CacheTag",
    "ResourceClass",
    "RevalidationService",
    "secrets_match",
    "StoreDirectory",
    "StorefrontService",
]
