"""API layer module.

Contains FastAPI routers, middleware and request/response schemas.
"""

from app.api.admin import router as admin_router
from app.api.health import router as health_router
from app.api.revalidate import router as revalidate_router
from app.api.storefront import router as storefront_router

__all__ = [
    "admin_router",
    "health_router",
    "revalidate_router",
    "storefront_router",
]
