"""Routers package."""

from services.studio_service.routers.auth import router as auth_router
from services.studio_service.routers.memberships import router as memberships_router
from services.studio_service.routers.orders import router as orders_router
from services.studio_service.routers.profile import router as profile_router

__all__ = [
    "auth_router",
    "memberships_router",
    "orders_router",
    "profile_router",
]
