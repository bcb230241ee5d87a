# Import all routes
from .public import router as public_router
from .auth import router as auth_router
from .profile import router as profile_router
from .dashboard import router as dashboard_router
from .admin import router as admin_router
from .health import router as health_router

# All routers that should be included in main app
__all__ = [
    "public_router",
    "auth_router",
    "profile_router",
    "dashboard_router",
    "admin_router",
    "health_router"
]
