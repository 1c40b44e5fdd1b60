from .auth import router as auth_router
from .health import router as health_router
from .todos import router as todos_router
from .users import router as users_router

_routers = [health_router, auth_router, todos_router, users_router]

__all__ = ["get_routers"]


def get_routers():
    return _routers
