from collabmodel.api.http.health import router as health_router
from collabmodel.api.http.auth import router as auth_router
from collabmodel.api.http.users import router as users_router
from collabmodel.api.http.projects import router as projects_router
from collabmodel.api.http.queries import router as queries_router
from collabmodel.api.http.access import router as access_router

__all__ = [
    "health_router",
    "auth_router",
    "users_router",
    "projects_router",
    "queries_router",
    "access_router"
]
