from collabmodel.db.repositories.user_repository import UserRepository
from collabmodel.db.repositories.session_repository import SessionRepository
from collabmodel.db.repositories.project_repository import ProjectRepository
from collabmodel.db.repositories.query_repository import QueryRepository
from collabmodel.db.repositories.in_use_repository import InUseRepository
from collabmodel.db.repositories.access_repository import AccessRepository

__all__ = [
    "UserRepository",
    "SessionRepository",
    "ProjectRepository",
    "QueryRepository",
    "InUseRepository",
    "AccessRepository"
]
