from collabmodel.db.models.user import User
from collabmodel.db.models.session import Session
from collabmodel.db.models.project import Project, Query, InUse
from collabmodel.db.models.access import Access

__all__ = [
    "User",
    "Session",
    "Project",
    "Query",
    "InUse",
    "Access"
]
