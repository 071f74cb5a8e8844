from collabmodel.domains.projects.entities import Project, Query, InUse
from collabmodel.domains.projects.schemas import (
    ProjectCreate, ProjectUpdate, ProjectResponse, ProjectInfo, ProjectDetailResponse,
    QueryCreate, QueryUpdate, QueryResponse, SendQueryResponse
)

__all__ = [
    "Project", "Query", "InUse",
    "ProjectCreate", "ProjectUpdate", "ProjectResponse", "ProjectInfo", "ProjectDetailResponse",
    "QueryCreate", "QueryUpdate", "QueryResponse", "SendQueryResponse",
]
