from typing import Optional, Any, Dict, List

from pydantic import BaseModel, Field, ConfigDict

from collabmodel.domains.access.entities import Role


class ProjectCreate(BaseModel):
    """Схема для создания проекта"""
    name: str = Field(..., min_length=1, max_length=255)
    components_info: Dict[str, Any]


class ProjectUpdate(BaseModel):
    """Частичное обновление проекта, owner_id меняет только владелец"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    components_info: Optional[Dict[str, Any]] = None
    owner_id: Optional[int] = None


class ProjectResponse(BaseModel):
    id: int
    name: str
    components_info: Dict[str, Any]
    owner_id: int

    model_config = ConfigDict(from_attributes=True)


class ProjectInfo(BaseModel):
    """Краткая информация о проекте в списке проектов пользователя"""
    project_id: int
    project_name: str
    project_owner_id: int
    user_role_on_project: Role


class QueryCreate(BaseModel):
    string: str = Field(..., min_length=1)


class QueryUpdate(BaseModel):
    string: str = Field(..., min_length=1)


class QueryResponse(BaseModel):
    id: int
    string: str
    result: Optional[Any] = None
    outdated: bool
    project_id: int

    model_config = ConfigDict(from_attributes=True)


class ProjectDetailResponse(BaseModel):
    """Проект, его запросы и признак занятости другой сессией"""
    project: ProjectResponse
    queries: List[QueryResponse]
    in_use: bool


class SendQueryResponse(BaseModel):
    query_id: int
    result: Optional[Any] = None
