from datetime import timedelta
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from collabmodel.core.auth import get_current_session, get_current_uid, get_settings
from collabmodel.core.config import Settings
from collabmodel.core.db import get_db
from collabmodel.domains.identity.entities import Session
from collabmodel.domains.projects.schemas import (
    ProjectCreate, ProjectUpdate, ProjectResponse, ProjectInfo, ProjectDetailResponse, QueryResponse
)
from collabmodel.domains.projects.services import ProjectService

router = APIRouter(prefix="/projects", tags=["projects"])


def get_project_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
) -> ProjectService:
    return ProjectService(db, timedelta(minutes=settings.in_use_timeout_minutes))


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    uid: int = Depends(get_current_uid),
    auth_session: Session = Depends(get_current_session),
    project_service: ProjectService = Depends(get_project_service)
):
    """Создание проекта, блокировка сразу принадлежит сессии создателя"""
    project = await project_service.create_project(uid, auth_session.id, project_data)
    return ProjectResponse.model_validate(project)


@router.get("", response_model=List[ProjectInfo])
async def list_projects(
    uid: int = Depends(get_current_uid),
    project_service: ProjectService = Depends(get_project_service)
):
    return await project_service.list_projects(uid)


@router.get("/{project_id}", response_model=ProjectDetailResponse)
async def get_project(
    project_id: int,
    uid: int = Depends(get_current_uid),
    auth_session: Session = Depends(get_current_session),
    project_service: ProjectService = Depends(get_project_service)
):
    project, queries, in_use = await project_service.get_project(project_id, uid, auth_session.id)
    return ProjectDetailResponse(
        project=ProjectResponse.model_validate(project),
        queries=[QueryResponse.model_validate(query) for query in queries],
        in_use=in_use
    )


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: int,
    update_data: ProjectUpdate,
    uid: int = Depends(get_current_uid),
    auth_session: Session = Depends(get_current_session),
    project_service: ProjectService = Depends(get_project_service)
):
    project = await project_service.update_project(project_id, uid, auth_session.id, update_data)
    return ProjectResponse.model_validate(project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: int,
    uid: int = Depends(get_current_uid),
    project_service: ProjectService = Depends(get_project_service)
):
    """Удаление проекта владельцем"""
    await project_service.delete_project(project_id, uid)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
