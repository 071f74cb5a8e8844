from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from collabmodel.core.auth import get_current_uid
from collabmodel.core.db import get_db
from collabmodel.domains.access.schemas import AccessCreate, AccessUpdate, AccessResponse
from collabmodel.domains.access.services import AccessService

router = APIRouter(tags=["access"])


def get_access_service(db: AsyncSession = Depends(get_db)) -> AccessService:
    return AccessService(db)


@router.get("/projects/{project_id}/access", response_model=List[AccessResponse])
async def list_access(
    project_id: int,
    uid: int = Depends(get_current_uid),
    access_service: AccessService = Depends(get_access_service)
):
    accesses = await access_service.list_access(project_id, uid)
    return [AccessResponse.model_validate(access) for access in accesses]


@router.post(
    "/projects/{project_id}/access",
    response_model=AccessResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_access(
    project_id: int,
    access_data: AccessCreate,
    uid: int = Depends(get_current_uid),
    access_service: AccessService = Depends(get_access_service)
):
    """Выдача прав на проект другому пользователю"""
    access = await access_service.grant_access(project_id, uid, access_data)
    return AccessResponse.model_validate(access)


@router.patch("/access/{access_id}", response_model=AccessResponse)
async def update_access(
    access_id: int,
    access_data: AccessUpdate,
    uid: int = Depends(get_current_uid),
    access_service: AccessService = Depends(get_access_service)
):
    access = await access_service.update_access(access_id, uid, access_data.role)
    return AccessResponse.model_validate(access)


@router.delete("/access/{access_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_access(
    access_id: int,
    uid: int = Depends(get_current_uid),
    access_service: AccessService = Depends(get_access_service)
):
    await access_service.delete_access(access_id, uid)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
