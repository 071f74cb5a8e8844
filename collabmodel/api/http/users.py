from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from collabmodel.core.auth import get_current_uid, get_password_hasher
from collabmodel.core.db import get_db
from collabmodel.core.security import PasswordHasher
from collabmodel.domains.identity.schemas import UserCreate, UserUpdate, UserResponse, UserInfo
from collabmodel.domains.identity.services import IdentityService

router = APIRouter(prefix="/users", tags=["users"])


def get_identity_service(
    db: AsyncSession = Depends(get_db),
    password_hasher: PasswordHasher = Depends(get_password_hasher)
) -> IdentityService:
    return IdentityService(db, password_hasher)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    identity_service: IdentityService = Depends(get_identity_service)
):
    """Регистрация нового пользователя"""
    user = await identity_service.create_user(user_data)
    return UserResponse.model_validate(user)


@router.patch("/me", response_model=UserResponse)
async def update_current_user(
    update_data: UserUpdate,
    uid: int = Depends(get_current_uid),
    identity_service: IdentityService = Depends(get_identity_service)
):
    user = await identity_service.update_user(uid, update_data)
    return UserResponse.model_validate(user)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_current_user(
    uid: int = Depends(get_current_uid),
    identity_service: IdentityService = Depends(get_identity_service)
):
    """Удаление своего аккаунта"""
    await identity_service.delete_user(uid)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("", response_model=List[UserInfo])
async def get_users(
    ids: List[int] = Query(...),
    uid: int = Depends(get_current_uid),
    identity_service: IdentityService = Depends(get_identity_service)
):
    """Публичная информация о пользователях по списку id"""
    users = await identity_service.get_users(ids)
    return [UserInfo.model_validate(user) for user in users]
