from typing import Optional

from fastapi import APIRouter, Body, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from collabmodel.core.auth import (
    RequestContext, get_bearer_token, get_password_hasher, get_request_context, get_token_service
)
from collabmodel.core.db import get_db
from collabmodel.core.errors import AuthenticationError
from collabmodel.core.security import PasswordHasher, TokenService
from collabmodel.domains.identity.schemas import LoginRequest, TokenPair
from collabmodel.domains.identity.services import AuthService

router = APIRouter(prefix="/auth", tags=["authentication"])


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
    password_hasher: PasswordHasher = Depends(get_password_hasher)
) -> AuthService:
    return AuthService(db, token_service, password_hasher)


@router.post("/token", response_model=TokenPair)
async def login(
    login_data: Optional[LoginRequest] = Body(None),
    token: Optional[str] = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Вход по учетным данным, либо по refresh токену в заголовке при пустом теле"""
    if login_data is not None:
        return await auth_service.login_with_credentials(login_data)

    if not token:
        raise AuthenticationError("Token not found")
    return await auth_service.login_with_refresh_token(token)


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    context: RequestContext = Depends(get_request_context),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Выход пользователя"""
    await auth_service.logout(context.access_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
