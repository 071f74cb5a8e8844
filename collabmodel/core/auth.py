from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from collabmodel.core.config import Settings
from collabmodel.core.db import get_db
from collabmodel.core.errors import AuthenticationError
from collabmodel.core.security import PasswordHasher, TokenService, TokenType
from collabmodel.db.repositories.session_repository import SessionRepository
from collabmodel.domains.identity.entities import Session
from collabmodel.infrastructure.query_engine import QueryEngine

# auto_error отключен: отсутствие токена отдается в общем формате ошибок
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class RequestContext:
    """Пользователь запроса и его access токен"""
    uid: int
    access_token: str


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_query_engine(request: Request) -> QueryEngine:
    return request.app.state.query_engine


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[str]:
    """Токен из заголовка Authorization, если он передан"""
    if credentials is None:
        return None
    return credentials.credentials


async def get_request_context(
    token: Optional[str] = Depends(get_bearer_token),
    token_service: TokenService = Depends(get_token_service)
) -> RequestContext:
    """Проверка access токена до вызова обработчика"""
    if not token:
        raise AuthenticationError("Token not found")

    claims = token_service.validate(TokenType.ACCESS, token)
    return RequestContext(uid=claims.user_id, access_token=token)


async def get_current_uid(context: RequestContext = Depends(get_request_context)) -> int:
    return context.uid


async def get_current_session(
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db)
) -> Session:
    """Сессия, которой принадлежит access токен; после выхода токен отклоняется"""
    auth_session = await SessionRepository(db).get_by_token(TokenType.ACCESS, context.access_token)
    if auth_session is None:
        raise AuthenticationError("No session found with given access token")
    return auth_session
