import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from collabmodel.core.errors import AuthenticationError, NotFoundError
from collabmodel.core.security import (
    PasswordHasher, TokenError, TokenErrorKind, TokenService, TokenType, utcnow
)
from collabmodel.db.repositories.session_repository import SessionRepository
from collabmodel.db.repositories.user_repository import UserRepository
from collabmodel.domains.identity.entities import User, Session
from collabmodel.domains.identity.schemas import UserCreate, UserUpdate, LoginRequest, TokenPair

logger = logging.getLogger(__name__)


class AuthService:
    """Вход по учетным данным, ротация токенов и выход"""

    def __init__(
        self,
        session: AsyncSession,
        token_service: TokenService,
        password_hasher: PasswordHasher
    ):
        self.session = session
        self.token_service = token_service
        self.password_hasher = password_hasher
        self.user_repository = UserRepository(session)
        self.session_repository = SessionRepository(session)

    def _issue_pair(self, user_id: int) -> TokenPair:
        subject = str(user_id)
        return TokenPair(
            access_token=self.token_service.issue(TokenType.ACCESS, subject),
            refresh_token=self.token_service.issue(TokenType.REFRESH, subject)
        )

    async def _find_user(self, username_or_email: str):
        if "@" in username_or_email:
            return await self.user_repository.get_by_email(username_or_email)
        return await self.user_repository.get_by_username(username_or_email)

    async def login_with_credentials(self, login_data: LoginRequest) -> TokenPair:
        """Вход по логину или email и паролю, всегда создает новую сессию"""
        user = await self._find_user(login_data.username_or_email)

        # одинаковое сообщение для неизвестного пользователя и неверного пароля
        if user is None or not self.password_hasher.verify(login_data.password, user.password_hash):
            logger.info("Failed credential login attempt")
            raise AuthenticationError("Wrong username or password")

        tokens = self._issue_pair(user.id)
        auth_session = await self.session_repository.create(Session(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            user_id=user.id,
            updated_at=utcnow()
        ))

        logger.info("User %s logged in, session %s created", user.id, auth_session.id)
        return tokens

    async def login_with_refresh_token(self, refresh_token: str) -> TokenPair:
        """Ротация пары токенов по действующему refresh токену"""
        try:
            claims = self.token_service.validate(TokenType.REFRESH, refresh_token)
        except TokenError as exc:
            if exc.kind == TokenErrorKind.EXPIRED_SIGNATURE:
                await self._drop_expired_session(refresh_token)
            raise

        auth_session = await self.session_repository.get_by_token(TokenType.REFRESH, refresh_token)
        if auth_session is None:
            logger.info("Refresh attempted for user %s without a matching session", claims.user_id)
            raise AuthenticationError("No session found with given refresh token")

        tokens = self._issue_pair(claims.user_id)
        auth_session.rotate(tokens.access_token, tokens.refresh_token, utcnow())
        await self.session_repository.update(auth_session)

        logger.info("Session %s rotated for user %s", auth_session.id, claims.user_id)
        return tokens

    async def _drop_expired_session(self, refresh_token: str) -> None:
        """Удаление сессии с истекшим refresh токеном, ошибки не передаются вызывающему"""
        try:
            auth_session = await self.session_repository.delete_by_token(TokenType.REFRESH, refresh_token)
            logger.info("Session %s removed after refresh token expiry", auth_session.id)
        except NotFoundError:
            logger.info("Expired refresh token had no session to remove")
        except SQLAlchemyError:
            await self.session.rollback()
            logger.warning("Could not remove session for expired refresh token", exc_info=True)

    async def logout(self, access_token: str) -> None:
        """Удаление сессии, привязанной к access токену"""
        auth_session = await self.session_repository.delete_by_token(TokenType.ACCESS, access_token)
        logger.info("User %s logged out, session %s removed", auth_session.user_id, auth_session.id)


class IdentityService:
    """Сервис для работы с пользователями"""

    def __init__(self, session: AsyncSession, password_hasher: PasswordHasher):
        self.session = session
        self.password_hasher = password_hasher
        self.user_repository = UserRepository(session)

    async def create_user(self, user_data: UserCreate) -> User:
        """Регистрация нового пользователя"""
        user = await self.user_repository.create(User(
            username=user_data.username,
            email=user_data.email,
            password_hash=self.password_hasher.hash(user_data.password)
        ))
        logger.info("User %s created", user.id)
        return user

    async def update_user(self, user_id: int, update_data: UserUpdate) -> User:
        """Обновление профиля текущего пользователя"""
        user = await self.user_repository.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        password_hash = None
        if update_data.password:
            password_hash = self.password_hasher.hash(update_data.password)

        user.update_profile(
            username=update_data.username,
            email=update_data.email,
            password_hash=password_hash
        )
        return await self.user_repository.update(user)

    async def delete_user(self, user_id: int) -> None:
        """Удаление пользователя вместе с его сессиями и проектами"""
        if not await self.user_repository.delete(user_id):
            raise NotFoundError("User not found")
        logger.info("User %s deleted", user_id)

    async def get_users(self, user_ids: List[int]) -> List[User]:
        return await self.user_repository.get_by_ids(user_ids)
