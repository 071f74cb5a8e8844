from typing import Optional

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from collabmodel.core.errors import ConflictError, NotFoundError
from collabmodel.core.security import TokenType, utcnow
from collabmodel.db.models.session import Session as SessionModel
from collabmodel.domains.identity.entities import Session


class SessionRepository:
    """Репозиторий сессий: одна строка на каждую активную пару токенов"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _token_column(self, token_type: TokenType):
        # токены одной сессии - независимые ключи поиска одной и той же строки
        if token_type == TokenType.ACCESS:
            return SessionModel.access_token
        return SessionModel.refresh_token

    async def create(self, auth_session: Session) -> Session:
        """Создание новой сессии"""
        db_session = SessionModel(
            access_token=auth_session.access_token,
            refresh_token=auth_session.refresh_token,
            user_id=auth_session.user_id,
            updated_at=auth_session.updated_at or utcnow()
        )

        self.session.add(db_session)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("Session with this token already exists")
        await self.session.refresh(db_session)
        return self._to_domain(db_session)

    async def get_by_id(self, session_id: int) -> Optional[Session]:
        result = await self.session.execute(
            select(SessionModel).where(SessionModel.id == session_id)
        )
        db_session = result.scalar_one_or_none()
        return self._to_domain(db_session) if db_session else None

    async def get_by_token(self, token_type: TokenType, token: str) -> Optional[Session]:
        """Поиск сессии по токену указанного класса"""
        result = await self.session.execute(
            select(SessionModel).where(self._token_column(token_type) == token)
        )
        db_session = result.scalar_one_or_none()
        return self._to_domain(db_session) if db_session else None

    async def update(self, auth_session: Session) -> Session:
        """Замена токенов сессии и отметки времени"""
        stmt = (
            update(SessionModel)
            .where(SessionModel.id == auth_session.id)
            .values(
                access_token=auth_session.access_token,
                refresh_token=auth_session.refresh_token,
                updated_at=auth_session.updated_at or utcnow()
            )
            .execution_options(synchronize_session=False)
        )

        result = await self.session.execute(stmt)
        await self.session.commit()

        if result.rowcount == 0:
            raise NotFoundError("No session found with given id")

        return await self.get_by_id(auth_session.id)

    async def delete_by_token(self, token_type: TokenType, token: str) -> Session:
        """Удаление сессии по токену, NotFoundError если сессии нет"""
        auth_session = await self.get_by_token(token_type, token)
        if auth_session is None:
            raise NotFoundError(f"No session found with the provided {token_type.value} token")

        result = await self.session.execute(
            delete(SessionModel).where(SessionModel.id == auth_session.id)
        )
        await self.session.commit()

        if result.rowcount == 0:
            raise NotFoundError(f"No session found with the provided {token_type.value} token")

        return auth_session

    def _to_domain(self, db_session: SessionModel) -> Session:
        """Преобразование модели БД в доменную сущность"""
        return Session(
            id=db_session.id,
            access_token=db_session.access_token,
            refresh_token=db_session.refresh_token,
            user_id=db_session.user_id,
            updated_at=db_session.updated_at
        )
