from typing import Optional, List

from sqlalchemy import select, update, delete, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from collabmodel.core.errors import ConflictError
from collabmodel.db.models.access import Access as AccessModel
from collabmodel.domains.access.entities import Access, Role


class AccessRepository:
    """Репозиторий прав доступа пользователей к проектам"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, access: Access) -> Access:
        db_access = AccessModel(
            role=access.role,
            project_id=access.project_id,
            user_id=access.user_id
        )

        self.session.add(db_access)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("User already has access to this project")
        await self.session.refresh(db_access)
        return self._to_domain(db_access)

    async def get_by_id(self, access_id: int) -> Optional[Access]:
        result = await self.session.execute(
            select(AccessModel).where(AccessModel.id == access_id)
        )
        db_access = result.scalar_one_or_none()
        return self._to_domain(db_access) if db_access else None

    async def get_by_user_and_project(self, user_id: int, project_id: int) -> Optional[Access]:
        """Права пользователя на проект"""
        result = await self.session.execute(
            select(AccessModel).where(
                and_(
                    AccessModel.user_id == user_id,
                    AccessModel.project_id == project_id
                )
            )
        )
        db_access = result.scalar_one_or_none()
        return self._to_domain(db_access) if db_access else None

    async def get_all_by_project_id(self, project_id: int) -> List[Access]:
        result = await self.session.execute(
            select(AccessModel)
            .where(AccessModel.project_id == project_id)
            .order_by(AccessModel.id.asc())
        )
        return [self._to_domain(access) for access in result.scalars().all()]

    async def update_role(self, access_id: int, role: Role) -> Optional[Access]:
        stmt = (
            update(AccessModel)
            .where(AccessModel.id == access_id)
            .values(role=role)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        await self.session.commit()
        return await self.get_by_id(access_id)

    async def delete(self, access_id: int) -> bool:
        stmt = delete(AccessModel).where(AccessModel.id == access_id)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    def _to_domain(self, db_access: AccessModel) -> Access:
        return Access(
            id=db_access.id,
            role=db_access.role,
            project_id=db_access.project_id,
            user_id=db_access.user_id
        )
