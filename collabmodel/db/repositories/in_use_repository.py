from datetime import datetime
from typing import Optional

from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession

from collabmodel.db.models.project import InUse as InUseModel
from collabmodel.domains.projects.entities import InUse


class InUseRepository:
    """Репозиторий блокировок редактирования проектов"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_project_id(self, project_id: int) -> Optional[InUse]:
        result = await self.session.execute(
            select(InUseModel).where(InUseModel.project_id == project_id)
        )
        db_in_use = result.scalar_one_or_none()
        return self._to_domain(db_in_use) if db_in_use else None

    async def claim(
        self,
        project_id: int,
        session_id: int,
        now: datetime,
        stale_before: datetime
    ) -> bool:
        """Атомарный захват или продление блокировки.

        Строка обновляется одним условным UPDATE только если блокировка
        устарела, свободна или уже принадлежит этой сессии; результат
        определяется по числу затронутых строк.
        """
        stmt = (
            update(InUseModel)
            .where(InUseModel.project_id == project_id)
            .where(
                or_(
                    InUseModel.latest_activity < stale_before,
                    InUseModel.session_id == session_id,
                    InUseModel.session_id.is_(None),
                )
            )
            .values(session_id=session_id, latest_activity=now)
            .execution_options(synchronize_session=False)
        )

        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    def _to_domain(self, db_in_use: InUseModel) -> InUse:
        return InUse(
            project_id=db_in_use.project_id,
            session_id=db_in_use.session_id,
            latest_activity=db_in_use.latest_activity
        )
