from typing import Optional, List

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from collabmodel.db.models.project import Query as QueryModel
from collabmodel.domains.projects.entities import Query


class QueryRepository:
    """Репозиторий для работы с запросами проекта"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, query: Query) -> Query:
        db_query = QueryModel(
            string=query.string,
            result=query.result,
            outdated=query.outdated,
            project_id=query.project_id
        )

        self.session.add(db_query)
        await self.session.commit()
        await self.session.refresh(db_query)
        return self._to_domain(db_query)

    async def get_by_id(self, query_id: int) -> Optional[Query]:
        result = await self.session.execute(
            select(QueryModel).where(QueryModel.id == query_id)
        )
        db_query = result.scalar_one_or_none()
        return self._to_domain(db_query) if db_query else None

    async def get_all_by_project_id(self, project_id: int) -> List[Query]:
        result = await self.session.execute(
            select(QueryModel)
            .where(QueryModel.project_id == project_id)
            .order_by(QueryModel.id.asc())
        )
        return [self._to_domain(query) for query in result.scalars().all()]

    async def update(self, query: Query) -> Query:
        stmt = (
            update(QueryModel)
            .where(QueryModel.id == query.id)
            .values(
                string=query.string,
                result=query.result,
                outdated=query.outdated
            )
            .execution_options(synchronize_session=False)
        )

        await self.session.execute(stmt)
        await self.session.commit()

        return await self.get_by_id(query.id)

    async def mark_outdated(self, project_id: int) -> int:
        """Пометка всех результатов проекта как устаревших после изменения модели"""
        stmt = (
            update(QueryModel)
            .where(QueryModel.project_id == project_id)
            .values(outdated=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount

    async def delete(self, query_id: int) -> bool:
        stmt = delete(QueryModel).where(QueryModel.id == query_id)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    def _to_domain(self, db_query: QueryModel) -> Query:
        """Преобразование модели БД в доменную сущность"""
        return Query(
            id=db_query.id,
            string=db_query.string,
            project_id=db_query.project_id,
            result=db_query.result,
            outdated=db_query.outdated
        )
