from typing import Optional, List

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from collabmodel.core.errors import ConflictError
from collabmodel.core.security import utcnow
from collabmodel.db.models.access import Access as AccessModel
from collabmodel.db.models.project import Project as ProjectModel, InUse as InUseModel
from collabmodel.domains.access.entities import Role
from collabmodel.domains.projects.entities import Project


class ProjectRepository:
    """Репозиторий для работы с проектами"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, project: Project, session_id: int) -> Project:
        """Создание проекта вместе с блокировкой и правами владельца в одной транзакции"""
        db_project = ProjectModel(
            name=project.name,
            components_info=project.components_info,
            owner_id=project.owner_id
        )

        self.session.add(db_project)
        try:
            await self.session.flush()
            self.session.add(InUseModel(
                project_id=db_project.id,
                session_id=session_id,
                latest_activity=utcnow()
            ))
            self.session.add(AccessModel(
                role=Role.EDITOR,
                project_id=db_project.id,
                user_id=project.owner_id
            ))
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("A project with that name already exists")

        await self.session.refresh(db_project)
        return self._to_domain(db_project)

    async def get_by_id(self, project_id: int) -> Optional[Project]:
        """Получение проекта по id"""
        result = await self.session.execute(
            select(ProjectModel).where(ProjectModel.id == project_id)
        )
        db_project = result.scalar_one_or_none()
        return self._to_domain(db_project) if db_project else None

    async def update(self, project: Project, grant_owner_editor: bool = False) -> Project:
        """Обновление проекта.

        При grant_owner_editor владелец в той же транзакции получает
        как минимум роль Editor, поэтому при ошибке обновления права не меняются.
        """
        stmt = (
            update(ProjectModel)
            .where(ProjectModel.id == project.id)
            .values(
                name=project.name,
                components_info=project.components_info,
                owner_id=project.owner_id
            )
            .execution_options(synchronize_session=False)
        )

        try:
            await self.session.execute(stmt)
            if grant_owner_editor:
                await self._grant_editor(project.id, project.owner_id)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("A project with that name already exists")

        return await self.get_by_id(project.id)

    async def _grant_editor(self, project_id: int, user_id: int) -> None:
        result = await self.session.execute(
            select(AccessModel).where(
                AccessModel.project_id == project_id,
                AccessModel.user_id == user_id
            )
        )
        db_access = result.scalar_one_or_none()
        if db_access is None:
            self.session.add(AccessModel(role=Role.EDITOR, project_id=project_id, user_id=user_id))
        elif not Role(db_access.role).can_edit:
            db_access.role = Role.EDITOR
        await self.session.flush()

    async def delete(self, project_id: int) -> bool:
        """Удаление проекта; запросы, права и блокировка удаляются каскадно"""
        stmt = delete(ProjectModel).where(ProjectModel.id == project_id)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    async def list_info_by_user(self, user_id: int) -> List[dict]:
        """Проекты, к которым у пользователя есть доступ, и его роль в них"""
        result = await self.session.execute(
            select(ProjectModel.id, ProjectModel.name, ProjectModel.owner_id, AccessModel.role)
            .join(AccessModel, AccessModel.project_id == ProjectModel.id)
            .where(AccessModel.user_id == user_id)
            .order_by(ProjectModel.id)
        )
        return [
            {
                "project_id": project_id,
                "project_name": name,
                "project_owner_id": owner_id,
                "user_role_on_project": Role(role),
            }
            for project_id, name, owner_id, role in result.all()
        ]

    def _to_domain(self, db_project: ProjectModel) -> Project:
        """Преобразование модели БД в доменную сущность"""
        return Project(
            id=db_project.id,
            name=db_project.name,
            components_info=db_project.components_info,
            owner_id=db_project.owner_id
        )
