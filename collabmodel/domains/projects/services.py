import logging
from datetime import timedelta
from typing import List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from collabmodel.core.errors import NotFoundError, LockConflictError, PermissionDeniedError, ServerError
from collabmodel.core.security import utcnow
from collabmodel.db.repositories.in_use_repository import InUseRepository
from collabmodel.db.repositories.project_repository import ProjectRepository
from collabmodel.db.repositories.query_repository import QueryRepository
from collabmodel.db.repositories.user_repository import UserRepository
from collabmodel.domains.access.entities import Role
from collabmodel.domains.access.services import AuthorizationGuard
from collabmodel.domains.projects.entities import InUse, Project, Query
from collabmodel.domains.projects.schemas import ProjectCreate, ProjectUpdate, ProjectInfo
from collabmodel.infrastructure.query_engine import QueryEngine

logger = logging.getLogger(__name__)


class LockManager:
    """Блокировка редактирования проекта с автоматическим перехватом по таймауту.

    Блокировку захватывает или продлевает только сессия с ролью Editor.
    Захват выполняется одним условным UPDATE, поэтому две сессии не могут
    одновременно считать себя владельцами одной блокировки.
    """

    def __init__(self, session: AsyncSession, timeout: timedelta):
        self.timeout = timeout
        self.in_use_repository = InUseRepository(session)

    async def _get_lock(self, project_id: int) -> InUse:
        lock = await self.in_use_repository.get_by_project_id(project_id)
        if lock is None:
            raise ServerError("No in use found for project")
        return lock

    async def _claim(self, project_id: int, session_id: int) -> bool:
        now = utcnow()
        claimed = await self.in_use_repository.claim(project_id, session_id, now, now - self.timeout)
        if claimed:
            logger.debug("Session %s holds edit lock on project %s", session_id, project_id)
        return claimed

    async def acquire_or_renew(self, project_id: int, session_id: int, role: Role) -> bool:
        """Возвращает True, если блокировка была активна до этого вызова.

        Активная блокировка своей же сессии тоже считается занятой.
        """
        lock = await self._get_lock(project_id)
        in_use = lock.is_active(utcnow(), self.timeout)

        if role.can_edit and not await self._claim(project_id, session_id):
            logger.info(
                "Session %s could not claim project %s, held by session %s",
                session_id, project_id, lock.session_id
            )
        return in_use

    async def require_lock(self, project_id: int, session_id: int, role: Role) -> None:
        """Захват блокировки перед изменением, LockConflictError если она у другой сессии"""
        if not role.can_edit:
            raise PermissionDeniedError(f"User does not have {Role.EDITOR.value} role on project")
        if await self._claim(project_id, session_id):
            return

        lock = await self._get_lock(project_id)
        logger.info(
            "Session %s could not claim project %s, held by session %s",
            session_id, project_id, lock.session_id
        )
        raise LockConflictError("Project is currently in use by another session")


class ProjectService:
    """Сервис для работы с проектами"""

    def __init__(self, session: AsyncSession, lock_timeout: timedelta):
        self.session = session
        self.guard = AuthorizationGuard(session)
        self.lock_manager = LockManager(session, lock_timeout)
        self.project_repository = ProjectRepository(session)
        self.query_repository = QueryRepository(session)
        self.user_repository = UserRepository(session)

    async def _get_project(self, project_id: int) -> Project:
        project = await self.project_repository.get_by_id(project_id)
        if project is None:
            raise NotFoundError("No project found with given id")
        return project

    async def create_project(self, user_id: int, session_id: int, project_data: ProjectCreate) -> Project:
        """Создание проекта; создатель становится владельцем и редактором"""
        project = await self.project_repository.create(
            Project(
                name=project_data.name,
                components_info=project_data.components_info,
                owner_id=user_id
            ),
            session_id
        )
        logger.info("Project %s created by user %s", project.id, user_id)
        return project

    async def list_projects(self, user_id: int) -> List[ProjectInfo]:
        infos = await self.project_repository.list_info_by_user(user_id)
        if not infos:
            raise NotFoundError("No access found for given user")
        return [ProjectInfo(**info) for info in infos]

    async def get_project(
        self,
        project_id: int,
        user_id: int,
        session_id: int
    ) -> Tuple[Project, List[Query], bool]:
        """Проект с запросами; редактор при чтении занимает свободную блокировку"""
        project = await self._get_project(project_id)
        access = await self.guard.require_role(project_id, user_id, Role.VIEWER)
        in_use = await self.lock_manager.acquire_or_renew(project_id, session_id, access.role)
        queries = await self.query_repository.get_all_by_project_id(project_id)
        return project, queries, in_use

    async def update_project(
        self,
        project_id: int,
        user_id: int,
        session_id: int,
        update_data: ProjectUpdate
    ) -> Project:
        project = await self._get_project(project_id)
        access = await self.guard.require_role(project_id, user_id, Role.EDITOR)

        transfer = update_data.owner_id is not None and update_data.owner_id != project.owner_id
        if transfer:
            self.guard.require_owner(project, user_id)
            if await self.user_repository.get_by_id(update_data.owner_id) is None:
                raise NotFoundError("No user with that id exists")

        await self.lock_manager.require_lock(project_id, session_id, access.role)

        previous_owner_id = project.owner_id
        if transfer:
            project.owner_id = update_data.owner_id

        if update_data.name is not None:
            project.name = update_data.name

        model_changed = (
            update_data.components_info is not None
            and update_data.components_info != project.components_info
        )
        if update_data.components_info is not None:
            project.components_info = update_data.components_info

        # новый владелец получает Editor в той же транзакции
        project = await self.project_repository.update(project, grant_owner_editor=transfer)
        if transfer:
            logger.info(
                "Ownership of project %s transferred from %s to %s",
                project_id, previous_owner_id, project.owner_id
            )
        if model_changed:
            await self.query_repository.mark_outdated(project_id)
        return project

    async def delete_project(self, project_id: int, user_id: int) -> None:
        """Удаление проекта, доступно только владельцу"""
        project = await self._get_project(project_id)
        self.guard.require_owner(project, user_id)
        if not await self.project_repository.delete(project_id):
            raise NotFoundError("No project found with given id")
        logger.info("Project %s deleted by owner %s", project_id, user_id)


class QueryService:
    """Сервис для работы с запросами проекта"""

    def __init__(self, session: AsyncSession, lock_timeout: timedelta, query_engine: QueryEngine):
        self.session = session
        self.guard = AuthorizationGuard(session)
        self.lock_manager = LockManager(session, lock_timeout)
        self.query_engine = query_engine
        self.project_repository = ProjectRepository(session)
        self.query_repository = QueryRepository(session)

    async def _get_query(self, query_id: int) -> Query:
        query = await self.query_repository.get_by_id(query_id)
        if query is None:
            raise NotFoundError("Query not found")
        return query

    async def _authorize_edit(self, project_id: int, user_id: int, session_id: int) -> None:
        access = await self.guard.require_role(project_id, user_id, Role.EDITOR)
        await self.lock_manager.require_lock(project_id, session_id, access.role)

    async def create_query(self, project_id: int, user_id: int, session_id: int, string: str) -> Query:
        if await self.project_repository.get_by_id(project_id) is None:
            raise NotFoundError("No project found with given id")
        await self._authorize_edit(project_id, user_id, session_id)
        return await self.query_repository.create(Query(string=string, project_id=project_id))

    async def update_query(self, query_id: int, user_id: int, session_id: int, string: str) -> Query:
        """Изменение текста запроса, прежний результат становится устаревшим"""
        query = await self._get_query(query_id)
        await self._authorize_edit(query.project_id, user_id, session_id)
        query.string = string
        query.outdated = True
        return await self.query_repository.update(query)

    async def delete_query(self, query_id: int, user_id: int, session_id: int) -> None:
        query = await self._get_query(query_id)
        await self._authorize_edit(query.project_id, user_id, session_id)
        await self.query_repository.delete(query_id)

    async def send_query(self, query_id: int, user_id: int) -> Query:
        """Запуск запроса во внешнем движке и сохранение результата"""
        query = await self._get_query(query_id)
        await self.guard.require_role(query.project_id, user_id, Role.VIEWER)
        project = await self.project_repository.get_by_id(query.project_id)
        if project is None:
            raise NotFoundError("No project found with given id")

        result = await self.query_engine.run({
            "user_id": user_id,
            "query_id": query.id,
            "query": query.string,
            "components_info": project.components_info,
        })

        query.result = result
        query.outdated = False
        logger.info("Query %s on project %s evaluated", query.id, project.id)
        return await self.query_repository.update(query)
