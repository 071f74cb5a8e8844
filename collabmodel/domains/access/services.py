import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from collabmodel.core.errors import NotFoundError, PermissionDeniedError
from collabmodel.db.repositories.access_repository import AccessRepository
from collabmodel.db.repositories.project_repository import ProjectRepository
from collabmodel.db.repositories.user_repository import UserRepository
from collabmodel.domains.access.entities import Access, Role
from collabmodel.domains.access.schemas import AccessCreate
from collabmodel.domains.projects.entities import Project

logger = logging.getLogger(__name__)


class AuthorizationGuard:
    """Проверка роли пользователя в проекте и прав владельца"""

    def __init__(self, session: AsyncSession):
        self.access_repository = AccessRepository(session)

    async def require_role(self, project_id: int, user_id: int, min_role: Role) -> Access:
        """Права пользователя на проект, если его роль не ниже min_role"""
        access = await self.access_repository.get_by_user_and_project(user_id, project_id)
        if access is None:
            raise PermissionDeniedError("User does not have access to project")
        if not access.allows(min_role):
            logger.info(
                "User %s with role %s denied %s operation on project %s",
                user_id, access.role.value, min_role.value, project_id
            )
            raise PermissionDeniedError(f"User does not have {min_role.value} role on project")
        return access

    def require_owner(self, project: Project, user_id: int) -> None:
        if not project.is_owner(user_id):
            raise PermissionDeniedError("Only the project owner can perform this operation")


class AccessService:
    """Управление правами пользователей на проект"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.guard = AuthorizationGuard(session)
        self.access_repository = AccessRepository(session)
        self.project_repository = ProjectRepository(session)
        self.user_repository = UserRepository(session)

    async def _get_project(self, project_id: int) -> Project:
        project = await self.project_repository.get_by_id(project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    async def _get_access(self, access_id: int) -> Access:
        access = await self.access_repository.get_by_id(access_id)
        if access is None:
            raise NotFoundError("Access not found")
        return access

    async def list_access(self, project_id: int, user_id: int) -> List[Access]:
        """Все права на проект, доступны любому участнику"""
        await self._get_project(project_id)
        await self.guard.require_role(project_id, user_id, Role.VIEWER)
        return await self.access_repository.get_all_by_project_id(project_id)

    async def grant_access(self, project_id: int, user_id: int, access_data: AccessCreate) -> Access:
        await self._get_project(project_id)
        await self.guard.require_role(project_id, user_id, Role.EDITOR)

        if access_data.user_id is not None:
            target = await self.user_repository.get_by_id(access_data.user_id)
        elif access_data.username is not None:
            target = await self.user_repository.get_by_username(access_data.username)
        else:
            target = await self.user_repository.get_by_email(access_data.email)
        if target is None:
            raise NotFoundError("User not found")

        access = await self.access_repository.create(Access(
            role=access_data.role,
            project_id=project_id,
            user_id=target.id
        ))
        logger.info("User %s granted %s on project %s", target.id, access.role.value, project_id)
        return access

    async def _check_mutable(self, access: Access, user_id: int) -> None:
        project = await self._get_project(access.project_id)
        await self.guard.require_role(access.project_id, user_id, Role.EDITOR)
        if project.is_owner(access.user_id):
            raise PermissionDeniedError("The owner's access cannot be changed")

    async def update_access(self, access_id: int, user_id: int, role: Role) -> Access:
        access = await self._get_access(access_id)
        await self._check_mutable(access, user_id)
        return await self.access_repository.update_role(access_id, role)

    async def delete_access(self, access_id: int, user_id: int) -> None:
        access = await self._get_access(access_id)
        await self._check_mutable(access, user_id)
        await self.access_repository.delete(access_id)
        logger.info("Access %s on project %s revoked", access_id, access.project_id)
