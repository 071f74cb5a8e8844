from datetime import timedelta

import pytest

from collabmodel.core.errors import ConflictError, NotFoundError, PermissionDeniedError
from collabmodel.core.security import utcnow
from collabmodel.db.repositories.project_repository import ProjectRepository
from collabmodel.domains.access.entities import Access, Role
from collabmodel.domains.access.schemas import AccessCreate
from collabmodel.domains.access.services import AccessService, AuthorizationGuard
from collabmodel.domains.projects.schemas import ProjectUpdate
from collabmodel.domains.projects.services import ProjectService, QueryService

TIMEOUT = timedelta(minutes=10)


class TestRole:
    def test_roles_are_totally_ordered(self):
        order = [Role.VIEWER, Role.COMMENTER, Role.EDITOR, Role.OWNER]

        for lower, higher in zip(order, order[1:]):
            assert higher.satisfies(lower)
            assert not lower.satisfies(higher)

    def test_only_editor_and_above_can_edit(self):
        assert [role for role in Role if role.can_edit] == [Role.EDITOR, Role.OWNER]

    def test_unknown_role_string_is_rejected(self):
        with pytest.raises(ValueError):
            Access(role="editor", project_id=1, user_id=7)

    def test_access_allows_by_rank(self):
        access = Access(role="Commenter", project_id=1, user_id=7)

        assert access.allows(Role.VIEWER)
        assert not access.allows(Role.EDITOR)


async def project_with_member(factory, role):
    """Проект alice, в котором carol имеет заданную роль"""
    alice = await factory.user("alice")
    carol = await factory.user("carol")
    session_a = await factory.session_for(await factory.login("alice"))
    session_c = await factory.session_for(await factory.login("carol"))
    project = await factory.project(alice.id, session_a.id)
    await factory.set_lock(project.id, None, project_created_long_ago())
    await factory.grant(project.id, carol.id, role)
    return project, alice, carol, session_c


def project_created_long_ago():
    return utcnow() - timedelta(hours=1)


class TestRoleGating:
    @pytest.mark.asyncio
    async def test_commenter_cannot_create_query(self, sessionmaker, factory, query_engine):
        project, _, carol, session_c = await project_with_member(factory, Role.COMMENTER)

        async with sessionmaker() as db:
            with pytest.raises(PermissionDeniedError):
                await QueryService(db, TIMEOUT, query_engine).create_query(
                    project.id, carol.id, session_c.id, "A[] not deadlock"
                )

    @pytest.mark.asyncio
    async def test_editor_can_create_query(self, sessionmaker, factory, query_engine):
        project, _, carol, session_c = await project_with_member(factory, Role.EDITOR)

        async with sessionmaker() as db:
            query = await QueryService(db, TIMEOUT, query_engine).create_query(
                project.id, carol.id, session_c.id, "A[] not deadlock"
            )

        assert query.project_id == project.id
        assert query.outdated is True
        assert (await factory.get_lock(project.id)).session_id == session_c.id

    @pytest.mark.asyncio
    async def test_user_without_access_is_denied(self, sessionmaker, factory):
        alice = await factory.user("alice")
        await factory.user("mallory")
        session_a = await factory.session_for(await factory.login("alice"))
        project = await factory.project(alice.id, session_a.id)

        async with sessionmaker() as db:
            with pytest.raises(PermissionDeniedError) as exc_info:
                await AuthorizationGuard(db).require_role(project.id, 999, Role.VIEWER)

        assert exc_info.value.message == "User does not have access to project"

    @pytest.mark.asyncio
    async def test_creator_is_recorded_as_editor(self, sessionmaker, factory):
        alice = await factory.user("alice")
        session_a = await factory.session_for(await factory.login("alice"))
        project = await factory.project(alice.id, session_a.id)

        async with sessionmaker() as db:
            access = await AuthorizationGuard(db).require_role(project.id, alice.id, Role.EDITOR)

        assert access.role == Role.EDITOR


class TestOwnership:
    @pytest.mark.asyncio
    async def test_editor_cannot_delete_project(self, sessionmaker, factory):
        project, _, carol, _ = await project_with_member(factory, Role.EDITOR)

        async with sessionmaker() as db:
            with pytest.raises(PermissionDeniedError):
                await ProjectService(db, TIMEOUT).delete_project(project.id, carol.id)

    @pytest.mark.asyncio
    async def test_editor_cannot_transfer_ownership(self, sessionmaker, factory):
        project, _, carol, session_c = await project_with_member(factory, Role.EDITOR)

        async with sessionmaker() as db:
            with pytest.raises(PermissionDeniedError):
                await ProjectService(db, TIMEOUT).update_project(
                    project.id, carol.id, session_c.id, ProjectUpdate(owner_id=carol.id)
                )

    @pytest.mark.asyncio
    async def test_owner_transfer_grants_editor_to_new_owner(self, sessionmaker, factory):
        project, alice, carol, _ = await project_with_member(factory, Role.VIEWER)
        session_a = await factory.session_for(await factory.login("alice"))

        async with sessionmaker() as db:
            updated = await ProjectService(db, TIMEOUT).update_project(
                project.id, alice.id, session_a.id, ProjectUpdate(owner_id=carol.id)
            )
            access = await AuthorizationGuard(db).require_role(project.id, carol.id, Role.EDITOR)

        assert updated.owner_id == carol.id
        assert access.role == Role.EDITOR

    @pytest.mark.asyncio
    async def test_failed_transfer_leaves_roles_untouched(self, sessionmaker, factory):
        project, alice, carol, session_c = await project_with_member(factory, Role.VIEWER)
        await factory.project(carol.id, session_c.id, name=project.name)
        session_a = await factory.session_for(await factory.login("alice"))

        async with sessionmaker() as db:
            with pytest.raises(ConflictError):
                await ProjectService(db, TIMEOUT).update_project(
                    project.id, alice.id, session_a.id, ProjectUpdate(owner_id=carol.id)
                )

        async with sessionmaker() as db:
            access = await AuthorizationGuard(db).require_role(project.id, carol.id, Role.VIEWER)
            unchanged = await ProjectRepository(db).get_by_id(project.id)

        assert access.role == Role.VIEWER
        assert unchanged.owner_id == alice.id

    @pytest.mark.asyncio
    async def test_rejected_transfer_does_not_take_the_lock(self, sessionmaker, factory):
        project, _, carol, session_c = await project_with_member(factory, Role.EDITOR)
        before = await factory.get_lock(project.id)

        async with sessionmaker() as db:
            with pytest.raises(PermissionDeniedError):
                await ProjectService(db, TIMEOUT).update_project(
                    project.id, carol.id, session_c.id, ProjectUpdate(owner_id=carol.id)
                )

        after = await factory.get_lock(project.id)
        assert before.session_id is None
        assert after.session_id is None
        assert after.latest_activity == before.latest_activity

    @pytest.mark.asyncio
    async def test_owner_deletes_project(self, sessionmaker, factory):
        project, alice, _, _ = await project_with_member(factory, Role.VIEWER)

        async with sessionmaker() as db:
            service = ProjectService(db, TIMEOUT)
            await service.delete_project(project.id, alice.id)

            with pytest.raises(NotFoundError):
                await service.delete_project(project.id, alice.id)

        assert await factory.get_lock(project.id) is None


class TestAccessManagement:
    @pytest.mark.asyncio
    async def test_editor_grants_access_by_username(self, sessionmaker, factory):
        project, _, carol, _ = await project_with_member(factory, Role.EDITOR)
        dave = await factory.user("dave")

        async with sessionmaker() as db:
            access = await AccessService(db).grant_access(
                project.id, carol.id, AccessCreate(role=Role.VIEWER, username="dave")
            )

        assert (access.user_id, access.role) == (dave.id, Role.VIEWER)

    @pytest.mark.asyncio
    async def test_duplicate_grant_is_a_conflict(self, sessionmaker, factory):
        project, alice, carol, _ = await project_with_member(factory, Role.VIEWER)

        async with sessionmaker() as db:
            with pytest.raises(ConflictError):
                await AccessService(db).grant_access(
                    project.id, alice.id, AccessCreate(role=Role.EDITOR, user_id=carol.id)
                )

    @pytest.mark.asyncio
    async def test_commenter_cannot_grant_access(self, sessionmaker, factory):
        project, _, carol, _ = await project_with_member(factory, Role.COMMENTER)
        await factory.user("dave")

        async with sessionmaker() as db:
            with pytest.raises(PermissionDeniedError):
                await AccessService(db).grant_access(
                    project.id, carol.id, AccessCreate(role=Role.VIEWER, username="dave")
                )

    @pytest.mark.asyncio
    async def test_owner_row_cannot_be_changed(self, sessionmaker, factory):
        project, alice, carol, _ = await project_with_member(factory, Role.EDITOR)

        async with sessionmaker() as db:
            service = AccessService(db)
            owner_access = await AuthorizationGuard(db).require_role(project.id, alice.id, Role.EDITOR)

            with pytest.raises(PermissionDeniedError):
                await service.update_access(owner_access.id, carol.id, Role.VIEWER)
            with pytest.raises(PermissionDeniedError):
                await service.delete_access(owner_access.id, carol.id)

    @pytest.mark.asyncio
    async def test_editor_downgrades_and_revokes_member(self, sessionmaker, factory):
        project, alice, carol, _ = await project_with_member(factory, Role.EDITOR)

        async with sessionmaker() as db:
            service = AccessService(db)
            carol_access = await AuthorizationGuard(db).require_role(project.id, carol.id, Role.VIEWER)

            updated = await service.update_access(carol_access.id, alice.id, Role.COMMENTER)
            assert updated.role == Role.COMMENTER

            await service.delete_access(carol_access.id, alice.id)
            with pytest.raises(PermissionDeniedError):
                await AuthorizationGuard(db).require_role(project.id, carol.id, Role.VIEWER)
