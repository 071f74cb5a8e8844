from datetime import timedelta

import pytest

from collabmodel.core.errors import AuthenticationError, ConflictError, NotFoundError
from collabmodel.core.security import TokenError, TokenErrorKind, TokenType
from collabmodel.db.repositories.session_repository import SessionRepository
from collabmodel.domains.identity.entities import Session
from collabmodel.domains.identity.schemas import LoginRequest
from collabmodel.domains.identity.services import AuthService


def auth_service(db, factory):
    return AuthService(db, factory.token_service, factory.password_hasher)


class TestSessionRepository:
    @pytest.mark.asyncio
    async def test_lookup_filters_on_the_requested_token_class(self, sessionmaker, factory):
        user = await factory.user("alice")

        async with sessionmaker() as db:
            repository = SessionRepository(db)
            created = await repository.create(Session(
                access_token="access-1", refresh_token="refresh-1", user_id=user.id
            ))

            assert (await repository.get_by_token(TokenType.ACCESS, "access-1")).id == created.id
            assert (await repository.get_by_token(TokenType.REFRESH, "refresh-1")).id == created.id
            assert await repository.get_by_token(TokenType.ACCESS, "refresh-1") is None
            assert await repository.get_by_token(TokenType.REFRESH, "access-1") is None

    @pytest.mark.asyncio
    async def test_delete_by_token_without_match_is_not_found(self, sessionmaker):
        async with sessionmaker() as db:
            with pytest.raises(NotFoundError):
                await SessionRepository(db).delete_by_token(TokenType.ACCESS, "missing")

    @pytest.mark.asyncio
    async def test_delete_by_token_removes_the_row(self, sessionmaker, factory):
        user = await factory.user("alice")

        async with sessionmaker() as db:
            repository = SessionRepository(db)
            await repository.create(Session(
                access_token="access-1", refresh_token="refresh-1", user_id=user.id
            ))
            deleted = await repository.delete_by_token(TokenType.REFRESH, "refresh-1")

            assert deleted.access_token == "access-1"
            assert await repository.get_by_token(TokenType.ACCESS, "access-1") is None

    @pytest.mark.asyncio
    async def test_tokens_are_unique(self, sessionmaker, factory):
        user = await factory.user("alice")

        async with sessionmaker() as db:
            repository = SessionRepository(db)
            await repository.create(Session(
                access_token="access-1", refresh_token="refresh-1", user_id=user.id
            ))
            with pytest.raises(ConflictError):
                await repository.create(Session(
                    access_token="access-1", refresh_token="refresh-2", user_id=user.id
                ))


class TestCredentialLogin:
    @pytest.mark.asyncio
    async def test_login_by_username_creates_session(self, sessionmaker, factory):
        user = await factory.user("alice")

        tokens = await factory.login("alice")
        auth_session = await factory.session_for(tokens)

        assert auth_session.user_id == user.id
        assert auth_session.refresh_token == tokens.refresh_token

    @pytest.mark.asyncio
    async def test_login_by_email(self, factory):
        user = await factory.user("alice")

        tokens = await factory.login("alice@example.com")

        assert factory.token_service.validate(TokenType.ACCESS, tokens.access_token).user_id == user.id

    @pytest.mark.asyncio
    async def test_every_login_is_a_new_session(self, factory):
        await factory.user("alice")

        first = await factory.session_for(await factory.login("alice"))
        second = await factory.session_for(await factory.login("alice"))

        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_user_look_the_same(self, sessionmaker, factory):
        await factory.user("alice")

        async with sessionmaker() as db:
            service = auth_service(db, factory)
            with pytest.raises(AuthenticationError) as wrong_password:
                await service.login_with_credentials(
                    LoginRequest(username_or_email="alice", password="nope")
                )
            with pytest.raises(AuthenticationError) as unknown_user:
                await service.login_with_credentials(
                    LoginRequest(username_or_email="bob", password="nope")
                )

        assert wrong_password.value.message == unknown_user.value.message == "Wrong username or password"


class TestRefreshRotation:
    @pytest.mark.asyncio
    async def test_old_refresh_token_stops_working_after_rotation(self, sessionmaker, factory):
        await factory.user("alice")
        first = await factory.login("alice")

        async with sessionmaker() as db:
            service = auth_service(db, factory)
            second = await service.login_with_refresh_token(first.refresh_token)

            with pytest.raises(AuthenticationError) as exc_info:
                await service.login_with_refresh_token(first.refresh_token)
            assert exc_info.value.message == "No session found with given refresh token"

            third = await service.login_with_refresh_token(second.refresh_token)

        assert len({first.refresh_token, second.refresh_token, third.refresh_token}) == 3

    @pytest.mark.asyncio
    async def test_rotation_rewrites_the_same_session(self, sessionmaker, factory):
        await factory.user("alice")
        first = await factory.login("alice")
        before = await factory.session_for(first)

        async with sessionmaker() as db:
            second = await auth_service(db, factory).login_with_refresh_token(first.refresh_token)

        after = await factory.session_for(second)
        assert after.id == before.id
        assert after.access_token == second.access_token
        assert after.updated_at >= before.updated_at
        assert await factory.session_for(first) is None

    @pytest.mark.asyncio
    async def test_access_token_cannot_be_used_for_rotation(self, sessionmaker, factory):
        await factory.user("alice")
        tokens = await factory.login("alice")

        async with sessionmaker() as db:
            with pytest.raises(TokenError) as exc_info:
                await auth_service(db, factory).login_with_refresh_token(tokens.access_token)

        assert exc_info.value.kind == TokenErrorKind.INVALID_TOKEN

    @pytest.mark.asyncio
    async def test_expired_refresh_token_removes_the_session(self, sessionmaker, factory):
        user = await factory.user("alice")
        expired = factory.token_service.issue(
            TokenType.REFRESH, str(user.id), expires_delta=timedelta(seconds=-1)
        )

        async with sessionmaker() as db:
            await SessionRepository(db).create(Session(
                access_token="access-1", refresh_token=expired, user_id=user.id
            ))

        async with sessionmaker() as db:
            with pytest.raises(TokenError) as exc_info:
                await auth_service(db, factory).login_with_refresh_token(expired)

        assert exc_info.value.kind == TokenErrorKind.EXPIRED_SIGNATURE
        async with sessionmaker() as db:
            assert await SessionRepository(db).get_by_token(TokenType.REFRESH, expired) is None

    @pytest.mark.asyncio
    async def test_expired_refresh_token_without_session_still_fails_cleanly(self, sessionmaker, factory):
        expired = factory.token_service.issue(TokenType.REFRESH, "1", expires_delta=timedelta(seconds=-1))

        async with sessionmaker() as db:
            with pytest.raises(TokenError) as exc_info:
                await auth_service(db, factory).login_with_refresh_token(expired)

        assert exc_info.value.kind == TokenErrorKind.EXPIRED_SIGNATURE


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout_removes_session_and_is_not_idempotent(self, sessionmaker, factory):
        await factory.user("alice")
        tokens = await factory.login("alice")

        async with sessionmaker() as db:
            service = auth_service(db, factory)
            await service.logout(tokens.access_token)

            with pytest.raises(NotFoundError):
                await service.logout(tokens.access_token)

        assert await factory.session_for(tokens) is None
        # токен остается криптографически действительным до истечения срока
        assert factory.token_service.validate(TokenType.ACCESS, tokens.access_token).sub

    @pytest.mark.asyncio
    async def test_refresh_after_logout_fails(self, sessionmaker, factory):
        await factory.user("alice")
        tokens = await factory.login("alice")

        async with sessionmaker() as db:
            service = auth_service(db, factory)
            await service.logout(tokens.access_token)

            with pytest.raises(AuthenticationError):
                await service.login_with_refresh_token(tokens.refresh_token)
