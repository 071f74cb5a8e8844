import asyncio
import inspect
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import update
from sqlalchemy.pool import NullPool

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from collabmodel.core.config import Settings  # noqa: E402
from collabmodel.core.db import create_engine, create_schema, create_sessionmaker  # noqa: E402
from collabmodel.core.security import PasswordHasher, TokenService, TokenType  # noqa: E402
from collabmodel.db.repositories.access_repository import AccessRepository  # noqa: E402
from collabmodel.db.models.project import InUse as InUseModel  # noqa: E402
from collabmodel.db.repositories.in_use_repository import InUseRepository  # noqa: E402
from collabmodel.db.repositories.session_repository import SessionRepository  # noqa: E402
from collabmodel.domains.access.entities import Access, Role  # noqa: E402
from collabmodel.domains.identity.schemas import LoginRequest, UserCreate  # noqa: E402
from collabmodel.domains.identity.services import AuthService, IdentityService  # noqa: E402
from collabmodel.domains.projects.schemas import ProjectCreate  # noqa: E402
from collabmodel.domains.projects.services import ProjectService  # noqa: E402
from collabmodel.main import create_app  # noqa: E402

PASSWORD = "correct-horse-battery"
COMPONENTS = {"components": [{"name": "Machine", "locations": ["L0", "L1"]}]}


def pytest_pyfunc_call(pyfuncitem):
    if inspect.iscoroutinefunction(pyfuncitem.obj):
        call_kwargs = {
            name: pyfuncitem.funcargs[name]
            for name in pyfuncitem._fixtureinfo.argnames
            if name in pyfuncitem.funcargs
        }
        asyncio.run(pyfuncitem.obj(**call_kwargs))
        return True
    return None


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as async")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'collabmodel.db'}",
        access_token_secret="test-access-secret",
        refresh_token_secret="test-refresh-secret",
        password_schemes=["pbkdf2_sha256"],
        log_level="WARNING",
    )


@pytest.fixture
def engine(settings):
    # NullPool: каждый asyncio.run получает свои соединения
    engine = create_engine(settings.database_url, poolclass=NullPool)
    asyncio.run(create_schema(engine))
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture
def sessionmaker(engine):
    return create_sessionmaker(engine)


@pytest.fixture
def token_service(settings):
    return TokenService(settings)


@pytest.fixture
def password_hasher(settings):
    return PasswordHasher(settings.password_schemes)


class FakeQueryEngine:
    """Движок запросов, запоминающий переданные запросы"""

    def __init__(self):
        self.requests = []
        self.result = {"satisfied": True, "trace": []}

    async def run(self, request):
        self.requests.append(request)
        return self.result


@pytest.fixture
def query_engine():
    return FakeQueryEngine()


class Factory:
    """Создание пользователей, сессий и проектов напрямую через сервисы"""

    def __init__(self, sessionmaker, settings, token_service, password_hasher):
        self.sessionmaker = sessionmaker
        self.settings = settings
        self.token_service = token_service
        self.password_hasher = password_hasher

    async def user(self, username: str, password: str = PASSWORD):
        async with self.sessionmaker() as db:
            return await IdentityService(db, self.password_hasher).create_user(
                UserCreate(username=username, email=f"{username}@example.com", password=password)
            )

    async def login(self, username: str, password: str = PASSWORD):
        async with self.sessionmaker() as db:
            service = AuthService(db, self.token_service, self.password_hasher)
            return await service.login_with_credentials(
                LoginRequest(username_or_email=username, password=password)
            )

    async def session_for(self, tokens):
        async with self.sessionmaker() as db:
            return await SessionRepository(db).get_by_token(TokenType.ACCESS, tokens.access_token)

    async def project(self, owner_id: int, session_id: int, name: str = "Coffee machine"):
        async with self.sessionmaker() as db:
            service = ProjectService(db, self.lock_timeout)
            return await service.create_project(
                owner_id, session_id, ProjectCreate(name=name, components_info=COMPONENTS)
            )

    async def grant(self, project_id: int, user_id: int, role: Role):
        async with self.sessionmaker() as db:
            return await AccessRepository(db).create(
                Access(role=role, project_id=project_id, user_id=user_id)
            )

    async def set_lock(self, project_id: int, session_id, latest_activity: datetime):
        """Прямая перезапись блокировки в обход условного захвата"""
        async with self.sessionmaker() as db:
            await db.execute(
                update(InUseModel)
                .where(InUseModel.project_id == project_id)
                .values(session_id=session_id, latest_activity=latest_activity)
            )
            await db.commit()
            return await InUseRepository(db).get_by_project_id(project_id)

    async def get_lock(self, project_id: int):
        async with self.sessionmaker() as db:
            return await InUseRepository(db).get_by_project_id(project_id)

    @property
    def lock_timeout(self):
        return timedelta(minutes=self.settings.in_use_timeout_minutes)


@pytest.fixture
def factory(sessionmaker, settings, token_service, password_hasher):
    return Factory(sessionmaker, settings, token_service, password_hasher)


@pytest.fixture
def client(settings, engine, query_engine):
    app = create_app(settings, query_engine=query_engine)
    with TestClient(app) as test_client:
        yield test_client
