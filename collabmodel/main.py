import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from collabmodel.api.http import (
    health_router, auth_router, users_router, projects_router, queries_router, access_router
)
from collabmodel.core.config import Settings, get_settings
from collabmodel.core.db import create_engine, create_sessionmaker
from collabmodel.core.errors import AuthenticationError, ServiceError
from collabmodel.core.logging import setup_logging
from collabmodel.core.security import PasswordHasher, TokenService
from collabmodel.infrastructure.query_engine import HttpQueryEngine, QueryEngine

logger = logging.getLogger(__name__)


def _error_response(status_code: int, code: str, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
        headers=headers
    )


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return _error_response(exc.status_code, exc.error_code, exc.message, headers)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(500, "internal", "A database error occurred")


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return _error_response(400, "invalid_argument", details or "Invalid request")


def create_app(
    settings: Optional[Settings] = None,
    query_engine: Optional[QueryEngine] = None
) -> FastAPI:
    """Сборка приложения: настройки, БД, токены и роутеры"""
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    engine = create_engine(settings.database_url, echo=settings.db_echo)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("collabmodel API started")
        yield
        await engine.dispose()

    app = FastAPI(
        title="collabmodel",
        description="API совместного редактирования моделей временных автоматов",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = create_sessionmaker(engine)
    app.state.token_service = TokenService(settings)
    app.state.password_hasher = PasswordHasher(settings.password_schemes)
    app.state.query_engine = query_engine or HttpQueryEngine(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Подключаем роутеры
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(projects_router)
    app.include_router(queries_router)
    app.include_router(access_router)

    return app
