from datetime import timedelta

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from collabmodel.core.auth import get_current_session, get_current_uid, get_query_engine, get_settings
from collabmodel.core.config import Settings
from collabmodel.core.db import get_db
from collabmodel.domains.identity.entities import Session
from collabmodel.domains.projects.schemas import (
    QueryCreate, QueryUpdate, QueryResponse, SendQueryResponse
)
from collabmodel.domains.projects.services import QueryService
from collabmodel.infrastructure.query_engine import QueryEngine

router = APIRouter(tags=["queries"])


def get_query_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    query_engine: QueryEngine = Depends(get_query_engine)
) -> QueryService:
    return QueryService(db, timedelta(minutes=settings.in_use_timeout_minutes), query_engine)


@router.post(
    "/projects/{project_id}/queries",
    response_model=QueryResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_query(
    project_id: int,
    query_data: QueryCreate,
    uid: int = Depends(get_current_uid),
    auth_session: Session = Depends(get_current_session),
    query_service: QueryService = Depends(get_query_service)
):
    query = await query_service.create_query(project_id, uid, auth_session.id, query_data.string)
    return QueryResponse.model_validate(query)


@router.patch("/queries/{query_id}", response_model=QueryResponse)
async def update_query(
    query_id: int,
    query_data: QueryUpdate,
    uid: int = Depends(get_current_uid),
    auth_session: Session = Depends(get_current_session),
    query_service: QueryService = Depends(get_query_service)
):
    query = await query_service.update_query(query_id, uid, auth_session.id, query_data.string)
    return QueryResponse.model_validate(query)


@router.delete("/queries/{query_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_query(
    query_id: int,
    uid: int = Depends(get_current_uid),
    auth_session: Session = Depends(get_current_session),
    query_service: QueryService = Depends(get_query_service)
):
    await query_service.delete_query(query_id, uid, auth_session.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/queries/{query_id}/send", response_model=SendQueryResponse)
async def send_query(
    query_id: int,
    uid: int = Depends(get_current_uid),
    query_service: QueryService = Depends(get_query_service)
):
    """Запуск запроса во внешнем движке"""
    query = await query_service.send_query(query_id, uid)
    return SendQueryResponse(query_id=query.id, result=query.result)
