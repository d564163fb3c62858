from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit import RequestMeta
from app.db.session import async_session_factory
from app.services.workflow import StudyWorkflowService


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency для получения async-сессии БД в FastAPI endpoints.
    """
    async with async_session_factory() as session:
        yield session


def get_actor_id(x_actor_id: str | None = Header(None)) -> str | None:
    """
    Идентификатор вызывающего. Аутентификация выполняется снаружи;
    в dev-окружении заголовок может отсутствовать.
    """
    return x_actor_id or None


def get_request_meta(request: Request) -> RequestMeta:
    return RequestMeta(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def get_workflow(db: AsyncSession = Depends(get_db)) -> StudyWorkflowService:
    return StudyWorkflowService(db)
