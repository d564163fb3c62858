from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuditWriteError
from app.db.models.audit import AuditEvent

"""
Журнал аудита: неизменяемые записи об изменениях отслеживаемых сущностей.

Запись добавляется в ту же сессию, что и само изменение, и фиксируется тем же
commit-ом. Снимки before/after сериализуются в момент вызова, поэтому
дальнейшие изменения живого объекта не влияют на уже записанное событие.
"""


@dataclass(frozen=True)
class RequestMeta:
    """Метаданные запроса, сохраняемые вместе с событием аудита."""

    ip_address: str | None = None
    user_agent: str | None = None


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def snapshot(value: Any) -> Any:
    """
    Глубокая копия значения в JSON-совместимом виде.

    Raises:
        AuditWriteError: значение не сериализуется в JSON
    """
    if value is None:
        return None
    try:
        return json.loads(json.dumps(value, default=_json_default))
    except (TypeError, ValueError) as exc:
        raise AuditWriteError(
            "Не удалось сериализовать снимок для аудита",
            details={"error": str(exc)},
        ) from exc


async def record_audit(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: str,
    actor_id: str | None = None,
    before: Any = None,
    after: Any = None,
    request_meta: RequestMeta | None = None,
) -> AuditEvent:
    """
    Добавляет событие в журнал аудита.

    Args:
        db: Сессия базы данных (транзакция изменения)
        action: Действие (study.create, submission.transition и т.д.)
        entity_type: Тип сущности (Study, RegulatorySubmission, Assignment...)
        entity_id: ID сущности (строка)
        actor_id: Идентификатор исполнителя (опционально)
        before: Состояние до изменения (None для создания)
        after: Состояние после изменения (None для удаления)
        request_meta: IP-адрес и user agent запроса

    Raises:
        AuditWriteError: снимок не сериализуется или запись не сохраняется;
            вызывающий код обязан откатить транзакцию целиком
    """
    meta = request_meta or RequestMeta()
    event = AuditEvent(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        actor_id=actor_id,
        before_json=snapshot(before),
        after_json=snapshot(after),
        ip_address=meta.ip_address,
        user_agent=meta.user_agent,
    )
    db.add(event)
    # flush, а не commit: коммит выполняет единица работы вызывающего кода
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        raise AuditWriteError(
            "Не удалось сохранить событие аудита",
            details={"action": action, "entity_type": entity_type, "entity_id": entity_id},
        ) from exc
    return event


async def list_audit_events(
    db: AsyncSession,
    entity_type: str | None = None,
    entity_id: str | None = None,
    limit: int = 100,
) -> list[AuditEvent]:
    """Последние события аудита, новые первыми."""
    stmt = select(AuditEvent)
    if entity_type:
        stmt = stmt.where(AuditEvent.entity_type == entity_type)
    if entity_id:
        stmt = stmt.where(AuditEvent.entity_id == entity_id)
    stmt = stmt.order_by(AuditEvent.created_at.desc()).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())
