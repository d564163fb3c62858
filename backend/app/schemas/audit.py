"""Схемы Pydantic для журнала аудита."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class AuditEventOut(BaseModel):
    """Запись журнала аудита."""

    id: UUID
    action: str
    entity_type: str
    entity_id: str
    actor_id: str | None
    before_json: Any | None
    after_json: Any | None
    ip_address: str | None
    user_agent: str | None
    created_at: datetime

    class Config:
        from_attributes = True
