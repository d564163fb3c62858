from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from app.db.enums import TaskStatus


class TaskOut(BaseModel):
    """Схема для вывода задачи чек-листа."""

    id: UUID
    study_id: UUID
    title: str
    description: str | None
    status: TaskStatus
    role_id: str | None
    due_at: datetime | None
    position: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TaskStatusUpdate(BaseModel):
    status: TaskStatus
