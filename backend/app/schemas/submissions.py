from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.db.enums import ReviewPath, StudyStatus, SubmissionStatus


class StatusHistoryEntryOut(BaseModel):
    id: UUID
    from_status: SubmissionStatus | None
    to_status: SubmissionStatus
    note: str | None
    actor_id: str | None
    position: int
    created_at: datetime

    class Config:
        from_attributes = True


class SubmissionOut(BaseModel):
    """Подача с полной упорядоченной историей статусов."""

    id: UUID
    study_id: UUID
    current_status: SubmissionStatus
    path: ReviewPath
    expedited_category: str | None
    meeting_date: datetime | None
    determined_at: datetime | None
    submitted_at: datetime | None
    study_status: StudyStatus | None = None
    history: list[StatusHistoryEntryOut] = []

    class Config:
        from_attributes = True


class SubmissionTransitionRequest(BaseModel):
    """Запрос на переход статуса подачи."""

    target_status: SubmissionStatus
    note: str | None = None
    expedited_category: str | None = None
    meeting_date: datetime | None = None
    determined_at: datetime | None = None
    # Явный исполнитель перехода; по умолчанию вызывающий
    actor_id: str | None = Field(None, min_length=1)


class SubmissionPathUpdate(BaseModel):
    path: ReviewPath
