from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.db.enums import RiskLevel, StudyStatus
from app.schemas.submissions import SubmissionOut
from app.schemas.tasks import TaskOut


class StudyCreate(BaseModel):
    """Схема для создания исследования."""

    title: str = Field(..., min_length=3)
    short_title: str | None = Field(None, min_length=2, max_length=50)
    type_id: str = Field(..., min_length=2)
    risk_level: RiskLevel
    pi_id: str = Field(..., min_length=1)
    sponsor_name: str | None = Field(None, min_length=1)


class StudyUpdate(BaseModel):
    """Частичное обновление исследования. Явно переданный null очищает необязательное поле."""

    title: str | None = Field(None, min_length=3)
    short_title: str | None = Field(None, min_length=2, max_length=50)
    type_id: str | None = Field(None, min_length=2)
    risk_level: RiskLevel | None = None
    pi_id: str | None = Field(None, min_length=1)
    sponsor_name: str | None = Field(None, min_length=1)
    status: StudyStatus | None = None


class StudyOut(BaseModel):
    """Схема для вывода исследования."""

    id: UUID
    title: str
    short_title: str | None
    type_id: str
    risk_level: RiskLevel
    status: StudyStatus
    pi_id: str
    sponsor_name: str | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StudyDetailOut(StudyOut):
    """Исследование вместе с подачей (и её историей) и чек-листом задач."""

    submission: SubmissionOut
    tasks: list[TaskOut] = []
