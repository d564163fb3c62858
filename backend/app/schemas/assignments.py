from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class AssignmentCreate(BaseModel):
    """Схема для создания назначения."""

    study_id: UUID
    person_id: str = Field(..., min_length=1)
    role_id: str = Field(..., min_length=1)
    effort_percent: Decimal | None = Field(None, ge=0, le=100)
    hours_per_week: Decimal | None = Field(None, ge=0, le=60)
    start_date: date
    end_date: date | None = None


class AssignmentUpdate(BaseModel):
    """
    Частичное обновление назначения.

    Не переданные поля сохраняют текущие значения; явный null в end_date
    делает назначение бессрочным, в effort_percent/hours_per_week очищает их.
    """

    role_id: str | None = Field(None, min_length=1)
    effort_percent: Decimal | None = Field(None, ge=0, le=100)
    hours_per_week: Decimal | None = Field(None, ge=0, le=60)
    start_date: date | None = None
    end_date: date | None = None


class AssignmentOut(BaseModel):
    id: UUID
    study_id: UUID
    person_id: str
    role_id: str
    effort_percent: Decimal | None
    hours_per_week: Decimal | None
    start_date: date
    end_date: date | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
