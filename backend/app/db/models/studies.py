from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, JSONVariant, TimestampMixin, UUIDMixin, utcnow
from app.db.enums import RiskLevel, StudyStatus, TaskStatus


class StudyType(Base):
    """Тип исследования со шаблоном чек-листа задач по умолчанию."""

    __tablename__ = "study_types"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    # Список записей {title, role?, offset_days?, description?}
    default_task_template: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSONVariant, nullable=True
    )


class Study(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "studies"
    __table_args__ = (
        Index("ix_studies_pi_id", "pi_id"),
        Index("ix_studies_status", "status"),
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    short_title: Mapped[str | None] = mapped_column(String(50), nullable=True)
    type_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("study_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    risk_level: Mapped[RiskLevel] = mapped_column(
        Enum(RiskLevel, name="risk_level", native_enum=True),
        nullable=False,
    )
    status: Mapped[StudyStatus] = mapped_column(
        Enum(StudyStatus, name="study_status", native_enum=True),
        nullable=False,
        default=StudyStatus.DRAFT,
    )
    pi_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("persons.id", ondelete="RESTRICT"),
        nullable=False,
    )
    sponsor_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
    # Мягкое удаление: строка остаётся, но исключается из всех путей чтения
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Task(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "tasks"
    __table_args__ = (Index("ix_tasks_study_id", "study_id"),)

    study_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("studies.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus, name="task_status", native_enum=True),
        nullable=False,
        default=TaskStatus.PENDING,
    )
    # Роль из шаблона хранится как есть: шаблон может ссылаться на ещё не заведённую роль
    role_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    due_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
