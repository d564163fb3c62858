from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin, UUIDMixin, utcnow
from app.db.enums import ReviewPath, SubmissionStatus


SubmissionStatusType = Enum(SubmissionStatus, name="submission_status", native_enum=True)


class RegulatorySubmission(Base, UUIDMixin, TimestampMixin):
    """Регуляторная подача исследования в IRB (ровно одна на исследование)."""

    __tablename__ = "regulatory_submissions"

    study_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("studies.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    current_status: Mapped[SubmissionStatus] = mapped_column(
        SubmissionStatusType,
        nullable=False,
        default=SubmissionStatus.DRAFT,
    )
    path: Mapped[ReviewPath] = mapped_column(
        Enum(ReviewPath, name="review_path", native_enum=True),
        nullable=False,
        default=ReviewPath.UNSET,
    )
    expedited_category: Mapped[str | None] = mapped_column(Text, nullable=True)
    meeting_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    determined_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


class StatusHistoryEntry(Base, UUIDMixin, TimestampMixin):
    """Запись истории статусов. Только вставка: не обновляется и не удаляется."""

    __tablename__ = "submission_status_history"
    __table_args__ = (
        Index("ix_submission_status_history_submission_id", "submission_id"),
    )

    submission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("regulatory_submissions.id", ondelete="CASCADE"),
        nullable=False,
    )
    # NULL только у синтетической первой записи
    from_status: Mapped[SubmissionStatus | None] = mapped_column(
        SubmissionStatusType,
        nullable=True,
    )
    to_status: Mapped[SubmissionStatus] = mapped_column(
        SubmissionStatusType,
        nullable=False,
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    actor_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    # Порядковый номер внутри подачи; разрешает равенство created_at
    position: Mapped[int] = mapped_column(Integer, nullable=False)
