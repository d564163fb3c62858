from __future__ import annotations

"""
Единый модуль Python Enum-ов для доменной модели.

Эти enum-ы используются как в ORM-моделях, так и в Alembic-миграциях.
"""

from enum import Enum


class RiskLevel(str, Enum):
    MINIMAL = "MINIMAL"
    MORE_THAN_MINIMAL = "MORE_THAN_MINIMAL"


class StudyStatus(str, Enum):
    """Операционный статус исследования."""

    DRAFT = "DRAFT"
    READY_TO_SUBMIT = "READY_TO_SUBMIT"
    SUBMITTED_TO_IRB = "SUBMITTED_TO_IRB"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class SubmissionStatus(str, Enum):
    """Статус регуляторной подачи (жизненный цикл рассмотрения в IRB)."""

    DRAFT = "DRAFT"
    READY_TO_SUBMIT = "READY_TO_SUBMIT"
    SUBMITTED = "SUBMITTED"
    PRE_REVIEW = "PRE_REVIEW"
    MODIFICATIONS_REQUESTED = "MODIFICATIONS_REQUESTED"
    RESUBMITTED = "RESUBMITTED"
    EXEMPT_DETERMINATION = "EXEMPT_DETERMINATION"
    EXPEDITED_APPROVED = "EXPEDITED_APPROVED"
    MEETING_SCHEDULED = "MEETING_SCHEDULED"
    APPROVED = "APPROVED"
    CONDITIONALLY_APPROVED = "CONDITIONALLY_APPROVED"
    DEFERRED = "DEFERRED"
    NOT_APPROVED = "NOT_APPROVED"


class ReviewPath(str, Enum):
    UNSET = "UNSET"
    EXEMPT = "EXEMPT"
    EXPEDITED = "EXPEDITED"
    CONVENED = "CONVENED"


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    BLOCKED = "BLOCKED"
