from __future__ import annotations

"""
Жизненный цикл регуляторной подачи исследования.

Таблица переходов задана явной картой смежности, каскад на статус
исследования чистой функцией; обе части проверяются без базы данных.
Класс SubmissionStateMachine применяет их к строкам БД внутри транзакции
вызывающего кода и сам ничего не коммитит.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidTransitionError, NotFoundError
from app.core.logging import logger
from app.db.base import utcnow
from app.db.enums import ReviewPath, StudyStatus, SubmissionStatus
from app.db.models.studies import Study
from app.db.models.submissions import RegulatorySubmission, StatusHistoryEntry
from app.schemas.submissions import StatusHistoryEntryOut, SubmissionOut

S = SubmissionStatus

TRANSITIONS: dict[SubmissionStatus, frozenset[SubmissionStatus]] = {
    S.DRAFT: frozenset({S.READY_TO_SUBMIT}),
    S.READY_TO_SUBMIT: frozenset({S.SUBMITTED}),
    S.SUBMITTED: frozenset({S.PRE_REVIEW}),
    S.PRE_REVIEW: frozenset(
        {
            S.MODIFICATIONS_REQUESTED,
            S.EXEMPT_DETERMINATION,
            S.EXPEDITED_APPROVED,
            S.MEETING_SCHEDULED,
            S.NOT_APPROVED,
        }
    ),
    S.MODIFICATIONS_REQUESTED: frozenset({S.RESUBMITTED}),
    S.RESUBMITTED: frozenset({S.PRE_REVIEW}),
    S.EXEMPT_DETERMINATION: frozenset(),
    S.EXPEDITED_APPROVED: frozenset(),
    S.MEETING_SCHEDULED: frozenset(
        {S.APPROVED, S.CONDITIONALLY_APPROVED, S.DEFERRED, S.NOT_APPROVED}
    ),
    S.APPROVED: frozenset(),
    S.CONDITIONALLY_APPROVED: frozenset({S.APPROVED}),
    S.DEFERRED: frozenset({S.MEETING_SCHEDULED}),
    S.NOT_APPROVED: frozenset(),
}

INITIAL_STATUS = S.DRAFT

_STUDY_CASCADE: dict[SubmissionStatus, StudyStatus] = {
    S.APPROVED: StudyStatus.ACTIVE,
    S.EXPEDITED_APPROVED: StudyStatus.ACTIVE,
    S.EXEMPT_DETERMINATION: StudyStatus.ACTIVE,
    S.NOT_APPROVED: StudyStatus.CLOSED,
}

_PATH_BY_STATUS: dict[SubmissionStatus, ReviewPath] = {
    S.EXPEDITED_APPROVED: ReviewPath.EXPEDITED,
    S.EXEMPT_DETERMINATION: ReviewPath.EXEMPT,
}


def can_transition(current: SubmissionStatus, target: SubmissionStatus) -> bool:
    """Прямой переход current -> target разрешён таблицей (без многошаговых путей)."""
    return target in TRANSITIONS.get(current, frozenset())


def validate_transition(current: SubmissionStatus, target: SubmissionStatus) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)


def is_terminal(status: SubmissionStatus) -> bool:
    return not TRANSITIONS[status]


def cascade_study_status(target: SubmissionStatus) -> StudyStatus | None:
    """Статус исследования после перехода подачи в target; None, если статус не меняется."""
    return _STUDY_CASCADE.get(target)


def path_for_status(target: SubmissionStatus) -> ReviewPath | None:
    """Путь рассмотрения, выбираемый автоматически при входе в target."""
    return _PATH_BY_STATUS.get(target)


class HistoryStep(Protocol):
    from_status: SubmissionStatus | None
    to_status: SubmissionStatus


def replay_history(entries: Iterable[HistoryStep]) -> SubmissionStatus:
    """
    Воспроизводит историю статусов от DRAFT и возвращает итоговый статус.

    Первая запись должна быть синтетической (None -> DRAFT), каждая следующая
    начинается там, где закончилась предыдущая, и является разрешённым переходом.

    Raises:
        InvalidTransitionError: история не согласована с таблицей переходов
        ValueError: история пуста
    """
    current: SubmissionStatus | None = None
    for index, entry in enumerate(entries):
        if index == 0:
            if entry.from_status is not None or entry.to_status != INITIAL_STATUS:
                raise InvalidTransitionError(
                    str(entry.from_status.value if entry.from_status else None),
                    entry.to_status.value,
                )
            current = entry.to_status
            continue
        if entry.from_status != current:
            raise InvalidTransitionError(
                str(entry.from_status.value if entry.from_status else None),
                entry.to_status.value,
            )
        validate_transition(current, entry.to_status)
        current = entry.to_status
    if current is None:
        raise ValueError("История статусов пуста")
    return current


@dataclass
class TransitionExtras:
    """Необязательные данные перехода; None означает «не менять»."""

    expedited_category: str | None = None
    meeting_date: datetime | None = None
    determined_at: datetime | None = None


@dataclass
class TransitionResult:
    submission: RegulatorySubmission
    study: Study
    before: SubmissionOut
    after: SubmissionOut


class SubmissionStateMachine:
    """Переходы статуса подачи с записью истории и каскадом на исследование."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_initial(self, study: Study) -> RegulatorySubmission:
        """Создаёт подачу в DRAFT и синтетическую первую запись истории."""
        submission = RegulatorySubmission(
            study_id=study.id,
            current_status=INITIAL_STATUS,
            path=ReviewPath.UNSET,
        )
        self.db.add(submission)
        await self.db.flush()

        self.db.add(
            StatusHistoryEntry(
                submission_id=submission.id,
                from_status=None,
                to_status=INITIAL_STATUS,
                position=0,
            )
        )
        await self.db.flush()
        return submission

    async def load(
        self, study_id: uuid.UUID, for_update: bool = False
    ) -> tuple[RegulatorySubmission, Study]:
        """Подача и её исследование; мягко удалённые исследования не видны."""
        stmt = (
            select(RegulatorySubmission, Study)
            .join(Study, Study.id == RegulatorySubmission.study_id)
            .where(
                RegulatorySubmission.study_id == study_id,
                Study.deleted_at.is_(None),
            )
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        row = (await self.db.execute(stmt)).first()
        if row is None:
            raise NotFoundError("RegulatorySubmission", str(study_id))
        return row[0], row[1]

    async def history(self, submission_id: uuid.UUID) -> list[StatusHistoryEntry]:
        stmt = (
            select(StatusHistoryEntry)
            .where(StatusHistoryEntry.submission_id == submission_id)
            .order_by(StatusHistoryEntry.created_at, StatusHistoryEntry.position)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    def snapshot(
        self,
        submission: RegulatorySubmission,
        study: Study,
        history: list[StatusHistoryEntry],
    ) -> SubmissionOut:
        """Отвязанная от ORM копия состояния подачи."""
        return SubmissionOut(
            id=submission.id,
            study_id=submission.study_id,
            current_status=submission.current_status,
            path=submission.path,
            expedited_category=submission.expedited_category,
            meeting_date=submission.meeting_date,
            determined_at=submission.determined_at,
            submitted_at=submission.submitted_at,
            study_status=study.status,
            history=[StatusHistoryEntryOut.model_validate(entry) for entry in history],
        )

    async def get(self, study_id: uuid.UUID) -> SubmissionOut:
        submission, study = await self.load(study_id)
        return self.snapshot(submission, study, await self.history(submission.id))

    async def transition(
        self,
        study_id: uuid.UUID,
        target_status: SubmissionStatus,
        note: str | None = None,
        extras: TransitionExtras | None = None,
        actor_id: str | None = None,
    ) -> TransitionResult:
        """
        Переводит подачу исследования в target_status.

        Строки подачи и исследования блокируются до конца транзакции.
        Возвращает снимки до и после перехода, чтобы вызывающий код мог записать
        аудит без повторного чтения.

        Raises:
            NotFoundError: подача (или исследование) не найдена
            InvalidTransitionError: target_status недостижим из текущего статуса
        """
        extras = extras or TransitionExtras()
        submission, study = await self.load(study_id, for_update=True)
        history = await self.history(submission.id)
        before = self.snapshot(submission, study, history)

        from_status = submission.current_status
        validate_transition(from_status, target_status)

        submission.current_status = target_status
        if extras.expedited_category is not None:
            submission.expedited_category = extras.expedited_category
        if extras.meeting_date is not None:
            submission.meeting_date = extras.meeting_date
        if extras.determined_at is not None:
            submission.determined_at = extras.determined_at
        if target_status == S.SUBMITTED:
            submission.submitted_at = utcnow()
        auto_path = path_for_status(target_status)
        if auto_path is not None:
            submission.path = auto_path

        entry = StatusHistoryEntry(
            submission_id=submission.id,
            from_status=from_status,
            to_status=target_status,
            note=note,
            actor_id=actor_id,
            position=len(history),
        )
        self.db.add(entry)

        cascaded = cascade_study_status(target_status)
        if cascaded is not None:
            study.status = cascaded

        await self.db.flush()

        after = self.snapshot(submission, study, [*history, entry])
        logger.info(
            f"Подача {submission.id}: {from_status.value} -> {target_status.value}"
            + (f", исследование {study.id} -> {cascaded.value}" if cascaded else "")
        )
        return TransitionResult(submission=submission, study=study, before=before, after=after)

    async def update_path(self, study_id: uuid.UUID, path: ReviewPath) -> TransitionResult:
        """Записывает ожидаемый путь рассмотрения; от статуса не зависит."""
        submission, study = await self.load(study_id, for_update=True)
        history = await self.history(submission.id)
        before = self.snapshot(submission, study, history)

        submission.path = path
        await self.db.flush()

        after = self.snapshot(submission, study, history)
        return TransitionResult(submission=submission, study=study, before=before, after=after)
