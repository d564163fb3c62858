from __future__ import annotations

"""
Проверка загрузки сотрудников по пересекающимся интервалам назначений.

Инвариант: в любой день сумма effort_percent назначений человека, которые
покрывают этот день, не превышает settings.effort_capacity_percent.
Бессрочные назначения продлеваются до settings.open_end_sentinel.
Назначения без effort_percent (только часы в неделю) в проверке дают 0.
"""

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import EffortOverCommittedError, NotFoundError, ValidationError
from app.core.logging import logger
from app.db.models.assignments import Assignment
from app.db.models.people import Person
from app.db.models.studies import Study

ZERO = Decimal(0)


class Commitment(Protocol):
    id: uuid.UUID
    start_date: date
    end_date: date | None
    effort_percent: Decimal | None


def effective_end(end_date: date | None) -> date:
    return end_date if end_date is not None else settings.open_end_sentinel


def ranges_overlap(
    a_start: date, a_end: date | None, b_start: date, b_end: date | None
) -> bool:
    """Интервалы [a_start, a_end] и [b_start, b_end] (включительно) пересекаются."""
    return a_start <= effective_end(b_end) and b_start <= effective_end(a_end)


def effort_of(commitment: Commitment) -> Decimal:
    return Decimal(commitment.effort_percent) if commitment.effort_percent is not None else ZERO


@dataclass
class PeakLoad:
    """Максимальная суммарная загрузка существующих назначений внутри окна."""

    total: Decimal = ZERO
    at_date: date | None = None
    covering: list = field(default_factory=list)


def peak_load(start_date: date, end_date: date | None, existing: Sequence[Commitment]) -> PeakLoad:
    """
    Ищет день окна [start_date, end_date] с наибольшей суммарной загрузкой.

    Сумма кусочно-постоянна и меняется только в дни начала назначений,
    поэтому достаточно проверить начало окна и начала пересекающихся назначений.
    """
    overlapping = [
        c for c in existing if ranges_overlap(start_date, end_date, c.start_date, c.end_date)
    ]
    peak = PeakLoad()
    if not overlapping:
        return peak

    instants = sorted({start_date} | {max(start_date, c.start_date) for c in overlapping})
    for instant in instants:
        covering = [
            c for c in overlapping if c.start_date <= instant <= effective_end(c.end_date)
        ]
        total = sum((effort_of(c) for c in covering), ZERO)
        if total > peak.total:
            peak = PeakLoad(total=total, at_date=instant, covering=covering)
    return peak


def find_over_commitment(
    start_date: date,
    end_date: date | None,
    effort_percent: Decimal | None,
    existing: Sequence[Commitment],
    capacity: Decimal | None = None,
) -> tuple[PeakLoad, Commitment] | None:
    """
    Возвращает (пик, конфликтующее назначение), если новая загрузка вместе с
    существующими превышает capacity хотя бы в один день окна; иначе None.
    Ровно capacity допустимо.
    """
    capacity = capacity if capacity is not None else Decimal(settings.effort_capacity_percent)
    proposed = Decimal(effort_percent) if effort_percent is not None else ZERO
    peak = peak_load(start_date, end_date, existing)
    if not peak.covering or proposed + peak.total <= capacity:
        return None
    # Называем назначение с наибольшим вкладом в пик
    conflicting = max(peak.covering, key=effort_of)
    return peak, conflicting


class EffortConflictValidator:
    """Проверка и резервирование загрузки человека внутри транзакции назначения."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _lock_person(self, person_id: str) -> None:
        # Блокировка строки человека сериализует конкурентные назначения на него
        # до commit вызывающей транзакции.
        stmt = select(Person.id).where(Person.id == person_id).with_for_update()
        if (await self.db.execute(stmt)).scalar_one_or_none() is None:
            raise NotFoundError("Person", person_id)

    async def _load_commitments(
        self, person_id: str, exclude_assignment_id: uuid.UUID | None
    ) -> list[Assignment]:
        stmt = (
            select(Assignment)
            .join(Study, Study.id == Assignment.study_id)
            .where(Assignment.person_id == person_id, Study.deleted_at.is_(None))
        )
        if exclude_assignment_id is not None:
            stmt = stmt.where(Assignment.id != exclude_assignment_id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def check_and_reserve(
        self,
        person_id: str,
        study_id: uuid.UUID,
        start_date: date,
        end_date: date | None,
        effort_percent: Decimal | None,
        exclude_assignment_id: uuid.UUID | None = None,
    ) -> None:
        """
        Проверяет, что новая (или изменённая) загрузка совместима с остальными
        назначениями человека во всех исследованиях.

        Блокировка человека держится до commit, поэтому запись назначения
        должна выполняться в той же транзакции.

        Raises:
            ValidationError: некорректный интервал или процент загрузки
            NotFoundError: человек не найден
            EffortOverCommittedError: превышение загрузки на пересекающемся интервале
        """
        if end_date is not None and end_date < start_date:
            raise ValidationError(
                "Дата окончания назначения раньше даты начала",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        if effort_percent is not None and not (ZERO <= Decimal(effort_percent) <= Decimal(100)):
            raise ValidationError(
                "effort_percent должен быть в диапазоне 0..100",
                details={"effort_percent": str(effort_percent)},
            )

        await self._lock_person(person_id)
        existing = await self._load_commitments(person_id, exclude_assignment_id)

        capacity = settings.effort_capacity_percent
        conflict = find_over_commitment(
            start_date, end_date, effort_percent, existing, capacity=Decimal(capacity)
        )
        if conflict is None:
            return

        peak, conflicting = conflict
        logger.warning(
            f"Превышение загрузки: person={person_id} study={study_id} "
            f"proposed={effort_percent} existing_peak={peak.total} at={peak.at_date}"
        )
        proposed = Decimal(effort_percent) if effort_percent is not None else ZERO
        raise EffortOverCommittedError(
            conflicting_assignment_id=str(conflicting.id),
            total_effort=str(proposed + peak.total),
            at_date=peak.at_date.isoformat() if peak.at_date else "",
            capacity=capacity,
            details={
                "person_id": person_id,
                "overlapping_assignment_ids": [str(c.id) for c in peak.covering],
            },
        )
