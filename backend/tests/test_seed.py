"""Тесты заполнения справочников."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.people import Person, Role
from app.db.models.studies import StudyType
from app.scripts.seed import seed_reference_data
from app.services.workflow import parse_task_template


@pytest.mark.asyncio
async def test_seed_is_idempotent(db: AsyncSession):
    first = await seed_reference_data(db)
    second = await seed_reference_data(db)
    assert first == second

    assert (await db.execute(select(func.count()).select_from(Role))).scalar_one() == first["roles"]
    assert (await db.execute(select(func.count()).select_from(Person))).scalar_one() == first["persons"]
    assert (
        await db.execute(select(func.count()).select_from(StudyType))
    ).scalar_one() == first["study_types"]

    pi = (await db.execute(select(Person).where(Person.id == "u_pi_lee"))).scalar_one()
    assert [r.id for r in pi.roles] == ["pi"]


@pytest.mark.asyncio
async def test_seeded_templates_parse(db: AsyncSession):
    await seed_reference_data(db)
    study_type = await db.get(StudyType, "drug_ind")
    tasks = parse_task_template(study_type.default_task_template)
    assert tasks[0].title == "Draft protocol"
    assert tasks[-1].offset_days == 14
