"""
Скрипт для заполнения БД справочными данными:
- роли
- сотрудники с ролями
- типы исследований с шаблонами чек-листов

Повторный запуск безопасен: записи сливаются по первичному ключу (merge).
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Добавляем корень проекта в путь
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.core.logging import logger
from app.db.models.people import Person, Role
from app.db.models.studies import StudyType

ROLES = {
    "pi": "Principal Investigator",
    "co_i": "Co-Investigator",
    "coordinator": "Study Coordinator",
    "regulatory": "Regulatory Specialist",
    "dept_admin": "Department Admin",
    "irb_liaison": "IRB Liaison",
    "finance": "Finance",
    "viewer": "Viewer",
}

PEOPLE = [
    ("u_pi_lee", "Dr. Pat Lee", "p.lee@example.edu", ["pi"]),
    ("u_coord_rivera", "Alex Rivera", "a.rivera@example.edu", ["coordinator"]),
    ("u_reg_singh", "Mira Singh", "m.singh@example.edu", ["regulatory"]),
    ("u_dept_nguyen", "Kim Nguyen", "k.nguyen@example.edu", ["dept_admin"]),
    ("u_fin_carter", "Jordan Carter", "j.carter@example.edu", ["finance"]),
    ("u_irb_chen", "Robin Chen", "r.chen@example.edu", ["irb_liaison"]),
]

_PACKET = [
    {"title": "Assemble IRB submission packet", "role": "regulatory", "offset_days": 5},
    {"title": "Submit to IRB", "role": "pi", "offset_days": 7},
]

STUDY_TYPES = {
    "drug_ind": (
        "Drug (IND)",
        [
            {"title": "Draft protocol", "role": "pi", "offset_days": 0},
            {"title": "Draft consent", "role": "coordinator", "offset_days": 0},
            {"title": "Confirm IND applicability and capture IND #", "role": "regulatory", "offset_days": 0},
            {"title": "Department/Chair pre-review", "role": "dept_admin", "offset_days": 3},
            *_PACKET,
            {"title": "Respond to IRB modifications (if requested)", "role": "regulatory", "offset_days": 14},
        ],
    ),
    "device_ide": (
        "Device (IDE)",
        [
            {"title": "Draft protocol", "role": "pi", "offset_days": 0},
            {"title": "Draft consent", "role": "coordinator", "offset_days": 0},
            {"title": "Capture IDE # and risk category", "role": "regulatory", "offset_days": 0},
            {"title": "Department/Chair pre-review", "role": "dept_admin", "offset_days": 3},
            *_PACKET,
        ],
    ),
    "behavioral": (
        "Behavioral",
        [
            {"title": "Draft protocol", "role": "pi", "offset_days": 0},
            {"title": "Determine exempt vs expedited", "role": "regulatory", "offset_days": 2},
            *_PACKET,
        ],
    ),
    "observational": (
        "Observational",
        [
            {"title": "Draft protocol", "role": "pi", "offset_days": 0},
            {"title": "Data use & privacy review (internal)", "role": "regulatory", "offset_days": 2},
            *_PACKET,
        ],
    ),
    "registry": (
        "Registry",
        [
            {"title": "Draft protocol/charter", "role": "pi", "offset_days": 0},
            {"title": "Data governance checklist", "role": "regulatory", "offset_days": 2},
            *_PACKET,
        ],
    ),
}


async def seed_reference_data(session: AsyncSession) -> dict[str, int]:
    """Сливает справочники в текущую сессию и фиксирует их. Возвращает счётчики."""
    roles: dict[str, Role] = {}
    for role_id, name in ROLES.items():
        roles[role_id] = await session.merge(Role(id=role_id, name=name))

    for person_id, full_name, email, role_ids in PEOPLE:
        await session.merge(
            Person(
                id=person_id,
                full_name=full_name,
                email=email,
                roles=[roles[r] for r in role_ids],
            )
        )

    for type_id, (name, template) in STUDY_TYPES.items():
        await session.merge(StudyType(id=type_id, name=name, default_task_template=template))

    await session.commit()
    return {"roles": len(ROLES), "persons": len(PEOPLE), "study_types": len(STUDY_TYPES)}


async def seed_db() -> None:
    """Заполнение БД справочными данными."""
    engine = create_async_engine(settings.async_database_url, echo=False)
    async_session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async with async_session_factory() as session:
        counts = await seed_reference_data(session)

    await engine.dispose()
    logger.info(f"Seed завершён: {counts}")


if __name__ == "__main__":
    asyncio.run(seed_db())
