"""
Конфигурация pytest и общие фикстуры для тестов.
"""
from __future__ import annotations

import asyncio
import os
import sys
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.db import models  # noqa: F401
from app.db.base import Base
from app.db.session import configure_sqlite_transactions
from app.db.models.people import Person, Role
from app.db.models.studies import StudyType
from app.db.enums import RiskLevel
from app.schemas.studies import StudyCreate
from app.services.workflow import StudyWorkflowService

# Настройка event loop для Windows (psycopg требует SelectorEventLoop)
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


DEFAULT_TEMPLATE = [
    {"title": "Подготовить протокол", "role": "coordinator", "offset_days": 7},
    {"title": "Собрать согласия", "role": "pi", "offset_days": 14},
    {"role": "regulatory", "offset_days": "скоро"},
]


@pytest.fixture(scope="function")
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """
    Создает тестовый async engine для БД.

    TEST_DATABASE_URL позволяет прогнать тесты на PostgreSQL
    (postgresql+psycopg://...); по умолчанию временный файл SQLite.
    """
    test_db_url = os.getenv("TEST_DATABASE_URL")
    if not test_db_url:
        test_db_url = f"sqlite+aiosqlite:///{tmp_path / 'studyflow_test.db'}"

    engine = create_async_engine(
        test_db_url,
        echo=False,
        future=True,
    )
    configure_sqlite_transactions(engine)

    # enum-типы PostgreSQL создаются вместе с таблицами
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Очищаем после теста
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        expire_on_commit=False,
        class_=AsyncSession,
    )


@pytest.fixture(scope="function")
async def db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Фикстура для получения async-сессии БД в тестах.

    Сервисы сами фиксируют транзакции (unit_of_work), поэтому
    изоляция тестов обеспечивается пересозданием схемы в db_engine.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seed(db: AsyncSession) -> dict[str, str]:
    """Справочники: роли, люди и тип исследования с шаблоном чек-листа."""
    roles = {
        "pi": Role(id="pi", name="Principal Investigator"),
        "coordinator": Role(id="coordinator", name="Research Coordinator"),
        "regulatory": Role(id="regulatory", name="Regulatory Specialist"),
    }
    db.add_all(roles.values())
    db.add_all(
        [
            Person(
                id="p-alice",
                full_name="Alice Morgan",
                email="alice@example.org",
                roles=[roles["pi"]],
            ),
            Person(
                id="p-bob",
                full_name="Bob Chen",
                email="bob@example.org",
                roles=[roles["coordinator"]],
            ),
            StudyType(
                id="interventional",
                name="Interventional",
                default_task_template=DEFAULT_TEMPLATE,
            ),
            StudyType(id="registry", name="Registry", default_task_template=None),
        ]
    )
    await db.commit()
    return {"pi": "p-alice", "coordinator": "p-bob", "type": "interventional"}


@pytest.fixture
def workflow(db: AsyncSession) -> StudyWorkflowService:
    return StudyWorkflowService(db)


@pytest.fixture
def make_study(workflow: StudyWorkflowService, seed: dict[str, str]):
    """Фабрика исследований с разумными значениями по умолчанию."""

    async def _make(title: str = "Aspirin in Heart Failure", **overrides):
        data = {
            "title": title,
            "type_id": seed["type"],
            "risk_level": RiskLevel.MINIMAL,
            "pi_id": seed["pi"],
            "sponsor_name": "NIH",
        }
        data.update(overrides)
        return await workflow.create_study(StudyCreate(**data), actor_id="tester")

    return _make
