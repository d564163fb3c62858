from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings
from app.core.errors import AppError
from app.core.logging import logger

"""
Инициализация async-движка и фабрики сессий SQLAlchemy 2.0.
Сессии выдаёт FastAPI-зависимость app.api.deps.get_db.
"""


def configure_sqlite_transactions(engine: AsyncEngine) -> None:
    """
    Для SQLite открывает каждую транзакцию через BEGIN IMMEDIATE.

    SQLite игнорирует SELECT ... FOR UPDATE, а драйвер не начинает транзакцию
    перед чтением. BEGIN IMMEDIATE сразу берёт блокировку записи, поэтому
    конкурентные транзакции выполняются по очереди. Для остальных диалектов
    ничего не меняет.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def disable_driver_begin(dbapi_connection, connection_record):
        # BEGIN выдаёт обработчик ниже, а не драйвер
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine: AsyncEngine = create_async_engine(
    settings.async_database_url,
    echo=False,
    future=True,
)
configure_sqlite_transactions(engine)

async_session_factory = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


@asynccontextmanager
async def unit_of_work(db: AsyncSession, operation: str) -> AsyncIterator[AsyncSession]:
    """
    Единица работы: всё, что записано внутри блока, фиксируется одним commit.

    Любое исключение откатывает транзакцию целиком и пробрасывается дальше.
    Доменные ошибки (AppError) логируются как предупреждения, остальные
    с полным трейсом.
    """
    try:
        yield db
        await db.commit()
    except AppError as exc:
        await db.rollback()
        if exc.status_code >= 500:
            logger.error(f"{operation}: откат транзакции ({exc.code}: {exc.message})")
        else:
            logger.warning(f"{operation}: отклонено ({exc.code}: {exc.message})")
        raise
    except Exception:
        await db.rollback()
        logger.error(f"{operation}: непредвиденная ошибка, откат транзакции", exc_info=True)
        raise
