from __future__ import annotations

"""
Базовый declarative-слой для SQLAlchemy 2.0.

Все модели в проекте наследуются от `Base`. Сущности предметной области
используют UUID в качестве первичного ключа, справочники (люди, роли, типы
исследований) используют строковые идентификаторы. Временные метки timezone-aware.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import JSON, DateTime, MetaData, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


metadata = MetaData(naming_convention=convention)

# JSONB в PostgreSQL, обычный JSON в остальных диалектах (тесты на SQLite)
JSONVariant = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Базовый класс всех ORM-моделей."""

    metadata = metadata

    @declared_attr.directive
    def __tablename__(cls) -> str:  # type: ignore[override]
        return cls.__name__.lower()


class UUIDMixin:
    """Миксин с UUID первичным ключом."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )


class TimestampMixin:
    """Миксин со стандартными временными метками.

    Метка ставится на стороне приложения с микросекундами: порядок
    записей истории внутри одной транзакции должен сохраняться.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
