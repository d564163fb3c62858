"""Тесты журнала аудита: снимки и запись событий."""

from __future__ import annotations

import warnings
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.exc import SADeprecationWarning
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit import RequestMeta, list_audit_events, record_audit, snapshot
from app.core.errors import AuditWriteError
from app.db.enums import SubmissionStatus, TaskStatus
from app.schemas.tasks import TaskOut


def test_snapshot_converts_domain_values():
    ident = uuid4()
    value = {
        "id": ident,
        "status": SubmissionStatus.PRE_REVIEW,
        "effort": Decimal("12.50"),
        "start": date(2026, 1, 1),
        "at": datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc),
        "tags": ("a", "b"),
    }
    assert snapshot(value) == {
        "id": str(ident),
        "status": "PRE_REVIEW",
        "effort": "12.50",
        "start": "2026-01-01",
        "at": "2026-01-01T12:00:00+00:00",
        "tags": ["a", "b"],
    }


def test_snapshot_is_deep_copy():
    live = {"history": [{"to_status": "DRAFT"}]}
    copied = snapshot(live)
    live["history"].append({"to_status": "READY_TO_SUBMIT"})
    live["history"][0]["to_status"] = "SUBMITTED"
    assert copied == {"history": [{"to_status": "DRAFT"}]}


def test_snapshot_of_pydantic_model():
    now = datetime(2026, 2, 1, tzinfo=timezone.utc)
    task = TaskOut(
        id=uuid4(),
        study_id=uuid4(),
        title="Подготовить протокол",
        description=None,
        status=TaskStatus.PENDING,
        role_id="coordinator",
        due_at=None,
        position=0,
        created_at=now,
        updated_at=now,
    )
    data = snapshot(task)
    assert data["status"] == "PENDING"
    assert data["title"] == "Подготовить протокол"


def test_snapshot_unserializable_raises():
    with pytest.raises(AuditWriteError) as exc_info:
        snapshot({"handle": object()})
    assert exc_info.value.code == "audit_write_failure"
    assert exc_info.value.status_code == 500


def test_snapshot_of_none_is_none():
    assert snapshot(None) is None


@pytest.mark.asyncio
async def test_record_audit_persists_event(db: AsyncSession):
    before = {"current_status": "DRAFT"}
    event = await record_audit(
        db,
        action="submission.transition",
        entity_type="RegulatorySubmission",
        entity_id="sub-1",
        actor_id="p-alice",
        before=before,
        after={"current_status": "READY_TO_SUBMIT"},
        request_meta=RequestMeta(ip_address="10.0.0.1", user_agent="pytest"),
    )
    before["current_status"] = "MUTATED"
    await db.commit()

    events = await list_audit_events(db, entity_type="RegulatorySubmission", entity_id="sub-1")
    assert [e.id for e in events] == [event.id]
    stored = events[0]
    assert stored.before_json == {"current_status": "DRAFT"}
    assert stored.after_json == {"current_status": "READY_TO_SUBMIT"}
    assert stored.actor_id == "p-alice"
    assert stored.ip_address == "10.0.0.1"
    assert stored.user_agent == "pytest"


@pytest.mark.asyncio
async def test_record_audit_rejects_unserializable_without_writing(db: AsyncSession):
    with pytest.raises(AuditWriteError):
        await record_audit(
            db,
            action="study.update",
            entity_type="Study",
            entity_id="s-1",
            before={"bad": object()},
        )
    await db.rollback()
    assert await list_audit_events(db) == []


@pytest.mark.asyncio
async def test_record_audit_flushes_without_deprecated_api(db: AsyncSession):
    with warnings.catch_warnings():
        warnings.simplefilter("error", SADeprecationWarning)
        event = await record_audit(
            db,
            action="task.update",
            entity_type="Task",
            entity_id="t-1",
            actor_id="p-bob",
            after={"status": "DONE"},
        )

    # Событие видно в той же транзакции ещё до commit
    events = await list_audit_events(db, entity_type="Task", entity_id="t-1")
    assert [e.id for e in events] == [event.id]
    await db.rollback()
    assert await list_audit_events(db, entity_type="Task") == []
