"""Integration тесты для исследований, чек-листа задач и мягкого удаления."""

from __future__ import annotations

from uuid import uuid4

import pydantic
import pytest
from sqlalchemy import select

from app.core.errors import NotFoundError, ValidationError
from app.db.enums import RiskLevel, StudyStatus, SubmissionStatus, TaskStatus
from app.db.models.studies import Study
from app.schemas.studies import StudyCreate, StudyUpdate
from app.schemas.submissions import SubmissionTransitionRequest
from app.services.workflow import parse_task_template


class TestTaskTemplateParsing:
    def test_tolerant_parsing(self):
        tasks = parse_task_template(
            [
                {"title": "IRB packet", "role": "regulatory", "offset_days": 3},
                "not an object",
                {"offset_days": "soon"},
                {"title": 42, "offset_days": 2.9, "description": "Draft"},
                {"title": "Flag", "offset_days": True},
            ]
        )
        assert [t.title for t in tasks] == ["IRB packet", "Task", "Task", "Flag"]
        assert [t.offset_days for t in tasks] == [3, 0, 2, 0]
        assert tasks[0].role == "regulatory"
        assert tasks[2].description == "Draft"

    def test_non_list_template(self):
        assert parse_task_template(None) == []
        assert parse_task_template({"title": "x"}) == []


@pytest.mark.asyncio
async def test_create_study_materializes_checklist(make_study, workflow):
    study = await make_study()

    assert study.status == StudyStatus.DRAFT
    assert study.submission.current_status == SubmissionStatus.DRAFT
    assert [t.title for t in study.tasks] == ["Подготовить протокол", "Собрать согласия", "Task"]
    assert [t.role_id for t in study.tasks] == ["coordinator", "pi", "regulatory"]
    assert all(t.status == TaskStatus.PENDING for t in study.tasks)
    assert all(t.due_at is not None for t in study.tasks)

    events = await workflow.list_audit_events(entity_type="Study", entity_id=str(study.id))
    assert [e.action for e in events] == ["study.create"]
    assert events[0].before_json is None
    assert events[0].after_json["submission"]["current_status"] == "DRAFT"
    assert events[0].actor_id == "tester"


@pytest.mark.asyncio
async def test_create_study_without_template(make_study):
    study = await make_study(type_id="registry")
    assert study.tasks == []


@pytest.mark.asyncio
async def test_create_study_requires_known_references(make_study):
    with pytest.raises(NotFoundError) as exc_info:
        await make_study(type_id="unknown-type")
    assert exc_info.value.details["resource"] == "StudyType"

    with pytest.raises(NotFoundError) as exc_info:
        await make_study(pi_id="p-nobody")
    assert exc_info.value.details["resource"] == "Person"


@pytest.mark.asyncio
async def test_update_study_partial(make_study, workflow):
    study = await make_study()

    updated = await workflow.update_study(
        study.id,
        StudyUpdate(title="Aspirin in Heart Failure II", sponsor_name=None),
        actor_id="p-alice",
    )
    assert updated.title == "Aspirin in Heart Failure II"
    assert updated.sponsor_name is None
    assert updated.risk_level == RiskLevel.MINIMAL

    events = await workflow.list_audit_events(entity_type="Study", entity_id=str(study.id))
    update_event = next(e for e in events if e.action == "study.update")
    assert update_event.before_json["title"] == "Aspirin in Heart Failure"
    assert update_event.after_json["title"] == "Aspirin in Heart Failure II"


@pytest.mark.asyncio
async def test_update_study_rejects_null_required_field(make_study, workflow):
    study = await make_study()
    with pytest.raises(ValidationError):
        await workflow.update_study(study.id, StudyUpdate(title=None))


@pytest.mark.asyncio
async def test_update_study_explicit_status(make_study, workflow):
    study = await make_study()
    updated = await workflow.update_study(
        study.id, StudyUpdate(status=StudyStatus.READY_TO_SUBMIT)
    )
    assert updated.status == StudyStatus.READY_TO_SUBMIT
    # Статус подачи правкой исследования не меняется
    assert updated.submission.current_status == SubmissionStatus.DRAFT


@pytest.mark.asyncio
async def test_update_study_revalidates_pi(make_study, workflow):
    study = await make_study()
    with pytest.raises(NotFoundError):
        await workflow.update_study(study.id, StudyUpdate(pi_id="p-nobody"))

    detail = await workflow.get_study(study.id)
    assert detail.pi_id == "p-alice"


@pytest.mark.asyncio
async def test_list_studies_filters(make_study, workflow):
    heart = await make_study("Heart Failure Registry")
    await make_study("Sleep Apnea Trial", pi_id="p-bob", sponsor_name="Acme Pharma")

    assert {s.title for s in await workflow.list_studies()} == {
        "Heart Failure Registry",
        "Sleep Apnea Trial",
    }
    assert [s.title for s in await workflow.list_studies(pi_id="p-bob")] == ["Sleep Apnea Trial"]
    assert [s.title for s in await workflow.list_studies(search="acme")] == ["Sleep Apnea Trial"]

    await workflow.update_study(heart.id, StudyUpdate(status=StudyStatus.ACTIVE))
    active = await workflow.list_studies(status=StudyStatus.ACTIVE)
    assert [s.id for s in active] == [heart.id]


@pytest.mark.asyncio
async def test_soft_delete_hides_study_everywhere(make_study, workflow, db):
    study = await make_study()

    await workflow.soft_delete_study(study.id, actor_id="p-alice")

    with pytest.raises(NotFoundError):
        await workflow.get_study(study.id)
    with pytest.raises(NotFoundError):
        await workflow.get_submission(study.id)
    with pytest.raises(NotFoundError):
        await workflow.transition_submission(
            study.id,
            SubmissionTransitionRequest(target_status=SubmissionStatus.READY_TO_SUBMIT),
        )
    with pytest.raises(NotFoundError):
        await workflow.list_tasks(study.id)
    with pytest.raises(NotFoundError):
        await workflow.soft_delete_study(study.id)
    assert await workflow.list_studies() == []

    # Строка остаётся в БД, помеченная и закрытая
    row = (await db.execute(select(Study).where(Study.id == study.id))).scalar_one()
    assert row.deleted_at is not None
    assert row.status == StudyStatus.CLOSED

    events = await workflow.list_audit_events(entity_type="Study", entity_id=str(study.id))
    delete_event = next(e for e in events if e.action == "study.delete")
    assert delete_event.after_json is None
    assert delete_event.before_json["status"] == "DRAFT"


@pytest.mark.asyncio
async def test_task_status_update(make_study, workflow):
    study = await make_study()
    tasks = await workflow.list_tasks(study.id)
    assert [t.position for t in tasks] == [0, 1, 2]

    updated = await workflow.update_task_status(tasks[0].id, TaskStatus.COMPLETED, actor_id="p-bob")
    assert updated.status == TaskStatus.COMPLETED

    events = await workflow.list_audit_events(entity_type="Task", entity_id=str(tasks[0].id))
    assert [e.action for e in events] == ["task.update_status"]
    assert events[0].before_json["status"] == "PENDING"
    assert events[0].after_json["status"] == "COMPLETED"

    with pytest.raises(NotFoundError):
        await workflow.update_task_status(uuid4(), TaskStatus.BLOCKED)


def test_create_study_schema_validation():
    with pytest.raises(pydantic.ValidationError):
        StudyCreate(title="ab", type_id="interventional", risk_level="MINIMAL", pi_id="p-alice")
