from __future__ import annotations

"""
StudyWorkflowService: транзакционный фасад над жизненным циклом исследования.

Каждый сценарий устроен одинаково: разрешить ссылки -> доменная проверка ->
запись (возможно, нескольких строк) -> запись аудита -> commit -> вернуть
итоговое состояние. Всё внутри unit_of_work: при любой ошибке, включая сбой
аудита, транзакция откатывается целиком.
"""

import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit import RequestMeta, list_audit_events, record_audit
from app.core.errors import NotFoundError, ValidationError
from app.core.logging import logger
from app.db.base import utcnow
from app.db.enums import ReviewPath, StudyStatus, TaskStatus
from app.db.models.assignments import Assignment
from app.db.models.audit import AuditEvent
from app.db.models.people import Person, Role
from app.db.models.studies import Study, StudyType, Task
from app.db.session import unit_of_work
from app.schemas.assignments import AssignmentCreate, AssignmentOut, AssignmentUpdate
from app.schemas.reference import PersonOut, RoleOut, StudyTypeOut
from app.schemas.studies import StudyCreate, StudyDetailOut, StudyOut, StudyUpdate
from app.schemas.submissions import SubmissionOut, SubmissionTransitionRequest
from app.schemas.tasks import TaskOut
from app.services.effort import EffortConflictValidator
from app.services.submission_state_machine import SubmissionStateMachine, TransitionExtras


@dataclass
class TemplateTask:
    title: str
    role: str | None = None
    offset_days: int = 0
    description: str | None = None


def parse_task_template(payload: Any) -> list[TemplateTask]:
    """
    Разбирает шаблон чек-листа типа исследования.

    Не-объекты пропускаются; без title задача называется "Task";
    нечисловой offset_days считается нулём.
    """
    if not isinstance(payload, list):
        return []
    tasks: list[TemplateTask] = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        title = entry.get("title")
        role = entry.get("role")
        offset = entry.get("offset_days")
        description = entry.get("description")
        tasks.append(
            TemplateTask(
                title=title if isinstance(title, str) else "Task",
                role=role if isinstance(role, str) else None,
                offset_days=(
                    int(offset)
                    if isinstance(offset, (int, float)) and not isinstance(offset, bool)
                    else 0
                ),
                description=description if isinstance(description, str) else None,
            )
        )
    return tasks


class StudyWorkflowService:
    """Сценарии изменения исследований, подач, назначений и задач."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.state_machine = SubmissionStateMachine(db)
        self.effort_validator = EffortConflictValidator(db)

    # ------------------------------------------------------------------
    # Разрешение ссылок
    # ------------------------------------------------------------------

    async def _get_active_study(self, study_id: uuid.UUID, for_update: bool = False) -> Study:
        stmt = select(Study).where(Study.id == study_id, Study.deleted_at.is_(None))
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        study = (await self.db.execute(stmt)).scalar_one_or_none()
        if study is None:
            raise NotFoundError("Study", str(study_id))
        return study

    async def _require_study_type(self, type_id: str) -> StudyType:
        study_type = await self.db.get(StudyType, type_id)
        if study_type is None:
            raise NotFoundError("StudyType", type_id)
        return study_type

    async def _require_person(self, person_id: str) -> Person:
        person = await self.db.get(Person, person_id)
        if person is None:
            raise NotFoundError("Person", person_id)
        return person

    async def _require_role(self, role_id: str) -> Role:
        role = await self.db.get(Role, role_id)
        if role is None:
            raise NotFoundError("Role", role_id)
        return role

    async def _get_assignment(self, assignment_id: uuid.UUID) -> Assignment:
        stmt = (
            select(Assignment)
            .where(Assignment.id == assignment_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        assignment = (await self.db.execute(stmt)).scalar_one_or_none()
        if assignment is None:
            raise NotFoundError("Assignment", str(assignment_id))
        # Назначения мягко удалённого исследования недоступны
        await self._get_active_study(assignment.study_id)
        return assignment

    async def _tasks(self, study_id: uuid.UUID) -> list[Task]:
        stmt = select(Task).where(Task.study_id == study_id).order_by(Task.position)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _study_detail(self, study: Study) -> StudyDetailOut:
        submission = await self.state_machine.get(study.id)
        tasks = await self._tasks(study.id)
        return StudyDetailOut(
            **StudyOut.model_validate(study).model_dump(),
            submission=submission,
            tasks=[TaskOut.model_validate(t) for t in tasks],
        )

    # ------------------------------------------------------------------
    # Исследования
    # ------------------------------------------------------------------

    async def create_study(
        self,
        payload: StudyCreate,
        actor_id: str | None = None,
        request_meta: RequestMeta | None = None,
    ) -> StudyDetailOut:
        """Создаёт исследование в DRAFT вместе с подачей, первой записью истории и чек-листом."""
        async with unit_of_work(self.db, "create_study"):
            study_type = await self._require_study_type(payload.type_id)
            await self._require_person(payload.pi_id)

            study = Study(
                title=payload.title,
                short_title=payload.short_title,
                type_id=payload.type_id,
                risk_level=payload.risk_level,
                status=StudyStatus.DRAFT,
                pi_id=payload.pi_id,
                sponsor_name=payload.sponsor_name,
            )
            self.db.add(study)
            await self.db.flush()

            await self.state_machine.create_initial(study)

            now = utcnow()
            for position, template_task in enumerate(
                parse_task_template(study_type.default_task_template)
            ):
                self.db.add(
                    Task(
                        study_id=study.id,
                        title=template_task.title,
                        description=template_task.description,
                        status=TaskStatus.PENDING,
                        role_id=template_task.role,
                        due_at=now + timedelta(days=template_task.offset_days),
                        position=position,
                    )
                )
            await self.db.flush()

            detail = await self._study_detail(study)
            await record_audit(
                self.db,
                action="study.create",
                entity_type="Study",
                entity_id=str(study.id),
                actor_id=actor_id,
                before=None,
                after=detail,
                request_meta=request_meta,
            )

        logger.info(f"Создано исследование {detail.id} ({len(detail.tasks)} задач)")
        return detail

    async def get_study(self, study_id: uuid.UUID) -> StudyDetailOut:
        study = await self._get_active_study(study_id)
        return await self._study_detail(study)

    async def list_studies(
        self,
        pi_id: str | None = None,
        status: StudyStatus | None = None,
        search: str | None = None,
    ) -> list[StudyOut]:
        stmt = select(Study).where(Study.deleted_at.is_(None))
        if pi_id:
            stmt = stmt.where(Study.pi_id == pi_id)
        if status:
            stmt = stmt.where(Study.status == status)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(Study.title.ilike(pattern), Study.sponsor_name.ilike(pattern))
            )
        stmt = stmt.order_by(Study.created_at.desc())
        result = await self.db.execute(stmt)
        return [StudyOut.model_validate(s) for s in result.scalars().all()]

    async def update_study(
        self,
        study_id: uuid.UUID,
        payload: StudyUpdate,
        actor_id: str | None = None,
        request_meta: RequestMeta | None = None,
    ) -> StudyDetailOut:
        """Частичное редактирование исследования, включая явную смену статуса."""
        changes = payload.model_dump(exclude_unset=True)
        for required in ("title", "type_id", "risk_level", "pi_id", "status"):
            if required in changes and changes[required] is None:
                raise ValidationError(
                    f"Поле {required} не может быть пустым", details={"field": required}
                )

        async with unit_of_work(self.db, "update_study"):
            study = await self._get_active_study(study_id, for_update=True)
            before = await self._study_detail(study)

            if "type_id" in changes:
                await self._require_study_type(changes["type_id"])
            if "pi_id" in changes:
                await self._require_person(changes["pi_id"])

            for field_name, value in changes.items():
                setattr(study, field_name, value)
            await self.db.flush()

            after = await self._study_detail(study)
            await record_audit(
                self.db,
                action="study.update",
                entity_type="Study",
                entity_id=str(study.id),
                actor_id=actor_id,
                before=before,
                after=after,
                request_meta=request_meta,
            )
        return after

    async def soft_delete_study(
        self,
        study_id: uuid.UUID,
        actor_id: str | None = None,
        request_meta: RequestMeta | None = None,
    ) -> None:
        """Помечает исследование удалённым и закрывает его; строка остаётся в БД."""
        async with unit_of_work(self.db, "soft_delete_study"):
            study = await self._get_active_study(study_id, for_update=True)
            before = await self._study_detail(study)

            study.deleted_at = utcnow()
            study.status = StudyStatus.CLOSED
            await self.db.flush()

            await record_audit(
                self.db,
                action="study.delete",
                entity_type="Study",
                entity_id=str(study.id),
                actor_id=actor_id,
                before=before,
                after=None,
                request_meta=request_meta,
            )
        logger.info(f"Исследование {study_id} помечено удалённым")

    # ------------------------------------------------------------------
    # Регуляторная подача
    # ------------------------------------------------------------------

    async def get_submission(self, study_id: uuid.UUID) -> SubmissionOut:
        return await self.state_machine.get(study_id)

    async def transition_submission(
        self,
        study_id: uuid.UUID,
        payload: SubmissionTransitionRequest,
        actor_id: str | None = None,
        request_meta: RequestMeta | None = None,
    ) -> SubmissionOut:
        """Переход статуса подачи с каскадом на исследование и записью аудита."""
        async with unit_of_work(self.db, "transition_submission"):
            result = await self.state_machine.transition(
                study_id,
                payload.target_status,
                note=payload.note,
                extras=TransitionExtras(
                    expedited_category=payload.expedited_category,
                    meeting_date=payload.meeting_date,
                    determined_at=payload.determined_at,
                ),
                actor_id=payload.actor_id or actor_id,
            )
            await record_audit(
                self.db,
                action="submission.transition",
                entity_type="RegulatorySubmission",
                entity_id=str(result.submission.id),
                actor_id=actor_id,
                before=result.before,
                after=result.after,
                request_meta=request_meta,
            )
        return result.after

    async def update_submission_path(
        self,
        study_id: uuid.UUID,
        path: ReviewPath,
        actor_id: str | None = None,
        request_meta: RequestMeta | None = None,
    ) -> SubmissionOut:
        async with unit_of_work(self.db, "update_submission_path"):
            result = await self.state_machine.update_path(study_id, path)
            await record_audit(
                self.db,
                action="submission.update_path",
                entity_type="RegulatorySubmission",
                entity_id=str(result.submission.id),
                actor_id=actor_id,
                before=result.before,
                after=result.after,
                request_meta=request_meta,
            )
        return result.after

    # ------------------------------------------------------------------
    # Назначения
    # ------------------------------------------------------------------

    async def create_assignment(
        self,
        payload: AssignmentCreate,
        actor_id: str | None = None,
        request_meta: RequestMeta | None = None,
    ) -> AssignmentOut:
        async with unit_of_work(self.db, "create_assignment"):
            await self._get_active_study(payload.study_id)
            await self._require_person(payload.person_id)
            await self._require_role(payload.role_id)

            await self.effort_validator.check_and_reserve(
                person_id=payload.person_id,
                study_id=payload.study_id,
                start_date=payload.start_date,
                end_date=payload.end_date,
                effort_percent=payload.effort_percent,
            )

            assignment = Assignment(
                study_id=payload.study_id,
                person_id=payload.person_id,
                role_id=payload.role_id,
                effort_percent=payload.effort_percent,
                hours_per_week=payload.hours_per_week,
                start_date=payload.start_date,
                end_date=payload.end_date,
            )
            self.db.add(assignment)
            await self.db.flush()

            after = AssignmentOut.model_validate(assignment)
            await record_audit(
                self.db,
                action="assignment.create",
                entity_type="Assignment",
                entity_id=str(assignment.id),
                actor_id=actor_id,
                before=None,
                after=after,
                request_meta=request_meta,
            )
        return after

    async def update_assignment(
        self,
        assignment_id: uuid.UUID,
        payload: AssignmentUpdate,
        actor_id: str | None = None,
        request_meta: RequestMeta | None = None,
    ) -> AssignmentOut:
        """
        Обновление назначения с повторной проверкой загрузки против всех
        остальных назначений человека. Не переданные поля берутся из текущего
        назначения.
        """
        changes = payload.model_dump(exclude_unset=True)
        for required in ("role_id", "start_date"):
            if required in changes and changes[required] is None:
                raise ValidationError(
                    f"Поле {required} не может быть пустым", details={"field": required}
                )

        async with unit_of_work(self.db, "update_assignment"):
            assignment = await self._get_assignment(assignment_id)
            before = AssignmentOut.model_validate(assignment)

            if "role_id" in changes:
                await self._require_role(changes["role_id"])

            start_date = changes.get("start_date", assignment.start_date)
            end_date = changes["end_date"] if "end_date" in changes else assignment.end_date
            effort = (
                changes["effort_percent"]
                if "effort_percent" in changes
                else assignment.effort_percent
            )

            await self.effort_validator.check_and_reserve(
                person_id=assignment.person_id,
                study_id=assignment.study_id,
                start_date=start_date,
                end_date=end_date,
                effort_percent=effort,
                exclude_assignment_id=assignment.id,
            )

            for field_name, value in changes.items():
                setattr(assignment, field_name, value)
            await self.db.flush()

            after = AssignmentOut.model_validate(assignment)
            await record_audit(
                self.db,
                action="assignment.update",
                entity_type="Assignment",
                entity_id=str(assignment.id),
                actor_id=actor_id,
                before=before,
                after=after,
                request_meta=request_meta,
            )
        return after

    async def delete_assignment(
        self,
        assignment_id: uuid.UUID,
        actor_id: str | None = None,
        request_meta: RequestMeta | None = None,
    ) -> None:
        async with unit_of_work(self.db, "delete_assignment"):
            assignment = await self._get_assignment(assignment_id)
            before = AssignmentOut.model_validate(assignment)
            await self.db.delete(assignment)
            await self.db.flush()

            await record_audit(
                self.db,
                action="assignment.delete",
                entity_type="Assignment",
                entity_id=str(assignment_id),
                actor_id=actor_id,
                before=before,
                after=None,
                request_meta=request_meta,
            )

    async def list_assignments(self, study_id: uuid.UUID) -> list[AssignmentOut]:
        await self._get_active_study(study_id)
        stmt = (
            select(Assignment)
            .where(Assignment.study_id == study_id)
            .order_by(Assignment.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return [AssignmentOut.model_validate(a) for a in result.scalars().all()]

    # ------------------------------------------------------------------
    # Задачи и аудит
    # ------------------------------------------------------------------

    async def list_tasks(self, study_id: uuid.UUID) -> list[TaskOut]:
        await self._get_active_study(study_id)
        return [TaskOut.model_validate(t) for t in await self._tasks(study_id)]

    async def update_task_status(
        self,
        task_id: uuid.UUID,
        status: TaskStatus,
        actor_id: str | None = None,
        request_meta: RequestMeta | None = None,
    ) -> TaskOut:
        async with unit_of_work(self.db, "update_task_status"):
            task = await self.db.get(Task, task_id, with_for_update=True)
            if task is None:
                raise NotFoundError("Task", str(task_id))
            await self._get_active_study(task.study_id)
            before = TaskOut.model_validate(task)

            task.status = status
            await self.db.flush()

            after = TaskOut.model_validate(task)
            await record_audit(
                self.db,
                action="task.update_status",
                entity_type="Task",
                entity_id=str(task.id),
                actor_id=actor_id,
                before=before,
                after=after,
                request_meta=request_meta,
            )
        return after

    async def list_audit_events(
        self,
        entity_type: str | None = None,
        entity_id: str | None = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return await list_audit_events(self.db, entity_type, entity_id, limit)

    # ------------------------------------------------------------------
    # Справочники
    # ------------------------------------------------------------------

    async def list_study_types(self) -> list[StudyTypeOut]:
        result = await self.db.execute(select(StudyType).order_by(StudyType.name))
        return [StudyTypeOut.model_validate(t) for t in result.scalars().all()]

    async def list_people(self) -> list[PersonOut]:
        """Сотрудники по имени, с ролями (roles подгружаются selectin)."""
        result = await self.db.execute(select(Person).order_by(Person.full_name))
        return [PersonOut.model_validate(p) for p in result.scalars().all()]

    async def list_roles(self) -> list[RoleOut]:
        result = await self.db.execute(select(Role).order_by(Role.name))
        return [RoleOut.model_validate(r) for r in result.scalars().all()]
