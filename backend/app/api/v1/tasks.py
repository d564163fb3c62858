from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.deps import get_actor_id, get_request_meta, get_workflow
from app.core.audit import RequestMeta
from app.schemas.tasks import TaskOut, TaskStatusUpdate
from app.services.workflow import StudyWorkflowService

router = APIRouter()


@router.get(
    "/studies/{study_id}/tasks",
    response_model=list[TaskOut],
)
async def list_study_tasks(
    study_id: UUID,
    workflow: StudyWorkflowService = Depends(get_workflow),
) -> list[TaskOut]:
    """Чек-лист задач исследования по порядку."""
    return await workflow.list_tasks(study_id)


@router.patch(
    "/tasks/{task_id}",
    response_model=TaskOut,
)
async def update_task_status(
    task_id: UUID,
    payload: TaskStatusUpdate,
    workflow: StudyWorkflowService = Depends(get_workflow),
    actor_id: str | None = Depends(get_actor_id),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> TaskOut:
    return await workflow.update_task_status(
        task_id, payload.status, actor_id=actor_id, request_meta=request_meta
    )
