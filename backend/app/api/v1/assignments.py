from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.deps import get_actor_id, get_request_meta, get_workflow
from app.core.audit import RequestMeta
from app.schemas.common import ErrorResponse
from app.schemas.assignments import AssignmentCreate, AssignmentOut, AssignmentUpdate
from app.services.workflow import StudyWorkflowService

router = APIRouter()


@router.post(
    "/assignments",
    response_model=AssignmentOut,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_assignment(
    payload: AssignmentCreate,
    workflow: StudyWorkflowService = Depends(get_workflow),
    actor_id: str | None = Depends(get_actor_id),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> AssignmentOut:
    """Назначение сотрудника на исследование с проверкой загрузки."""
    return await workflow.create_assignment(payload, actor_id=actor_id, request_meta=request_meta)


@router.get(
    "/assignments",
    response_model=list[AssignmentOut],
)
async def list_assignments(
    study_id: UUID = Query(...),
    workflow: StudyWorkflowService = Depends(get_workflow),
) -> list[AssignmentOut]:
    return await workflow.list_assignments(study_id)


@router.patch(
    "/assignments/{assignment_id}",
    response_model=AssignmentOut,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_assignment(
    assignment_id: UUID,
    payload: AssignmentUpdate,
    workflow: StudyWorkflowService = Depends(get_workflow),
    actor_id: str | None = Depends(get_actor_id),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> AssignmentOut:
    return await workflow.update_assignment(
        assignment_id, payload, actor_id=actor_id, request_meta=request_meta
    )


@router.delete(
    "/assignments/{assignment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_assignment(
    assignment_id: UUID,
    workflow: StudyWorkflowService = Depends(get_workflow),
    actor_id: str | None = Depends(get_actor_id),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> Response:
    await workflow.delete_assignment(assignment_id, actor_id=actor_id, request_meta=request_meta)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
