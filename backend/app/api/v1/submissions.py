from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.deps import get_actor_id, get_request_meta, get_workflow
from app.core.audit import RequestMeta
from app.schemas.common import ErrorResponse
from app.schemas.submissions import (
    SubmissionOut,
    SubmissionPathUpdate,
    SubmissionTransitionRequest,
)
from app.services.workflow import StudyWorkflowService

router = APIRouter()


@router.get(
    "/studies/{study_id}/submission",
    response_model=SubmissionOut,
)
async def get_submission(
    study_id: UUID,
    workflow: StudyWorkflowService = Depends(get_workflow),
) -> SubmissionOut:
    """Подача исследования с полной историей статусов."""
    return await workflow.get_submission(study_id)


@router.post(
    "/studies/{study_id}/submission/transitions",
    response_model=SubmissionOut,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def transition_submission(
    study_id: UUID,
    payload: SubmissionTransitionRequest,
    workflow: StudyWorkflowService = Depends(get_workflow),
    actor_id: str | None = Depends(get_actor_id),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> SubmissionOut:
    """
    Переход статуса подачи.

    Проверка ролей вызывающего выполняется до этого слоя;
    здесь проверяется только допустимость перехода.
    """
    return await workflow.transition_submission(
        study_id, payload, actor_id=actor_id, request_meta=request_meta
    )


@router.put(
    "/studies/{study_id}/submission/path",
    response_model=SubmissionOut,
)
async def update_submission_path(
    study_id: UUID,
    payload: SubmissionPathUpdate,
    workflow: StudyWorkflowService = Depends(get_workflow),
    actor_id: str | None = Depends(get_actor_id),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> SubmissionOut:
    return await workflow.update_submission_path(
        study_id, payload.path, actor_id=actor_id, request_meta=request_meta
    )
