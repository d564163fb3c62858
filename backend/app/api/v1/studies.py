from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.deps import get_actor_id, get_request_meta, get_workflow
from app.core.audit import RequestMeta
from app.db.enums import StudyStatus
from app.schemas.studies import StudyCreate, StudyDetailOut, StudyOut, StudyUpdate
from app.services.workflow import StudyWorkflowService

router = APIRouter()


@router.post(
    "/studies",
    response_model=StudyDetailOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_study(
    payload: StudyCreate,
    workflow: StudyWorkflowService = Depends(get_workflow),
    actor_id: str | None = Depends(get_actor_id),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> StudyDetailOut:
    """Создание исследования вместе с регуляторной подачей и чек-листом."""
    return await workflow.create_study(payload, actor_id=actor_id, request_meta=request_meta)


@router.get(
    "/studies",
    response_model=list[StudyOut],
)
async def list_studies(
    pi_id: str | None = Query(None),
    status_filter: StudyStatus | None = Query(None, alias="status"),
    search: str | None = Query(None),
    workflow: StudyWorkflowService = Depends(get_workflow),
) -> list[StudyOut]:
    """Список исследований (без мягко удалённых)."""
    return await workflow.list_studies(pi_id=pi_id, status=status_filter, search=search)


@router.get(
    "/studies/{study_id}",
    response_model=StudyDetailOut,
)
async def get_study(
    study_id: UUID,
    workflow: StudyWorkflowService = Depends(get_workflow),
) -> StudyDetailOut:
    """Получение исследования по ID."""
    return await workflow.get_study(study_id)


@router.patch(
    "/studies/{study_id}",
    response_model=StudyDetailOut,
)
async def update_study(
    study_id: UUID,
    payload: StudyUpdate,
    workflow: StudyWorkflowService = Depends(get_workflow),
    actor_id: str | None = Depends(get_actor_id),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> StudyDetailOut:
    return await workflow.update_study(
        study_id, payload, actor_id=actor_id, request_meta=request_meta
    )


@router.delete(
    "/studies/{study_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_study(
    study_id: UUID,
    workflow: StudyWorkflowService = Depends(get_workflow),
    actor_id: str | None = Depends(get_actor_id),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> Response:
    """Мягкое удаление исследования."""
    await workflow.soft_delete_study(study_id, actor_id=actor_id, request_meta=request_meta)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
