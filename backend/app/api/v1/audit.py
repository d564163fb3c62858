from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_workflow
from app.schemas.audit import AuditEventOut
from app.services.workflow import StudyWorkflowService

router = APIRouter()


@router.get(
    "/audit-events",
    response_model=list[AuditEventOut],
)
async def list_audit_events(
    entity_type: str | None = Query(None),
    entity_id: str | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    workflow: StudyWorkflowService = Depends(get_workflow),
) -> list[AuditEventOut]:
    """Журнал аудита, новые события первыми."""
    events = await workflow.list_audit_events(entity_type, entity_id, limit)
    return [AuditEventOut.model_validate(e) for e in events]
