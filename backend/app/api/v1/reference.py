from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps import get_workflow
from app.schemas.reference import PersonOut, RoleOut, StudyTypeOut
from app.services.workflow import StudyWorkflowService

router = APIRouter(prefix="/meta")


@router.get("/study-types", response_model=list[StudyTypeOut])
async def list_study_types(
    workflow: StudyWorkflowService = Depends(get_workflow),
) -> list[StudyTypeOut]:
    """Типы исследований (значения type_id) с шаблонами чек-листов."""
    return await workflow.list_study_types()


@router.get("/people", response_model=list[PersonOut])
async def list_people(
    workflow: StudyWorkflowService = Depends(get_workflow),
) -> list[PersonOut]:
    return await workflow.list_people()


@router.get("/roles", response_model=list[RoleOut])
async def list_roles(
    workflow: StudyWorkflowService = Depends(get_workflow),
) -> list[RoleOut]:
    return await workflow.list_roles()
