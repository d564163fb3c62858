from __future__ import annotations

from app.schemas.assignments import AssignmentCreate, AssignmentOut, AssignmentUpdate
from app.schemas.audit import AuditEventOut
from app.schemas.common import ErrorResponse
from app.schemas.reference import PersonOut, RoleOut, StudyTypeOut
from app.schemas.studies import StudyCreate, StudyDetailOut, StudyOut, StudyUpdate
from app.schemas.submissions import (
    StatusHistoryEntryOut,
    SubmissionOut,
    SubmissionPathUpdate,
    SubmissionTransitionRequest,
)
from app.schemas.tasks import TaskOut, TaskStatusUpdate

__all__ = [
    "ErrorResponse",
    "StudyCreate",
    "StudyUpdate",
    "StudyOut",
    "StudyDetailOut",
    "StatusHistoryEntryOut",
    "SubmissionOut",
    "SubmissionTransitionRequest",
    "SubmissionPathUpdate",
    "AssignmentCreate",
    "AssignmentUpdate",
    "AssignmentOut",
    "TaskOut",
    "TaskStatusUpdate",
    "AuditEventOut",
    "RoleOut",
    "PersonOut",
    "StudyTypeOut",
]
