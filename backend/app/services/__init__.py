from __future__ import annotations

from app.services.effort import EffortConflictValidator
from app.services.submission_state_machine import SubmissionStateMachine
from app.services.workflow import StudyWorkflowService

__all__ = [
    "SubmissionStateMachine",
    "EffortConflictValidator",
    "StudyWorkflowService",
]
