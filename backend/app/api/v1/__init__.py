from fastapi import APIRouter

from app.api.v1 import assignments, audit, reference, studies, submissions, tasks

router = APIRouter()

router.include_router(studies.router, tags=["studies"])
router.include_router(submissions.router, tags=["submissions"])
router.include_router(assignments.router, tags=["assignments"])
router.include_router(tasks.router, tags=["tasks"])
router.include_router(audit.router, tags=["audit"])
router.include_router(reference.router, tags=["reference"])
