from __future__ import annotations

"""
Пакет ORM-моделей StudyFlow.

Модели сгруппированы по доменам:
- people: persons / roles / person_roles
- studies: study_types / studies / tasks
- submissions: regulatory_submissions / submission_status_history
- assignments: assignments
- audit: audit_events
"""

from .assignments import Assignment  # noqa: F401
from .audit import AuditEvent  # noqa: F401
from .people import Person, Role, person_roles  # noqa: F401
from .studies import Study, StudyType, Task  # noqa: F401
from .submissions import RegulatorySubmission, StatusHistoryEntry  # noqa: F401
