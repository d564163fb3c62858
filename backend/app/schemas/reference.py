from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class RoleOut(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class PersonOut(BaseModel):
    """Сотрудник с общесистемными ролями; id используется в pi_id и person_id."""

    id: str
    full_name: str
    email: str | None
    roles: list[RoleOut]

    class Config:
        from_attributes = True


class StudyTypeOut(BaseModel):
    id: str
    name: str
    default_task_template: list[dict[str, Any]] | None

    class Config:
        from_attributes = True
