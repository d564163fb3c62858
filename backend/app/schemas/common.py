from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Стандартный формат ошибки."""

    detail: str
    code: str
    details: dict[str, Any] = {}
