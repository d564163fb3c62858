from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DatabaseError, IntegrityError

from app.core.logging import logger


class AppError(Exception):
    """Базовое исключение приложения с кодом ошибки."""

    status_code = 400

    def __init__(
        self, message: str, code: str = "internal_error", details: dict[str, Any] | None = None
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class NotFoundError(AppError):
    """Ресурс не найден (или исследование мягко удалено)."""

    status_code = 404

    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(
            message=f"{resource} с id {resource_id} не найден",
            code="not_found",
            details={"resource": resource, "resource_id": resource_id},
        )


class ValidationError(AppError):
    """Ошибка валидации данных."""

    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="validation_error", details=details)


class ConflictError(AppError):
    """Ошибка конфликта с текущим состоянием ресурса."""

    status_code = 409

    def __init__(
        self, message: str, code: str = "conflict", details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message=message, code=code, details=details)


class InvalidTransitionError(ConflictError):
    """Целевой статус подачи недостижим из текущего."""

    def __init__(self, from_status: str, to_status: str) -> None:
        super().__init__(
            message=f"Переход статуса подачи из {from_status} в {to_status} запрещён",
            code="invalid_transition",
            details={"from_status": from_status, "to_status": to_status},
        )


class EffortOverCommittedError(ConflictError):
    """Назначение превышает допустимую загрузку сотрудника на пересекающемся интервале."""

    def __init__(
        self,
        conflicting_assignment_id: str,
        total_effort: str,
        at_date: str,
        capacity: int | str,
        details: dict[str, Any] | None = None,
    ) -> None:
        payload = {
            "conflicting_assignment_id": conflicting_assignment_id,
            "total_effort": total_effort,
            "at_date": at_date,
            "capacity": str(capacity),
        }
        payload.update(details or {})
        super().__init__(
            message=(
                f"Назначение превышает {capacity}% загрузки на {at_date} "
                f"(конфликт с назначением {conflicting_assignment_id})"
            ),
            code="effort_over_committed",
            details=payload,
        )
        self.conflicting_assignment_id = conflicting_assignment_id


class AuditWriteError(AppError):
    """Запись аудита не может быть сериализована или сохранена; транзакция откатывается."""

    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="audit_write_failure", details=details)


def configure_error_handlers(app: FastAPI) -> None:
    """Настройка обработчиков ошибок для FastAPI."""

    @app.exception_handler(AppError)
    async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{exc.code}: {exc.message} {exc.details}", exc_info=exc)
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "detail": "Internal server error",
                    "code": exc.code,
                    "details": {},
                },
            )

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.message,
                "code": exc.code,
                "details": exc.details,
            },
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(_: Request, exc: IntegrityError) -> JSONResponse:
        """Обработка ошибок целостности базы данных."""
        logger.error(f"IntegrityError: {exc}", exc_info=True)
        error_msg = str(exc.orig) if hasattr(exc, "orig") else str(exc)

        if "foreign key" in error_msg.lower():
            return JSONResponse(
                status_code=400,
                content={
                    "detail": "Нарушение внешнего ключа. Проверьте существование связанных ресурсов.",
                    "code": "validation_error",
                    "details": {},
                },
            )
        elif "unique" in error_msg.lower() or "duplicate" in error_msg.lower():
            return JSONResponse(
                status_code=409,
                content={
                    "detail": "Нарушение уникальности. Ресурс с такими данными уже существует.",
                    "code": "conflict",
                    "details": {},
                },
            )
        else:
            return JSONResponse(
                status_code=400,
                content={
                    "detail": "Ошибка целостности данных.",
                    "code": "validation_error",
                    "details": {},
                },
            )

    @app.exception_handler(DatabaseError)
    async def database_error_handler(_: Request, exc: DatabaseError) -> JSONResponse:
        """Обработка общих ошибок базы данных."""
        logger.error(f"DatabaseError: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Ошибка базы данных",
                "code": "database_error",
                "details": {},
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
        """Обработка необработанных исключений."""
        logger.error(f"Unhandled error: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "code": "internal_error",
                "details": {},
            },
        )
