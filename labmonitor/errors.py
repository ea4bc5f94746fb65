"""Structured error helpers and the engine's error taxonomy."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse


def build_error_payload(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppError(Exception):
    """Application-scoped error for standardized API responses."""

    def __init__(self, status_code: int, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.payload = build_error_payload(code, message, details)


class NotFoundError(AppError):
    """Referenced task, schedule, alert or person does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            status.HTTP_404_NOT_FOUND,
            "NOT_FOUND",
            f"{entity} {entity_id} not found",
            {"entity": entity, "id": str(entity_id)},
        )
        self.entity = entity
        self.entity_id = entity_id


class InvalidFormatError(AppError):
    """Malformed input value, e.g. a time string that is not HH:MM."""

    def __init__(self, message: str, value: Any = None):
        super().__init__(
            422,
            "INVALID_FORMAT",
            message,
            {"value": value} if value is not None else None,
        )


class StoreUnavailableError(AppError):
    """Transient failure or timeout talking to the backing store."""

    def __init__(self, message: str = "Backing store unavailable"):
        super().__init__(status.HTTP_503_SERVICE_UNAVAILABLE, "STORE_UNAVAILABLE", message)


class DuplicateAlertError(Exception):
    """An unresolved alert already exists for the same type and entity.

    Raised by the alert repository when the dedup index rejects an insert.
    Callers treat it as success.
    """

    def __init__(self, alert_type: str, dedup_key: str):
        super().__init__(f"unresolved {alert_type} alert already exists for {dedup_key}")
        self.alert_type = alert_type
        self.dedup_key = dedup_key


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload)



async def store_unavailable_handler(_: Request, exc: Exception) -> JSONResponse:
    """Connection-level database failures surface as 503."""
    error = StoreUnavailableError()
    return JSONResponse(status_code=error.status_code, content=error.payload)
