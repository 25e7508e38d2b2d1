"""Custom exception classes and handlers."""

from typing import Any

from fastapi import FastAPI, status
from fastapi.responses import JSONResponse

from src.shared.schemas import ResponseEnvelope


class BusinessLogicError(Exception):
    """Raised for domain-specific validation errors."""

    def __init__(self, detail: str, status_code: int = status.HTTP_422_UNPROCESSABLE_CONTENT):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class SchedulingConflictError(BusinessLogicError):
    """A proposed assignment failed validation; carries the full report."""

    def __init__(self, detail: str, report: dict[str, Any] | None = None):
        super().__init__(detail, status_code=status.HTTP_409_CONFLICT)
        self.report = report


class PersistenceError(BusinessLogicError):
    """A write step failed; the session was rolled back before raising."""

    def __init__(self, detail: str):
        super().__init__(detail, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI app."""

    @app.exception_handler(BusinessLogicError)
    async def _business_error_handler(_: FastAPI, exc: BusinessLogicError):
        report = exc.report if isinstance(exc, SchedulingConflictError) else None
        envelope = ResponseEnvelope[dict[str, Any]].failure(exc.detail, report)
        return JSONResponse(envelope.model_dump(exclude_none=True), status_code=exc.status_code)
