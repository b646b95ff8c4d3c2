"""Engine error kinds and their translation into HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger


class LeadEngineError(Exception):
    """Base class for every failure the engine reports to its callers."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Lead engine failure."

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class FormatError(LeadEngineError):
    """The document carries no assignment-mode marker or cannot be read."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid file format. Expected "Random Data" or "Data From Page".'


class EmptyResultError(LeadEngineError):
    """A marker was found but no usable phone numbers followed it."""

    status_code = 422
    default_detail = "No phone numbers were found in the file."


class PersistenceError(LeadEngineError):
    """Any storage failure, surfaced after compensation where one applies."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "The data store rejected the operation."


class NotFoundError(LeadEngineError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Record not found."


class ConflictError(LeadEngineError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Record has been updated by someone else. Please reload and try again."


def register_exception_handlers(app: FastAPI) -> None:
    """Map engine errors onto JSON error responses."""

    async def lead_engine_error_handler(request: Request, exc: LeadEngineError):
        logger.bind(
            path=str(request.url.path),
            error=type(exc).__name__,
            status=exc.status_code,
        ).warning("lead_engine_error")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    app.add_exception_handler(LeadEngineError, lead_engine_error_handler)
