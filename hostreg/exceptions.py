"""Custom exceptions and FastAPI exception handlers."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base application error."""

    def __init__(self, error: str, message: str, status_code: int = 400, details: dict | None = None):
        self.error = error
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(AppError):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__("VALIDATION_ERROR", message, 400, details)


class ConflictError(AppError):
    """Name, address, identity object or filter entry already taken."""

    def __init__(self, message: str, owner: str | None = None):
        super().__init__("CONFLICT", message, 409, {"owner": owner} if owner else None)
        self.owner = owner


class PreconditionError(AppError):
    """An out-of-band prerequisite (external PTR record) is missing or wrong."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("PRECONDITION_FAILED", message, 412, details)


class NotFoundError(AppError):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__("NOT_FOUND", message, 404, details)


class PoolExhaustedError(AppError):
    def __init__(self, message: str = "All laptop pool slots are in use"):
        super().__init__("POOL_EXHAUSTED", message, 409)


class BackendUnavailableError(AppError):
    """A backend call could not complete."""

    def __init__(self, backend: str, message: str):
        super().__init__("BACKEND_UNAVAILABLE", f"{backend}: {message}", 502, {"backend": backend})
        self.backend = backend


class ConfirmationDeclinedError(AppError):
    def __init__(self, message: str = "Removal was not confirmed"):
        super().__init__("CONFIRMATION_REQUIRED", message, 428)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""

    @app.exception_handler(AppError)
    async def _app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
        body: dict = {"error": exc.error, "message": exc.message}
        if exc.details:
            body["details"] = exc.details
        return JSONResponse(status_code=exc.status_code, content=body)
