"""Error response model."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

ErrorCode = Literal[
    "VALIDATION_ERROR",
    "CONFLICT",
    "PRECONDITION_FAILED",
    "NOT_FOUND",
    "POOL_EXHAUSTED",
    "BACKEND_UNAVAILABLE",
    "CONFIRMATION_REQUIRED",
    "UNAUTHORIZED",
    "FORBIDDEN",
]


class ErrorResponse(BaseModel):
    error: ErrorCode
    message: str
    details: dict | None = None
