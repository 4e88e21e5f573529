"""Health and readiness endpoints."""

from __future__ import annotations

import os

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from hostreg.models.health import HealthResponse, ReadyResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    from hostreg.main import get_uptime

    settings = request.app.state.settings
    status = "ok" if request.app.state.orchestrator is not None else "degraded"

    return HealthResponse(
        status=status,
        version=request.app.state.version,
        uptime=get_uptime(),
        domain=settings.domain,
    )


@router.get("/ready")
async def ready(request: Request) -> JSONResponse:
    settings = request.app.state.settings

    issues = []
    artifact_dir = settings.allow_list_path.parent
    if not artifact_dir.is_dir():
        issues.append(f"allow-list directory not found: {artifact_dir}")
    elif not os.access(artifact_dir, os.W_OK):
        issues.append(f"allow-list directory not writable: {artifact_dir}")
    if not settings.winrm_username:
        issues.append("HOSTREG_WINRM_USERNAME is not set")

    if issues:
        body = ReadyResponse(ready=False, reason="; ".join(issues))
        return JSONResponse(status_code=503, content=body.model_dump())

    return JSONResponse(status_code=200, content=ReadyResponse(ready=True).model_dump())
