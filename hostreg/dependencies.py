"""FastAPI dependency injection via Depends()."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from hostreg.config import Settings
    from hostreg.services.orchestrator import HostLifecycleOrchestrator


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_orchestrator(request: Request) -> HostLifecycleOrchestrator:
    return request.app.state.orchestrator
