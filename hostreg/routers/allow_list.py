"""Allow-list rebuild endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from hostreg.dependencies import get_orchestrator, get_settings
from hostreg.models.dhcp import AllowListResponse

router = APIRouter(prefix="/api/v1", tags=["allow-list"])


@router.post("/allow-list:rebuild", response_model=AllowListResponse)
def rebuild_allow_list(
    orchestrator=Depends(get_orchestrator),
    settings=Depends(get_settings),
) -> AllowListResponse:
    entries = orchestrator.rebuild_allow_list()
    return AllowListResponse(path=str(settings.allow_list_path), entries=entries)
