"""Host registration, removal and listing endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from hostreg.dependencies import get_orchestrator
from hostreg.exceptions import ConfirmationDeclinedError
from hostreg.models.directory import IdentityObject
from hostreg.models.host import HostRequest
from hostreg.models.result import OperationResult
from hostreg.services.prompts import StaticPrompt

router = APIRouter(prefix="/api/v1", tags=["hosts"])


def result_response(result: OperationResult, success_status: int = 200) -> JSONResponse:
    """Itemized result; 207 when any step failed."""
    return JSONResponse(
        status_code=success_status if result.ok else 207,
        content=result.summary(),
    )


@router.post("/hosts", status_code=201)
def add_host(body: HostRequest, orchestrator=Depends(get_orchestrator)) -> JSONResponse:
    prompt = StaticPrompt(container=body.container) if body.container else StaticPrompt()
    result = orchestrator.add_host(body, prompt=prompt)
    return result_response(result, 201)


@router.delete("/hosts/{name}")
def remove_host(
    name: str,
    confirm: bool = Query(False, description="Must be true; removal is destructive"),
    orchestrator=Depends(get_orchestrator),
) -> JSONResponse:
    if not confirm:
        raise ConfirmationDeclinedError(f"Removing {name} requires confirm=true")
    result = orchestrator.remove_host(name, require_confirmation=False)
    return result_response(result)


@router.get("/hosts", response_model=list[IdentityObject])
def list_hosts(
    os: str | None = Query(None, description="Substring of the operating system name"),
    orchestrator=Depends(get_orchestrator),
) -> list[IdentityObject]:
    return orchestrator.list_hosts(os)
