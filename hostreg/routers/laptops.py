"""Laptop pool allocation endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from hostreg.dependencies import get_orchestrator
from hostreg.models.host import LaptopRequest
from hostreg.routers.hosts import result_response
from hostreg.services.prompts import StaticPrompt

router = APIRouter(prefix="/api/v1", tags=["laptops"])


@router.post("/laptops", status_code=201)
def allocate_laptop(body: LaptopRequest, orchestrator=Depends(get_orchestrator)) -> JSONResponse:
    result = orchestrator.allocate_laptop_slot(
        body.name,
        body.hardware_address,
        prompt=StaticPrompt(container=body.container),
    )
    return result_response(result, 201)
