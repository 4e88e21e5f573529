"""Directory identity object model."""

from __future__ import annotations

from pydantic import BaseModel


class IdentityObject(BaseModel):
    name: str
    dns_host_name: str = ""
    container: str = ""
    operating_system: str = ""
