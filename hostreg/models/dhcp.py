"""DHCP reservation, lease and filter models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class ReservationRecord(BaseModel):
    scope: str
    address: str
    hardware_address: str
    name: str
    description: str = ""


class ScopeClient(BaseModel):
    """One row of a scope's client list (lease or reservation)."""

    address: str
    hardware_address: str
    name: str = ""


class FilterEntry(BaseModel):
    hardware_address: str
    disposition: Literal["allow", "deny"]
    description: str = ""


class AllowListResponse(BaseModel):
    path: str
    entries: list[str]
