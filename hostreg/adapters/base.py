"""Capability interfaces the orchestrator depends on."""

from __future__ import annotations

from typing import Protocol

from hostreg.models.dhcp import FilterEntry, ScopeClient
from hostreg.models.directory import IdentityObject


class FilterClient(Protocol):
    def add_allow(self, hardware_address: str, description: str) -> None: ...

    def delete_entry(self, hardware_address: str) -> bool: ...

    def dump_all(self) -> list[FilterEntry]: ...


class ReservationClient(Protocol):
    def create(self, scope: str, address: str, hardware_address: str, name: str, description: str) -> None: ...

    def delete(self, scope: str, address: str) -> bool: ...

    def list_clients(self, scope: str) -> list[ScopeClient]: ...


class NameRecordClient(Protocol):
    def resolve_forward(self, name: str) -> str | None: ...

    def resolve_reverse(self, address: str) -> str | None: ...

    def create_a(self, fqdn: str, address: str, zone: str) -> None: ...

    def create_ptr(self, fqdn: str, address: str, reverse_zone: str) -> None: ...

    def delete_a(self, fqdn: str, zone: str) -> bool: ...

    def delete_ptr(self, address: str, reverse_zone: str) -> bool: ...


class ZoneInspector(Protocol):
    def is_stub_zone(self, zone: str) -> bool: ...


class DirectoryClient(Protocol):
    def exists(self, name: str) -> bool: ...

    def create(self, name: str, container: str, dns_host_name: str) -> IdentityObject: ...

    def delete_recursive(self, name: str) -> bool: ...

    def list_containers(self) -> list[str]: ...

    def list_hosts(self, os_filter: str | None = None) -> list[IdentityObject]: ...
