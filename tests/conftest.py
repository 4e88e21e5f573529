"""Shared test fixtures: an in-memory stand-in for DHCP, DNS and the directory."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from hostreg.config import Settings
from hostreg.exceptions import BackendUnavailableError
from hostreg.models.dhcp import FilterEntry, ReservationRecord, ScopeClient
from hostreg.models.directory import IdentityObject
from hostreg.models.host import ptr_name_of, reverse_zone_of
from hostreg.services.allow_list import AllowListBuilder
from hostreg.services.locks import HostLockManager
from hostreg.services.orchestrator import HostLifecycleOrchestrator
from hostreg.services.prompts import StaticPrompt

DOMAIN = "corp.example.com"
BASE = "DC=corp,DC=example,DC=com"
WORKSTATIONS = f"OU=Workstations,OU=Computers,{BASE}"
LAPTOPS = f"OU=Laptops,OU=Computers,{BASE}"
TEMP = f"OU=Temp,OU=Computers,{BASE}"
FALLBACK = f"CN=Computers,{BASE}"
TODAY = date(2026, 10, 18)

MUTATIONS = {
    "dhcp.add_allow",
    "dhcp.delete_entry",
    "dhcp.create",
    "dhcp.delete",
    "dns.create_a",
    "dns.create_ptr",
    "dns.delete_a",
    "dns.delete_ptr",
    "directory.create",
    "directory.delete_recursive",
}


class FakeNetwork:
    """Backend state shared by the fake clients, plus a call log."""

    def __init__(self):
        self.a_records: dict[str, str] = {}  # fqdn -> address
        self.ptr_records: dict[str, str] = {}  # address -> fqdn (local zones)
        self.external_ptr: dict[str, str] = {}  # address -> fqdn (stub zones)
        self.stub_zones: set[str] = set()
        self.reservations: dict[tuple[str, str], ReservationRecord] = {}
        self.filters: list[FilterEntry] = []
        self.objects: dict[str, IdentityObject] = {}
        self.containers: list[str] = [WORKSTATIONS, LAPTOPS, TEMP]
        self.calls: list[tuple[str, tuple]] = []
        self.fail_on: set[str] = set()

    def _call(self, method: str, *args) -> None:
        self.calls.append((method, args))
        if method in self.fail_on:
            raise BackendUnavailableError(method.split(".")[0], f"{method} failed")

    def mutations(self) -> list[str]:
        return [m for m, _ in self.calls if m in MUTATIONS]

    def snapshot(self) -> tuple:
        return (
            dict(self.a_records),
            dict(self.ptr_records),
            dict(self.reservations),
            [e.model_copy() for e in self.filters],
            dict(self.objects),
        )


class FakeDhcp:
    def __init__(self, net: FakeNetwork):
        self.net = net

    def add_allow(self, hardware_address, description):
        self.net._call("dhcp.add_allow", hardware_address, description)
        self.net.filters.append(
            FilterEntry(hardware_address=hardware_address, disposition="allow", description=description)
        )

    def delete_entry(self, hardware_address):
        self.net._call("dhcp.delete_entry", hardware_address)
        before = len(self.net.filters)
        self.net.filters = [e for e in self.net.filters if e.hardware_address != hardware_address]
        return len(self.net.filters) != before

    def dump_all(self):
        self.net._call("dhcp.dump_all")
        return list(self.net.filters)

    def create(self, scope, address, hardware_address, name, description):
        self.net._call("dhcp.create", scope, address, hardware_address, name, description)
        self.net.reservations[(scope, address)] = ReservationRecord(
            scope=scope, address=address, hardware_address=hardware_address, name=name, description=description
        )

    def delete(self, scope, address):
        self.net._call("dhcp.delete", scope, address)
        return self.net.reservations.pop((scope, address), None) is not None

    def list_clients(self, scope):
        self.net._call("dhcp.list_clients", scope)
        return [
            ScopeClient(address=r.address, hardware_address=r.hardware_address, name=r.name)
            for (s, _), r in self.net.reservations.items()
            if s == scope
        ]


class FakeDns:
    def __init__(self, net: FakeNetwork):
        self.net = net

    def _qualify(self, name):
        return name if "." in name else f"{name}.{DOMAIN}"

    def resolve_forward(self, name):
        self.net._call("dns.resolve_forward", name)
        return self.net.a_records.get(self._qualify(name.lower()))

    def resolve_reverse(self, address):
        self.net._call("dns.resolve_reverse", address)
        if reverse_zone_of(address) in self.net.stub_zones:
            return self.net.external_ptr.get(address)
        return self.net.ptr_records.get(address)

    def create_a(self, fqdn, address, zone):
        self.net._call("dns.create_a", fqdn, address, zone)
        self.net.a_records[fqdn] = address

    def create_ptr(self, fqdn, address, reverse_zone):
        self.net._call("dns.create_ptr", fqdn, address, reverse_zone)
        assert reverse_zone == reverse_zone_of(address)
        assert ptr_name_of(address)
        self.net.ptr_records[address] = fqdn

    def delete_a(self, fqdn, zone):
        self.net._call("dns.delete_a", fqdn, zone)
        return self.net.a_records.pop(fqdn, None) is not None

    def delete_ptr(self, address, reverse_zone):
        self.net._call("dns.delete_ptr", address, reverse_zone)
        return self.net.ptr_records.pop(address, None) is not None

    def is_stub_zone(self, zone):
        self.net._call("dns.is_stub_zone", zone)
        return zone in self.net.stub_zones


class FakeDirectory:
    def __init__(self, net: FakeNetwork):
        self.net = net

    def exists(self, name):
        self.net._call("directory.exists", name)
        return name in self.net.objects

    def create(self, name, container, dns_host_name):
        self.net._call("directory.create", name, container, dns_host_name)
        obj = IdentityObject(name=name, dns_host_name=dns_host_name, container=container)
        self.net.objects[name] = obj
        return obj

    def delete_recursive(self, name):
        self.net._call("directory.delete_recursive", name)
        return self.net.objects.pop(name, None) is not None

    def list_containers(self):
        self.net._call("directory.list_containers")
        return list(self.net.containers)

    def list_hosts(self, os_filter=None):
        self.net._call("directory.list_hosts", os_filter)
        hosts = sorted(self.net.objects.values(), key=lambda o: o.name)
        if os_filter:
            hosts = [h for h in hosts if os_filter.lower() in h.operating_system.lower()]
        return hosts


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        domain=DOMAIN,
        search_base=BASE,
        temporary_container=TEMP,
        fallback_container=FALLBACK,
        allow_list_path=tmp_path / "boot" / "allowed-macs.txt",
        winrm_username="svc-hostreg",
        bearer_tokens="test-token-alpha,test-token-beta",
        ip_allowlist="0.0.0.0/0,::0/0",
        log_level="WARNING",
    )


@pytest.fixture
def net() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def prompt() -> StaticPrompt:
    return StaticPrompt(container=WORKSTATIONS, confirm=True)


@pytest.fixture
def orchestrator(settings: Settings, net: FakeNetwork, prompt: StaticPrompt) -> HostLifecycleOrchestrator:
    dhcp = FakeDhcp(net)
    dns = FakeDns(net)
    return HostLifecycleOrchestrator(
        settings,
        directory=FakeDirectory(net),
        names=dns,
        reservations=dhcp,
        filters=dhcp,
        zones=dns,
        allow_list=AllowListBuilder(dhcp, settings.allow_list_path),
        prompt=prompt,
        locks=HostLockManager(wait_s=0.1),
        today=lambda: TODAY,
    )


@pytest.fixture
async def app_client(settings: Settings, orchestrator: HostLifecycleOrchestrator):
    """AsyncClient backed by the real FastAPI app and the fake backends."""
    from hostreg.main import create_app

    app = create_app(settings=settings, orchestrator=orchestrator)

    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": "Bearer test-token-alpha"}
