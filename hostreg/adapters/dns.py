"""Windows DNS server client: A/PTR records and zone inspection."""

from __future__ import annotations

import logging

from hostreg.adapters.remoting import PowerShellRunner, ps_quote
from hostreg.adapters.resolver import SystemResolver
from hostreg.models.host import ptr_name_of

logger = logging.getLogger(__name__)

_BACKEND = "dns"


def _relative(fqdn: str, zone: str) -> str:
    """Record name of *fqdn* inside *zone* (``pc01.corp.lan`` in ``corp.lan`` -> ``pc01``)."""
    fqdn = fqdn.rstrip(".").lower()
    suffix = "." + zone.rstrip(".").lower()
    if fqdn.endswith(suffix):
        return fqdn[: -len(suffix)]
    return fqdn


class DnsServerClient:
    """A/PTR record management on one Windows DNS server.

    Lookups are delegated to *resolver* so they reflect what clients see,
    including zones the server only holds as stubs.
    """

    def __init__(self, runner: PowerShellRunner, server: str, resolver: SystemResolver):
        self._runner = runner
        self._server = ps_quote(server)
        self._resolver = resolver

    def resolve_forward(self, name: str) -> str | None:
        return self._resolver.forward(name)

    def resolve_reverse(self, address: str) -> str | None:
        return self._resolver.reverse(address)

    def create_a(self, fqdn: str, address: str, zone: str) -> None:
        self._runner.run(
            f"Add-DnsServerResourceRecordA -ComputerName {self._server} -ZoneName {ps_quote(zone)} "
            f"-Name {ps_quote(_relative(fqdn, zone))} -IPv4Address {ps_quote(address)} -ErrorAction Stop",
            backend=_BACKEND,
        )

    def create_ptr(self, fqdn: str, address: str, reverse_zone: str) -> None:
        self._runner.run(
            f"Add-DnsServerResourceRecordPtr -ComputerName {self._server} -ZoneName {ps_quote(reverse_zone)} "
            f"-Name {ps_quote(ptr_name_of(address))} -PtrDomainName {ps_quote(fqdn.rstrip('.') + '.')} "
            "-ErrorAction Stop",
            backend=_BACKEND,
        )

    def delete_a(self, fqdn: str, zone: str) -> bool:
        return self._delete_record(zone, _relative(fqdn, zone), "A")

    def delete_ptr(self, address: str, reverse_zone: str) -> bool:
        return self._delete_record(reverse_zone, ptr_name_of(address), "Ptr")

    def _delete_record(self, zone: str, name: str, rr_type: str) -> bool:
        common = f"-ComputerName {self._server} -ZoneName {ps_quote(zone)} -Name {ps_quote(name)} -RRType {rr_type}"
        marker = self._runner.run_marker(
            f"$rr = Get-DnsServerResourceRecord {common} -ErrorAction SilentlyContinue\n"
            f"if ($rr) {{ Remove-DnsServerResourceRecord {common} -Force -ErrorAction Stop; 'deleted' }} "
            "else { 'missing' }",
            backend=_BACKEND,
        )
        return marker == "deleted"

    def is_stub_zone(self, zone: str) -> bool:
        """True when the zone's records are owned by another name system.

        A zone the server does not know is treated as locally authoritative.
        """
        rows = self._runner.run_json(
            f"Get-DnsServerZone -ComputerName {self._server} -Name {ps_quote(zone)} "
            "-ErrorAction SilentlyContinue | Select-Object ZoneName, ZoneType | ConvertTo-Json -Compress",
            backend=_BACKEND,
        )
        if not rows:
            logger.warning("Zone %s not found on DNS server", zone)
            return False
        return str(rows[0].get("ZoneType", "")).lower() == "stub"
