"""Windows DHCP server client: reservations, scope clients and the MAC filter."""

from __future__ import annotations

import logging

from hostreg.adapters.remoting import PowerShellRunner, ps_quote
from hostreg.exceptions import ValidationError
from hostreg.models.dhcp import FilterEntry, ScopeClient
from hostreg.models.host import canonical_mac

logger = logging.getLogger(__name__)

_BACKEND = "dhcp"


def _mac_or_none(raw: str | None) -> str | None:
    """Canonical MAC, or None for wildcard/malformed filter entries."""
    if not raw:
        return None
    try:
        return canonical_mac(raw)
    except ValidationError:
        return None


class DhcpServerClient:
    """Reservation and filter management on one Windows DHCP server."""

    def __init__(self, runner: PowerShellRunner, server: str):
        self._runner = runner
        self._server = ps_quote(server)

    # -- Filter ---------------------------------------------------------------

    def add_allow(self, hardware_address: str, description: str) -> None:
        self._runner.run(
            f"Add-DhcpServerv4Filter -ComputerName {self._server} -List Allow "
            f"-MacAddress {ps_quote(hardware_address)} -Description {ps_quote(description)} "
            "-ErrorAction Stop",
            backend=_BACKEND,
        )

    def delete_entry(self, hardware_address: str) -> bool:
        """Delete every filter entry (allow or deny) for the address."""
        marker = self._runner.run_marker(
            f"$f = Get-DhcpServerv4Filter -ComputerName {self._server} "
            f"| Where-Object {{ $_.MacAddress -eq {ps_quote(hardware_address)} }}\n"
            f"if ($f) {{ $f | ForEach-Object {{ Remove-DhcpServerv4Filter -ComputerName {self._server} "
            "-MacAddress $_.MacAddress -ErrorAction Stop }; 'deleted' } else { 'missing' }",
            backend=_BACKEND,
        )
        return marker == "deleted"

    def dump_all(self) -> list[FilterEntry]:
        """Return the whole filter table in server order.

        Wildcard and malformed entries are skipped.
        """
        rows = self._runner.run_json(
            f"Get-DhcpServerv4Filter -ComputerName {self._server} "
            "| Select-Object MacAddress, @{n='List';e={[string]$_.List}}, Description "
            "| ConvertTo-Json -Compress",
            backend=_BACKEND,
        )
        entries: list[FilterEntry] = []
        for row in rows:
            mac = _mac_or_none(row.get("MacAddress"))
            disposition = str(row.get("List") or "").lower()
            if mac is None or disposition not in ("allow", "deny"):
                logger.debug("Skipping filter row %r", row)
                continue
            entries.append(
                FilterEntry(
                    hardware_address=mac,
                    disposition=disposition,
                    description=row.get("Description") or "",
                )
            )
        return entries

    # -- Reservations ---------------------------------------------------------

    def create(self, scope: str, address: str, hardware_address: str, name: str, description: str) -> None:
        self._runner.run(
            f"Add-DhcpServerv4Reservation -ComputerName {self._server} -ScopeId {ps_quote(scope)} "
            f"-IPAddress {ps_quote(address)} -ClientId {ps_quote(hardware_address)} "
            f"-Name {ps_quote(name)} -Description {ps_quote(description)} -ErrorAction Stop",
            backend=_BACKEND,
        )

    def delete(self, scope: str, address: str) -> bool:
        marker = self._runner.run_marker(
            f"$r = Get-DhcpServerv4Reservation -ComputerName {self._server} -ScopeId {ps_quote(scope)} "
            "-ErrorAction SilentlyContinue "
            f"| Where-Object {{ $_.IPAddress.IPAddressToString -eq {ps_quote(address)} }}\n"
            f"if ($r) {{ Remove-DhcpServerv4Reservation -ComputerName {self._server} "
            f"-IPAddress {ps_quote(address)} -ErrorAction Stop; 'deleted' }} else {{ 'missing' }}",
            backend=_BACKEND,
        )
        return marker == "deleted"

    def list_clients(self, scope: str) -> list[ScopeClient]:
        rows = self._runner.run_json(
            f"Get-DhcpServerv4Lease -ComputerName {self._server} -ScopeId {ps_quote(scope)} -AllLeases "
            "| Select-Object @{n='IPAddress';e={$_.IPAddress.IPAddressToString}}, ClientId, HostName "
            "| ConvertTo-Json -Compress",
            backend=_BACKEND,
        )
        clients: list[ScopeClient] = []
        for row in rows:
            mac = _mac_or_none(row.get("ClientId"))
            if mac is None or not row.get("IPAddress"):
                continue
            clients.append(
                ScopeClient(address=row["IPAddress"], hardware_address=mac, name=row.get("HostName") or "")
            )
        return clients
