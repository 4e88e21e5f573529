"""Active Directory computer object client."""

from __future__ import annotations

import logging

from hostreg.adapters.remoting import PowerShellRunner, ps_quote
from hostreg.models.directory import IdentityObject

logger = logging.getLogger(__name__)

_BACKEND = "directory"
_PROPS = "Name, DNSHostName, DistinguishedName, OperatingSystem"


def _parent_of(dn: str) -> str:
    """Container of a distinguished name (everything after the first RDN)."""
    _, _, parent = dn.partition(",")
    return parent


def _to_identity(row: dict) -> IdentityObject:
    return IdentityObject(
        name=str(row.get("Name") or "").lower(),
        dns_host_name=row.get("DNSHostName") or "",
        container=_parent_of(row.get("DistinguishedName") or ""),
        operating_system=row.get("OperatingSystem") or "",
    )


class ActiveDirectoryClient:
    """Create, query and delete computer objects through the AD PowerShell module."""

    def __init__(self, runner: PowerShellRunner, server: str, search_base: str):
        self._runner = runner
        self._server = ps_quote(server)
        self._search_base = ps_quote(search_base)

    @staticmethod
    def _name_filter(name: str) -> str:
        return ps_quote(f'Name -eq "{name}"')

    def exists(self, name: str) -> bool:
        rows = self._runner.run_json(
            f"Get-ADComputer -Server {self._server} -Filter {self._name_filter(name)} "
            "| Select-Object Name | ConvertTo-Json -Compress",
            backend=_BACKEND,
        )
        return bool(rows)

    def create(self, name: str, container: str, dns_host_name: str) -> IdentityObject:
        rows = self._runner.run_json(
            f"New-ADComputer -Server {self._server} -Name {ps_quote(name)} "
            f"-SamAccountName {ps_quote(name.upper() + '$')} -DNSHostName {ps_quote(dns_host_name)} "
            f"-Path {ps_quote(container)} -PassThru -ErrorAction Stop "
            f"| Select-Object Name, DNSHostName, DistinguishedName | ConvertTo-Json -Compress",
            backend=_BACKEND,
        )
        if rows:
            return _to_identity(rows[0])
        return IdentityObject(name=name, dns_host_name=dns_host_name, container=container)

    def delete_recursive(self, name: str) -> bool:
        """Delete the computer object and any child objects beneath it."""
        marker = self._runner.run_marker(
            f"$c = Get-ADComputer -Server {self._server} -Filter {self._name_filter(name)}\n"
            f"if ($c) {{ Remove-ADObject -Server {self._server} -Identity $c.DistinguishedName "
            "-Recursive -Confirm:$false -ErrorAction Stop; 'deleted' } else { 'missing' }",
            backend=_BACKEND,
        )
        return marker == "deleted"

    def list_containers(self) -> list[str]:
        rows = self._runner.run_json(
            f"Get-ADOrganizationalUnit -Server {self._server} -SearchBase {self._search_base} -Filter * "
            "| Select-Object DistinguishedName | ConvertTo-Json -Compress",
            backend=_BACKEND,
        )
        return [row["DistinguishedName"] for row in rows if row.get("DistinguishedName")]

    def list_hosts(self, os_filter: str | None = None) -> list[IdentityObject]:
        ad_filter = "*"
        if os_filter:
            pattern = os_filter.replace('"', "")
            ad_filter = ps_quote(f'OperatingSystem -like "*{pattern}*"')
        rows = self._runner.run_json(
            f"Get-ADComputer -Server {self._server} -SearchBase {self._search_base} -Filter {ad_filter} "
            f"-Properties OperatingSystem, DNSHostName | Select-Object {_PROPS} | ConvertTo-Json -Compress",
            backend=_BACKEND,
        )
        hosts = [_to_identity(row) for row in rows]
        hosts.sort(key=lambda h: h.name)
        logger.debug("Listed %d computer objects (filter=%r)", len(hosts), os_filter)
        return hosts
