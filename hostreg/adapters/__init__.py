"""Backend clients driven over PowerShell remoting."""

from hostreg.adapters.dhcp import DhcpServerClient
from hostreg.adapters.directory import ActiveDirectoryClient
from hostreg.adapters.dns import DnsServerClient
from hostreg.adapters.remoting import PowerShellRunner, ps_quote
from hostreg.adapters.resolver import SystemResolver

__all__ = [
    "ActiveDirectoryClient",
    "DhcpServerClient",
    "DnsServerClient",
    "PowerShellRunner",
    "SystemResolver",
    "ps_quote",
]
