"""Application configuration via pydantic-settings."""

from __future__ import annotations

import ipaddress
import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from hostreg.models.host import LaptopSlot

logger = logging.getLogger(__name__)


def _default_laptop_slots() -> list[LaptopSlot]:
    return [
        LaptopSlot(name=f"laptop{n:02d}", address=f"192.168.11.{200 + n}")
        for n in range(1, 5)
    ]


class Settings(BaseSettings):
    """hostreg configuration.

    Loaded from environment variables with the ``HOSTREG_`` prefix. Complex
    values such as ``HOSTREG_LAPTOP_SLOTS`` are given as JSON.
    """

    model_config = {"env_prefix": "HOSTREG_"}

    # -- Remoting ------------------------------------------------------------
    winrm_host: str = "mgmt01.corp.example.com"
    winrm_port: int = 5985
    winrm_username: str = ""
    winrm_password: str = ""
    winrm_transport: str = "ntlm"

    # -- Backends ------------------------------------------------------------
    dhcp_server: str = "dhcp01.corp.example.com"
    dns_server: str = "dc01.corp.example.com"
    domain_controller: str = "dc01.corp.example.com"
    domain: str = "corp.example.com"

    # -- Placement -----------------------------------------------------------
    search_base: str = "DC=corp,DC=example,DC=com"
    temporary_container: str = "OU=Temp,OU=Computers,DC=corp,DC=example,DC=com"
    fallback_container: str = "CN=Computers,DC=corp,DC=example,DC=com"
    laptop_marker: str = "laptop"

    # -- Laptop pool ---------------------------------------------------------
    laptop_slots: list[LaptopSlot] = Field(default_factory=_default_laptop_slots)
    laptop_lease_days: int = 7

    # -- Allow list ----------------------------------------------------------
    allow_list_path: Path = Path("/srv/tftp/allowed-macs.txt")

    # -- Locks ---------------------------------------------------------------
    redis_url: str | None = None
    lock_ttl_s: float = 300.0
    lock_wait_s: float = 10.0

    # -- API auth ------------------------------------------------------------
    bearer_tokens_file: Path | None = None
    bearer_tokens: str = ""  # comma-separated fallback
    ip_allowlist: str = "127.0.0.0/8,::1/128"
    trust_proxy_headers: bool = False

    # -- Misc ----------------------------------------------------------------
    log_level: str = "INFO"

    _resolved_tokens: set[str] | None = None

    def fqdn(self, name: str) -> str:
        """Qualify a simple host name with the configured domain."""
        return f"{name}.{self.domain}".lower()

    def resolve_tokens(self) -> set[str]:
        """Load bearer tokens from file (preferred) or env fallback."""
        if self._resolved_tokens is not None:
            return self._resolved_tokens

        tokens: set[str] = set()

        if self.bearer_tokens_file is not None:
            try:
                text = self.bearer_tokens_file.read_text(encoding="utf-8")
            except FileNotFoundError:
                logger.warning(
                    "Token file %s not found, falling back to env",
                    self.bearer_tokens_file,
                )
            else:
                tokens = {
                    line.strip()
                    for line in text.splitlines()
                    if line.strip() and not line.strip().startswith("#")
                }
                if tokens:
                    logger.info("Loaded %d token(s) from %s", len(tokens), self.bearer_tokens_file)
                    self._resolved_tokens = tokens
                    return tokens

        if self.bearer_tokens:
            tokens = {t.strip() for t in self.bearer_tokens.split(",") if t.strip()}
            if tokens:
                logger.info("Loaded %d token(s) from HOSTREG_BEARER_TOKENS env", len(tokens))

        self._resolved_tokens = tokens
        return tokens

    def parse_ip_allowlist(self) -> list[ipaddress.IPv4Network | ipaddress.IPv6Network]:
        """Parse the comma-separated IP allowlist into network objects."""
        networks = []
        for entry in self.ip_allowlist.split(","):
            entry = entry.strip()
            if not entry:
                continue
            try:
                networks.append(ipaddress.ip_network(entry, strict=False))
            except ValueError:
                logger.warning("Invalid network in allowlist: %s", entry)
        return networks

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("laptop_slots")
    @classmethod
    def _require_slots(cls, v: list[LaptopSlot]) -> list[LaptopSlot]:
        if not v:
            raise ValueError("at least one laptop slot is required")
        return v
