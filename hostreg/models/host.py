"""Host request models and address helpers."""

from __future__ import annotations

import ipaddress
import re
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field, field_validator

from hostreg.exceptions import ValidationError

# 12 hex digits: colon-delimited, hyphen-delimited or bare
_MAC_RE = re.compile(
    r"^(?:[0-9A-Fa-f]{2}(?::[0-9A-Fa-f]{2}){5}"
    r"|[0-9A-Fa-f]{2}(?:-[0-9A-Fa-f]{2}){5}"
    r"|[0-9A-Fa-f]{12})$"
)
_NAME_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")


def canonical_mac(raw: str) -> str:
    """Normalize a MAC address to uppercase hyphen-delimited form.

    Raises ValidationError if the input is not 12 hex digits in one of the
    accepted delimiter styles.
    """
    raw = raw.strip()
    if not _MAC_RE.match(raw):
        raise ValidationError(f"Invalid hardware address: {raw!r}", {"hardware_address": raw})
    digits = bare_mac(raw)
    return "-".join(digits[i:i + 2] for i in range(0, 12, 2))


def bare_mac(mac: str) -> str:
    """Strip delimiters: ``aa-bb-cc-dd-ee-ff`` -> ``AABBCCDDEEFF``."""
    return mac.replace(":", "").replace("-", "").upper()


def is_dotted_quad(text: str) -> bool:
    """Four ASCII decimal octets, 0-255, without leading zeros."""
    try:
        ipaddress.IPv4Address(text)
    except ValueError:
        return False
    return True


def is_simple_name(text: str) -> bool:
    return _NAME_RE.fullmatch(text) is not None


def simple_name(raw: str) -> str:
    """Lowercased host name without a domain.

    Raises ValidationError for qualified, empty or otherwise malformed names.
    """
    name = raw.strip()
    if not is_simple_name(name):
        raise ValidationError(f"Invalid host name: {raw!r}", {"name": raw})
    return name.lower()


def _host_name_field(v: str) -> str:
    v = v.strip()
    if not is_simple_name(v):
        raise ValueError("name must be a simple host name without a domain")
    return v.lower()


HostName = Annotated[str, Field(min_length=1, max_length=63), AfterValidator(_host_name_field)]


def _octets(address: str) -> list[str]:
    if not is_dotted_quad(address):
        raise ValidationError(f"Invalid IPv4 address: {address!r}", {"address": address})
    return address.split(".")


def scope_of(address: str) -> str:
    """Scope id of the /24 containing *address*: ``192.168.11.0``."""
    o = _octets(address)
    return f"{o[0]}.{o[1]}.{o[2]}.0"


def reverse_zone_of(address: str) -> str:
    """Reverse lookup zone of the /24 containing *address*."""
    o = _octets(address)
    return f"{o[2]}.{o[1]}.{o[0]}.in-addr.arpa"


def ptr_name_of(address: str) -> str:
    """Record name of *address* inside its reverse zone (the last octet)."""
    return _octets(address)[3]


class HostRequest(BaseModel):
    """Desired state for a new host.

    ``hardware_address`` and ``address`` are checked by the orchestrator, not
    here, so that malformed values fail in pre-flight order.
    """

    name: HostName
    hardware_address: str
    address: str | None = None
    laptop_mode: bool = False
    container: str | None = None


class LaptopRequest(BaseModel):
    name: HostName
    hardware_address: str
    container: str | None = None


class LaptopSlot(BaseModel):
    """A loaner pool slot, permanently bound to one address."""

    name: str
    address: str

    @field_validator("address")
    @classmethod
    def _quad(cls, v: str) -> str:
        if not is_dotted_quad(v):
            raise ValueError(f"invalid IPv4 address: {v}")
        return v
