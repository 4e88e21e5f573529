"""Name lookups through the system resolver."""

from __future__ import annotations

import logging
import socket

logger = logging.getLogger(__name__)


class SystemResolver:
    """Forward and reverse lookups as any client on the network sees them.

    Reverse lookups go through the normal resolver path, so PTR data owned
    by an external name system (stub zones) is visible here.
    """

    def __init__(self, domain: str):
        self._domain = domain.lower()

    def qualify(self, name: str) -> str:
        name = name.rstrip(".").lower()
        if "." in name:
            return name
        return f"{name}.{self._domain}"

    def forward(self, name: str) -> str | None:
        try:
            return socket.gethostbyname(self.qualify(name))
        except (socket.gaierror, socket.herror, UnicodeError):
            logger.debug("Forward lookup of %s failed", name)
            return None

    def reverse(self, address: str) -> str | None:
        try:
            host, _aliases, _addrs = socket.gethostbyaddr(address)
        except (socket.gaierror, socket.herror):
            logger.debug("Reverse lookup of %s failed", address)
            return None
        return host.rstrip(".").lower()
