"""Bearer token + IP allowlist authentication middleware."""

from __future__ import annotations

import hmac
import ipaddress
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

_SKIP_PATHS = {"/health", "/ready"}


def _deny(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": message})


class AuthMiddleware(BaseHTTPMiddleware):
    """Require a known bearer token from an allowed source network.

    Health and readiness are the only unauthenticated routes.
    """

    def __init__(
        self,
        app,
        tokens: set[str],
        networks: list[ipaddress.IPv4Network | ipaddress.IPv6Network],
        trust_proxy: bool = False,
    ):
        super().__init__(app)
        self._tokens = tokens
        self._networks = networks
        self._trust_proxy = trust_proxy

    async def dispatch(self, request: Request, call_next):
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        scheme, _, token = request.headers.get("Authorization", "").partition(" ")
        if scheme != "Bearer" or not self._known(token):
            return _deny(401, "UNAUTHORIZED", "Missing or invalid Authorization header")

        client_ip = self._client_ip(request)
        if not self._allowed(client_ip):
            logger.warning("Rejected %s %s from %s", request.method, request.url.path, client_ip)
            return _deny(403, "FORBIDDEN", f"Source IP {client_ip} is not in the allowlist")

        return await call_next(request)

    def _known(self, token: str) -> bool:
        return bool(token) and any(hmac.compare_digest(token, t) for t in self._tokens)

    def _client_ip(self, request: Request) -> str:
        if self._trust_proxy:
            forwarded = request.headers.get("X-Forwarded-For", "")
            if forwarded:
                return forwarded.split(",")[0].strip()
        return request.client.host if request.client else ""

    def _allowed(self, ip_str: str) -> bool:
        """Empty allowlist allows all."""
        if not self._networks:
            return True
        try:
            addr = ipaddress.ip_address(ip_str)
        except ValueError:
            return False
        return any(addr in net for net in self._networks)
