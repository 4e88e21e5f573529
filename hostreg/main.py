"""FastAPI application factory with lifespan context manager."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI

from hostreg.config import Settings
from hostreg.exceptions import register_exception_handlers

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

_start_time: float = 0.0


def get_uptime() -> int:
    """Return process uptime in seconds."""
    return int(time.monotonic() - _start_time)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: configure logging and build the orchestrator."""
    global _start_time
    _start_time = time.monotonic()

    settings: Settings = app.state.settings

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if getattr(app.state, "orchestrator", None) is None:
        from hostreg.wiring import build_orchestrator

        app.state.orchestrator = build_orchestrator(settings)

    logger.info(
        "hostreg API started: dhcp=%s dns=%s dc=%s",
        settings.dhcp_server,
        settings.dns_server,
        settings.domain_controller,
    )

    yield

    logger.info("hostreg API stopped")


def create_app(settings: Settings | None = None, orchestrator=None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    from hostreg.models.error import ErrorResponse

    app = FastAPI(
        title="hostreg API",
        version=VERSION,
        summary="Host registration across directory, DNS and DHCP",
        lifespan=lifespan,
        responses={
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse},
            412: {"model": ErrorResponse},
        },
    )

    app.state.settings = settings
    app.state.version = VERSION
    app.state.orchestrator = orchestrator

    register_exception_handlers(app)

    from hostreg.middleware.auth import AuthMiddleware

    app.add_middleware(
        AuthMiddleware,
        tokens=settings.resolve_tokens(),
        networks=settings.parse_ip_allowlist(),
        trust_proxy=settings.trust_proxy_headers,
    )

    from hostreg.routers import allow_list, health, hosts, laptops

    app.include_router(health.router)
    app.include_router(hosts.router)
    app.include_router(laptops.router)
    app.include_router(allow_list.router)

    return app
