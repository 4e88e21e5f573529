"""Build the orchestrator and its backend clients from Settings."""

from __future__ import annotations

from hostreg.adapters.dhcp import DhcpServerClient
from hostreg.adapters.directory import ActiveDirectoryClient
from hostreg.adapters.dns import DnsServerClient
from hostreg.adapters.remoting import PowerShellRunner
from hostreg.adapters.resolver import SystemResolver
from hostreg.config import Settings
from hostreg.services.allow_list import AllowListBuilder
from hostreg.services.locks import HostLockManager
from hostreg.services.orchestrator import HostLifecycleOrchestrator
from hostreg.services.prompts import Prompt, StaticPrompt


def build_orchestrator(settings: Settings, prompt: Prompt | None = None) -> HostLifecycleOrchestrator:
    runner = PowerShellRunner(
        settings.winrm_host,
        settings.winrm_username,
        settings.winrm_password,
        port=settings.winrm_port,
        transport=settings.winrm_transport,
    )
    dhcp = DhcpServerClient(runner, settings.dhcp_server)
    dns = DnsServerClient(runner, settings.dns_server, SystemResolver(settings.domain))

    return HostLifecycleOrchestrator(
        settings,
        directory=ActiveDirectoryClient(runner, settings.domain_controller, settings.search_base),
        names=dns,
        reservations=dhcp,
        filters=dhcp,
        zones=dns,
        allow_list=AllowListBuilder(dhcp, settings.allow_list_path),
        prompt=prompt or StaticPrompt(),
        locks=HostLockManager.from_url(
            settings.redis_url, ttl_s=settings.lock_ttl_s, wait_s=settings.lock_wait_s
        ),
    )
