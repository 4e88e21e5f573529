"""Run PowerShell on the management host over WinRM."""

from __future__ import annotations

import json
import logging
from typing import Any

import winrm
from requests.exceptions import RequestException
from winrm.exceptions import WinRMError, WinRMTransportError

from hostreg.exceptions import BackendUnavailableError

logger = logging.getLogger(__name__)


def ps_quote(value: str) -> str:
    """Quote a value as a single-quoted PowerShell string literal."""
    return "'" + str(value).replace("'", "''") + "'"


class PowerShellRunner:
    """Execute PowerShell scripts through a WinRM session.

    Every backend client shares one runner; the cmdlets themselves target the
    DHCP, DNS or directory server with ``-ComputerName`` / ``-Server``.
    """

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        *,
        port: int = 5985,
        transport: str = "ntlm",
        session: Any | None = None,
    ):
        self._host = host
        self._session = session or winrm.Session(
            f"http://{host}:{port}/wsman",
            auth=(username, password),
            transport=transport,
            server_cert_validation="ignore",
        )

    def run(self, script: str, *, backend: str = "winrm") -> str:
        """Run *script* and return decoded stdout.

        Raises BackendUnavailableError on transport errors or a non-zero exit.
        """
        logger.debug("[%s] running: %s", backend, script.strip().splitlines()[0] if script.strip() else "")
        try:
            result = self._session.run_ps(script)
        except (WinRMError, WinRMTransportError, RequestException, OSError) as exc:
            raise BackendUnavailableError(backend, f"WinRM call to {self._host} failed: {exc}") from exc

        stdout = result.std_out.decode("utf-8", errors="replace")
        if result.status_code != 0:
            stderr = result.std_err.decode("utf-8", errors="replace").strip()
            raise BackendUnavailableError(
                backend,
                stderr.splitlines()[0] if stderr else f"script exited with code {result.status_code}",
            )
        return stdout

    def run_json(self, script: str, *, backend: str = "winrm") -> list[dict[str, Any]]:
        """Run a script ending in ``ConvertTo-Json`` and return a list of objects."""
        stdout = self.run(script, backend=backend).strip()
        if not stdout:
            return []
        try:
            data = json.loads(stdout)
        except json.JSONDecodeError as exc:
            raise BackendUnavailableError(backend, f"unparseable JSON output: {exc}") from exc
        if isinstance(data, dict):
            return [data]
        if isinstance(data, list):
            return [item for item in data if isinstance(item, dict)]
        raise BackendUnavailableError(backend, f"unexpected JSON output type {type(data).__name__}")

    def run_marker(self, script: str, *, backend: str = "winrm") -> str:
        """Run a script whose last output line is a status marker (``deleted``/``missing``)."""
        lines = [line.strip() for line in self.run(script, backend=backend).splitlines() if line.strip()]
        return lines[-1] if lines else ""
