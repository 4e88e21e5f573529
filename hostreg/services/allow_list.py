"""Project the DHCP allow filter into the boot service's allow-list file."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from hostreg.adapters.base import FilterClient
from hostreg.exceptions import BackendUnavailableError
from hostreg.models.host import bare_mac

logger = logging.getLogger(__name__)


class AllowListBuilder:
    """Regenerate the allow-list artifact from the current filter table.

    The file holds one uppercase, delimiter-free MAC per line, in filter
    table order, and is always rewritten in full.
    """

    def __init__(self, filters: FilterClient, path: Path):
        self._filters = filters
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def render(self) -> list[str]:
        seen: set[str] = set()
        entries: list[str] = []
        for entry in self._filters.dump_all():
            if entry.disposition != "allow":
                continue
            mac = bare_mac(entry.hardware_address)
            if mac in seen:
                logger.warning("Duplicate allow entry for %s in filter table", entry.hardware_address)
                continue
            seen.add(mac)
            entries.append(mac)
        return entries

    def rebuild(self) -> list[str]:
        """Rewrite the artifact and return the addresses written."""
        entries = self.render()
        content = "".join(f"{mac}\n" for mac in entries)

        try:
            self._write(content)
        except OSError as exc:
            raise BackendUnavailableError("allow-list", f"cannot write {self._path}: {exc}") from exc

        logger.info("Wrote %d allow-list entries to %s", len(entries), self._path)
        return entries

    def _write(self, content: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="ascii", newline="\n") as fh:
                fh.write(content)
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
