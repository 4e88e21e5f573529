"""Container selection and confirmation prompts."""

from __future__ import annotations

import logging
import sys
from typing import Callable, Protocol, TextIO

from hostreg.exceptions import ValidationError

logger = logging.getLogger(__name__)


class Prompt(Protocol):
    def select(self, candidates: list[str], laptop_mode: bool) -> int: ...

    def confirm(self, message: str) -> bool: ...


class ConsolePrompt:
    """Interactive prompt on a terminal."""

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        out: TextIO | None = None,
    ):
        self._input = input_fn
        self._out = out or sys.stdout

    def select(self, candidates: list[str], laptop_mode: bool) -> int:
        title = "laptop container" if laptop_mode else "container"
        print(f"Select a {title}:", file=self._out)
        for idx, dn in enumerate(candidates, start=1):
            print(f"  {idx:3d}) {dn}", file=self._out)
        while True:
            answer = self._input(f"{title} [1-{len(candidates)}]: ").strip()
            if answer.isdigit() and 1 <= int(answer) <= len(candidates):
                return int(answer) - 1
            print(f"Enter a number between 1 and {len(candidates)}", file=self._out)

    def confirm(self, message: str) -> bool:
        answer = self._input(f"{message} [y/N]: ").strip().lower()
        return answer in ("y", "yes")


class StaticPrompt:
    """Non-interactive prompt with preset answers (API requests, tests)."""

    def __init__(self, container: str | None = None, index: int | None = None, confirm: bool = False):
        self._container = container
        self._index = index
        self._confirm = confirm

    def select(self, candidates: list[str], laptop_mode: bool) -> int:
        if self._container is not None:
            wanted = self._container.lower()
            for idx, dn in enumerate(candidates):
                if dn.lower() == wanted:
                    return idx
            raise ValidationError(f"Container not available: {self._container}")
        return self._index if self._index is not None else 0

    def confirm(self, message: str) -> bool:
        logger.debug("Auto-answering %r with %s", message, self._confirm)
        return self._confirm


def placement_candidates(containers: list[str], laptop_mode: bool, laptop_marker: str) -> list[str]:
    ordered = sorted(containers, key=str.lower)
    if laptop_mode:
        marker = laptop_marker.lower()
        ordered = [dn for dn in ordered if marker in dn.lower()]
    return ordered


def select_container(
    containers: list[str],
    laptop_mode: bool,
    prompt: Prompt,
    *,
    laptop_marker: str,
    temporary_container: str,
    fallback_container: str,
) -> tuple[str, str | None]:
    """Pick the container for a new identity object.

    Returns ``(container, warning)``. Choosing the temporary container
    places the object in the fallback container instead, and the warning
    says it has to be moved by hand.
    """
    candidates = placement_candidates(containers, laptop_mode, laptop_marker)
    if not candidates:
        kind = "laptop containers" if laptop_mode else "containers"
        raise ValidationError(f"No {kind} available for placement")

    index = prompt.select(candidates, laptop_mode)
    if not 0 <= index < len(candidates):
        raise ValidationError(f"Container selection {index} out of range")
    chosen = candidates[index]

    if chosen.lower() == temporary_container.lower():
        warning = (
            f"{chosen} cannot hold new objects; created in {fallback_container}, "
            "move it to its final container manually"
        )
        logger.warning(warning)
        return fallback_container, warning
    return chosen, None
