"""Tests for container selection and the console prompt."""

from __future__ import annotations

import io

import pytest

from hostreg.exceptions import ValidationError
from hostreg.services.prompts import ConsolePrompt, StaticPrompt, placement_candidates, select_container
from tests.conftest import FALLBACK, LAPTOPS, TEMP, WORKSTATIONS

CONTAINERS = [WORKSTATIONS, TEMP, LAPTOPS]


def _select(prompt, laptop_mode=False, containers=CONTAINERS):
    return select_container(
        containers,
        laptop_mode,
        prompt,
        laptop_marker="laptop",
        temporary_container=TEMP,
        fallback_container=FALLBACK,
    )


class TestCandidates:
    def test_sorted_case_insensitively(self):
        assert placement_candidates(["OU=b", "OU=A", "OU=c"], False, "laptop") == ["OU=A", "OU=b", "OU=c"]

    def test_laptop_mode_filters_on_marker(self):
        assert placement_candidates(CONTAINERS, True, "LAPTOP") == [LAPTOPS]


class TestSelectContainer:
    def test_named_container(self):
        assert _select(StaticPrompt(container=WORKSTATIONS.upper())) == (WORKSTATIONS, None)

    def test_default_is_first_candidate(self):
        assert _select(StaticPrompt()) == (LAPTOPS, None)

    def test_temporary_container_goes_to_fallback(self):
        container, warning = _select(StaticPrompt(container=TEMP))

        assert container == FALLBACK
        assert "move it to its final container manually" in warning

    def test_no_candidates(self):
        with pytest.raises(ValidationError, match="No laptop containers"):
            _select(StaticPrompt(), laptop_mode=True, containers=[WORKSTATIONS])

    def test_index_out_of_range(self):
        with pytest.raises(ValidationError, match="out of range"):
            _select(StaticPrompt(index=5))

    def test_unknown_container(self):
        with pytest.raises(ValidationError, match="not available"):
            _select(StaticPrompt(container="OU=Servers"))


class TestConsolePrompt:
    def test_retries_until_valid_choice(self):
        answers = iter(["0", "abc", "2"])
        out = io.StringIO()
        prompt = ConsolePrompt(input_fn=lambda _: next(answers), out=out)

        assert prompt.select(["OU=a", "OU=b"], False) == 1
        assert "  1) OU=a" in out.getvalue()
        assert out.getvalue().count("Enter a number between 1 and 2") == 2

    @pytest.mark.parametrize("answer,expected", [("y", True), ("YES", True), ("", False), ("n", False)])
    def test_confirm(self, answer, expected):
        prompt = ConsolePrompt(input_fn=lambda _: answer, out=io.StringIO())
        assert prompt.confirm("Remove?") is expected
