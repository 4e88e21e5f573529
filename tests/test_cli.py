"""Tests for the hostreg command line."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from hostreg import cli
from hostreg.models.directory import IdentityObject


@pytest.fixture
def run(settings, orchestrator):
    """Invoke ``cli.main`` against the fake backends."""

    def _run(*argv: str) -> int:
        with (
            patch.object(cli, "Settings", return_value=settings),
            patch.object(cli, "build_orchestrator", return_value=orchestrator),
            patch.object(cli, "setup_logging"),
        ):
            return cli.main(list(argv))

    return _run


class TestAddHost:
    def test_success(self, run, net, capsys):
        assert run("add-host", "pc01", "aa:bb:cc:dd:ee:01", "192.168.11.120") == cli.EXIT_OK

        out = capsys.readouterr().out
        assert "add-host pc01:" in out
        assert "[ok       ] reservation" in out
        assert net.a_records == {"pc01.corp.example.com": "192.168.11.120"}

    def test_conflict_is_refused(self, run, net, capsys):
        net.a_records["pc01.corp.example.com"] = "192.168.11.5"

        assert run("add-host", "pc01", "aa:bb:cc:dd:ee:01", "192.168.11.120") == cli.EXIT_REFUSED
        assert "already resolves" in capsys.readouterr().err

    def test_bad_mac_is_refused(self, run, net):
        assert run("add-host", "pc01", "not-a-mac", "192.168.11.120") == cli.EXIT_REFUSED
        assert net.calls == []

    def test_bad_name_is_refused(self, run, capsys):
        assert run("add-host", "pc01.corp.example.com", "aa:bb:cc:dd:ee:01", "192.168.11.120") == cli.EXIT_REFUSED
        assert "error: name" in capsys.readouterr().err

    def test_missing_address_without_laptop(self, run, capsys):
        assert run("add-host", "pc01", "aa:bb:cc:dd:ee:01") == cli.EXIT_REFUSED
        assert "ADDRESS or --laptop" in capsys.readouterr().err

    def test_partial_failure(self, run, net, capsys):
        net.fail_on.add("dns.create_ptr")

        assert run("add-host", "pc01", "aa:bb:cc:dd:ee:01", "192.168.11.120") == cli.EXIT_PARTIAL
        assert "Failed steps need manual cleanup: ptr-record" in capsys.readouterr().out

    def test_laptop(self, run, net, orchestrator):
        orchestrator._prompt = cli.ConsolePrompt(input_fn=lambda _: "1")

        assert run("add-host", "jdoe", "aa:bb:cc:dd:ee:02", "--laptop") == cli.EXIT_OK
        assert ("192.168.11.0", "192.168.11.201") in net.reservations


class TestRemoveHost:
    @pytest.fixture(autouse=True)
    def registered(self, run):
        assert run("add-host", "pc01", "aa:bb:cc:dd:ee:01", "192.168.11.120") == cli.EXIT_OK

    def test_remove_with_yes(self, run, net, capsys):
        capsys.readouterr()

        assert run("remove-host", "pc01", "--yes") == cli.EXIT_OK
        assert net.a_records == {}
        assert "[deleted  ] identity" in capsys.readouterr().out

    def test_missing_records_still_exit_zero(self, run, net):
        net.objects.clear()
        assert run("remove-host", "pc01", "-y") == cli.EXIT_OK

    def test_declined(self, run, net, orchestrator):
        orchestrator._prompt = cli.ConsolePrompt(input_fn=lambda _: "n")

        assert run("remove-host", "pc01") == cli.EXIT_REFUSED
        assert "pc01" in net.objects

    def test_unknown_host(self, run):
        assert run("remove-host", "ghost", "-y") == cli.EXIT_REFUSED

    def test_verbose_shows_details(self, run, capsys):
        capsys.readouterr()
        run("remove-host", "pc01", "-y", "--verbose")
        assert "192.168.11.120 -> AA-BB-CC-DD-EE-01" in capsys.readouterr().out


class TestOtherCommands:
    def test_rebuild_allow_list(self, run, net, settings, capsys):
        from hostreg.models.dhcp import FilterEntry

        net.filters.append(FilterEntry(hardware_address="AA-BB-CC-DD-EE-01", disposition="allow"))

        assert run("rebuild-allow-list") == cli.EXIT_OK
        assert f"Wrote 1 entries to {settings.allow_list_path}" in capsys.readouterr().out
        assert settings.allow_list_path.read_text() == "AABBCCDDEE01\n"

    def _hosts(self, net):
        net.objects["pc02"] = IdentityObject(name="pc02", operating_system="Windows 11 Pro", container="OU=A")
        net.objects["pc01"] = IdentityObject(name="pc01", operating_system="Ubuntu", container="OU=A")

    def test_list_hosts_names(self, run, net, capsys):
        self._hosts(net)
        assert run("list-hosts", "--names") == cli.EXIT_OK
        assert capsys.readouterr().out.split() == ["pc01", "pc02"]

    def test_list_hosts_count_with_os(self, run, net, capsys):
        self._hosts(net)
        assert run("list-hosts", "--count", "--os", "windows") == cli.EXIT_OK
        assert capsys.readouterr().out.strip() == "1"

    def test_serve(self, run):
        with patch.object(cli.uvicorn, "run") as uvicorn_run:
            assert run("serve", "--port", "9000") == cli.EXIT_OK

        uvicorn_run.assert_called_once_with(
            "hostreg.main:create_app", factory=True, host="127.0.0.1", port=9000, log_config=None
        )
