"""Tests for the command entry point."""

from __future__ import annotations

import pytest

from room_janitor import main as entry
from room_janitor.core.config import load_settings
from room_janitor.core.errors import DirectoryListError, ListenerError
from room_janitor.services.hipchat_client import HipChatClient
from tests.conftest import make_settings

VALID = ["--token", "abc", "--url", "https://chat.example.com/v2/"]


@pytest.fixture(autouse=True)
def isolated(monkeypatch):
    started = []
    monkeypatch.setattr(entry, "load_settings", lambda argv: load_settings(argv, environ={}))
    monkeypatch.setattr(entry, "start_observability", lambda *ports: started.append(ports))
    return started


class _FailingJanitor:
    def __init__(self, client, settings):
        self.client = client

    def run_forever(self):
        raise DirectoryListError("GET room returned HTTP 500: boom", status_code=500)


@pytest.mark.parametrize(
    "argv",
    [
        ["--url", "https://chat.example.com/v2/"],
        VALID + ["--interval", "0"],
        VALID + ["--max=-5"],
        ["--token", "abc", "--url", "not a url"],
    ],
)
def test_invalid_config_exits_non_zero(argv, isolated, capsys) -> None:
    with pytest.raises(SystemExit) as info:
        entry.main(argv)
    assert info.value.code == 1
    assert "flag" in capsys.readouterr().err
    assert isolated == []


def test_list_failure_exits_non_zero(monkeypatch, isolated) -> None:
    monkeypatch.setattr(entry, "Janitor", _FailingJanitor)
    with pytest.raises(SystemExit) as info:
        entry.main(VALID)
    assert info.value.code == 1
    # observability comes up before the loop starts
    assert isolated == [(3000, 3001)]


def test_valid_config_starts_loop(monkeypatch, isolated) -> None:
    ran = []

    class _Janitor:
        def __init__(self, client, settings):
            self.settings = settings

        def run_forever(self):
            ran.append(self.settings.max_days)

    monkeypatch.setattr(entry, "Janitor", _Janitor)
    assert entry.main(VALID + ["--max", "10", "--health-port", "4000"]) == 0
    assert ran == [10]
    assert isolated == [(4000, 3001)]


def test_build_client_insecure_warns(caplog) -> None:
    client = entry.build_client(make_settings(insecure=True))
    assert isinstance(client, HipChatClient)
    assert "TLS certificate verification is DISABLED" in caplog.text
    client.close()


def test_build_client_secure_is_quiet(caplog) -> None:
    entry.build_client(make_settings()).close()
    assert "DISABLED" not in caplog.text


def test_listener_failure_exits_before_loop(monkeypatch) -> None:
    ran = []

    def _fail(*ports):
        raise ListenerError("metrics-server could not listen on port 3001 (exit code 1)")

    class _Janitor:
        def __init__(self, client, settings):
            pass

        def run_forever(self):
            ran.append(True)

    monkeypatch.setattr(entry, "start_observability", _fail)
    monkeypatch.setattr(entry, "Janitor", _Janitor)
    with pytest.raises(SystemExit) as info:
        entry.main(VALID)
    assert info.value.code == 1
    assert ran == []
