"""One-shot CLI: argument parsing, dialing once, exit codes."""

import logging

import pytest

from tikvcli import cli
from tikvcli.client import TikvClient
from tikvcli.errors import DialError

URL = "tikv://127.0.0.1:2379"


@pytest.fixture
def dialed(store, monkeypatch):
    """Replace dial with one returning a client over the in-memory store; records urls."""
    urls = []

    def fake_dial(url):
        urls.append(url)
        return TikvClient(store, url=url)

    monkeypatch.setattr(cli, "dial", fake_dial)
    return urls


def test_set_then_get(dialed, store, capsys):
    assert cli.main(["--url", URL, "set", "foo", "bar"]) == 0
    assert store.data == {b"foo": b"bar"}
    assert cli.main(["-u", URL, "get", "foo"]) == 0
    assert capsys.readouterr().out.splitlines() == ['"foo"', '"bar"']
    assert dialed == [URL, URL]


def test_delete(dialed, store):
    store.data.update({b"a": b"1", b"b": b"2"})
    assert cli.main(["--url", URL, "delete", "a", "b"]) == 0
    assert store.data == {}


def test_scan_flags_after_subcommand(dialed, store, capsys):
    """-u after the subcommand belongs to scan (until), not to the top level url."""
    store.data.update({b"a1": b"x", b"a2": b"y", b"a3": b"z"})
    assert cli.main(["--url", URL, "scan", "a", "-u", "a2"]) == 0
    assert capsys.readouterr().out.splitlines() == ['"a1":"x"', '"a2":"y"', "Total scanned 2"]
    assert cli.main(["--url", URL, "scan", "-n", "1", "-U", "a3", "a"]) == 0
    assert capsys.readouterr().out.splitlines() == ['"a1":"x"', "Total scanned 1"]


def test_operation_failure_exits_nonzero(dialed, store, capsys):
    store.fail_on.add("commit")
    assert cli.main(["--url", URL, "set", "k", "v"]) == 1
    assert "injected commit failure" in capsys.readouterr().out


@pytest.mark.parametrize("op", ["begin", "scan"])
def test_scan_failure_exits_nonzero(dialed, store, capsys, op):
    store.fail_on.add(op)
    assert cli.main(["--url", URL, "scan", "a"]) == 1
    assert capsys.readouterr().out.splitlines() == [f"injected {op} failure", "Total scanned 0"]


def test_get_without_key_exits_nonzero(dialed):
    assert cli.main(["--url", URL, "get"]) == 1


def test_bad_escape_exits_nonzero(dialed, capsys):
    assert cli.main(["--url", URL, "get", "\\xqq"]) == 1
    assert "invalid hex escape" in capsys.readouterr().out


def test_dial_failure_is_fatal(monkeypatch):
    def failing_dial(url):
        raise DialError("connection refused")

    monkeypatch.setattr(cli, "dial", failing_dial)
    assert cli.main(["--url", URL, "get", "k"]) == 1


def test_bad_url_is_fatal():
    assert cli.main(["--url", "http://127.0.0.1:2379", "get", "k"]) == 1


def test_url_is_required():
    with pytest.raises(SystemExit) as exc:
        cli.main(["get", "k"])
    assert exc.value.code == 2


def test_no_command_starts_shell(dialed, store, monkeypatch):
    lines = iter(["set a 1", "exit"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))
    assert cli.main(["--url", URL]) == 0
    assert store.data == {b"a": b"1"}


def test_setup_logging_does_not_stack_handlers():
    root_logger = logging.getLogger()
    cli.setup_logging("WARNING")
    before = len(root_logger.handlers)
    cli.setup_logging("DEBUG")
    cli.setup_logging("WARNING")
    assert len(root_logger.handlers) == before
