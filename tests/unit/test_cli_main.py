"""Tests for agent_certs.cli.main — CLI commands via Click test runner."""
from __future__ import annotations

import datetime
from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner

from agent_certs.agent.client import AgentConnectionError, ListingError, RawIdentityEntry
from agent_certs.cli.main import cli

MINUTE = datetime.timedelta(minutes=1)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def install_agent(monkeypatch):
    """Route the CLI's agent connection to a fake agent."""

    def _install(agent) -> MagicMock:
        connect = MagicMock(return_value=agent)
        monkeypatch.setattr("agent_certs.listing.connect", connect)
        return connect

    return _install


@pytest.fixture()
def acme_agent(fake_agent, plain_entry, cert_entry):
    """Agent with a plain key and a certificate that lapsed in March 2026.

    The CLI evaluates against the real clock, so the certificate is always
    expired and marked under any non-filtering run.
    """
    return fake_agent([plain_entry("key_only"), cert_entry(comment="acme_inc")])


def _check(runner: CliRunner, *args: str):
    return runner.invoke(cli, ["check", "--socket", "/tmp/agent.sock", *args])


# ---------------------------------------------------------------------------
# Root CLI
# ---------------------------------------------------------------------------


class TestRootCLI:
    def test_help_exits_zero(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "check" in result.output

    def test_version_command(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "agent-certs" in result.output.lower()


# ---------------------------------------------------------------------------
# check — option handling
# ---------------------------------------------------------------------------


class TestCheckOptions:
    def test_verbose_and_terse_rejected_before_agent_call(
        self, runner: CliRunner, install_agent, acme_agent
    ) -> None:
        connect = install_agent(acme_agent)
        result = _check(runner, "--verbose", "--terse")
        assert result.exit_code == 1
        assert "mutually exclusive" in result.output
        connect.assert_not_called()
        assert acme_agent.calls == 0

    def test_malformed_expiry_rejected(
        self, runner: CliRunner, install_agent, acme_agent
    ) -> None:
        connect = install_agent(acme_agent)
        result = _check(runner, "--expiry", "soon")
        assert result.exit_code == 1
        assert "Invalid duration" in result.output
        connect.assert_not_called()

    def test_oversized_expiry_rejected(
        self, runner: CliRunner, install_agent, acme_agent
    ) -> None:
        connect = install_agent(acme_agent)
        result = _check(runner, "--expiry", "100000000h")
        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert "Invalid duration" in result.output
        connect.assert_not_called()

    def test_largest_expiry_accepted(
        self, runner: CliRunner, install_agent, acme_agent
    ) -> None:
        install_agent(acme_agent)
        result = _check(runner, "--expiry", "2562047h")
        assert result.exit_code == 0
        assert "marked:     true" in result.output

    def test_socket_from_environment(
        self, runner: CliRunner, install_agent, acme_agent
    ) -> None:
        connect = install_agent(acme_agent)
        result = runner.invoke(cli, ["check"], env={"SSH_AUTH_SOCK": "/run/agent.sock"})
        assert result.exit_code == 0
        assert connect.call_args.args[0] == "/run/agent.sock"

    def test_missing_socket_is_usage_error(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["check"], env={"SSH_AUTH_SOCK": None})
        assert result.exit_code == 2

    def test_timeout_passed_to_connection(
        self, runner: CliRunner, install_agent, acme_agent
    ) -> None:
        connect = install_agent(acme_agent)
        _check(runner, "--timeout", "3")
        assert connect.call_args.kwargs["timeout"] == 3.0

    def test_negative_timeout_is_usage_error(
        self, runner: CliRunner, install_agent, acme_agent
    ) -> None:
        connect = install_agent(acme_agent)
        result = _check(runner, "--timeout=-1")
        assert result.exit_code == 2
        connect.assert_not_called()

    def test_zero_timeout_disables_deadline(
        self, runner: CliRunner, install_agent, acme_agent
    ) -> None:
        connect = install_agent(acme_agent)
        _check(runner, "--timeout", "0")
        assert connect.call_args.kwargs["timeout"] is None


# ---------------------------------------------------------------------------
# check — output
# ---------------------------------------------------------------------------


class TestCheckOutput:
    def test_marked_certificate_printed(
        self, runner: CliRunner, install_agent, acme_agent
    ) -> None:
        install_agent(acme_agent)
        result = _check(runner)
        assert result.exit_code == 0
        assert "0 key SHA256:" in result.output
        assert "comment:    acme_inc" in result.output
        assert "marked:     true" in result.output
        assert "is not a certificate" not in result.output

    def test_verbose_prints_plain_key(
        self, runner: CliRunner, install_agent, acme_agent
    ) -> None:
        install_agent(acme_agent)
        result = _check(runner, "--verbose")
        assert result.exit_code == 0
        assert "0 key ssh-ed25519 : is not a certificate" in result.output
        assert "1 key SHA256:" in result.output

    def test_filter_excludes_everything(
        self, runner: CliRunner, install_agent, acme_agent
    ) -> None:
        install_agent(acme_agent)
        result = _check(runner, "--filter", "xyz")
        assert result.exit_code == 0
        assert result.output == ""

    def test_terse_exits_one_when_marked(
        self, runner: CliRunner, install_agent, acme_agent
    ) -> None:
        install_agent(acme_agent)
        result = _check(runner, "--terse")
        assert result.exit_code == 1
        assert result.output == ""

    def test_terse_exits_zero_when_nothing_marked(
        self, runner: CliRunner, install_agent, acme_agent
    ) -> None:
        install_agent(acme_agent)
        result = _check(runner, "--terse", "--filter", "xyz")
        assert result.exit_code == 0
        assert result.output == ""

    def test_comment_with_brackets_printed_verbatim(
        self, runner: CliRunner, install_agent, fake_agent, cert_entry
    ) -> None:
        install_agent(fake_agent([cert_entry(comment="[bold]ops[/bold]")]))
        result = _check(runner)
        assert "[bold]ops[/bold]" in result.output


# ---------------------------------------------------------------------------
# check — errors
# ---------------------------------------------------------------------------


class TestCheckErrors:
    def test_listing_error_exits_one(
        self, runner: CliRunner, install_agent, failing_agent
    ) -> None:
        install_agent(failing_agent)
        result = _check(runner)
        assert result.exit_code == 1
        assert "agent listing error" in result.output

    def test_parse_error_exits_one(
        self, runner: CliRunner, install_agent, fake_agent
    ) -> None:
        bad = RawIdentityEntry(format_tag="ssh-ed25519", blob=b"\x00", comment="bad")
        install_agent(fake_agent([bad]))
        result = _check(runner)
        assert result.exit_code == 1
        assert "Cannot parse" in result.output

    def test_connection_error_exits_one(self, runner: CliRunner, monkeypatch) -> None:
        def refuse(path: str, timeout: float | None = None):
            raise AgentConnectionError(path, "connection refused")

        monkeypatch.setattr("agent_certs.listing.connect", refuse)
        result = _check(runner)
        assert result.exit_code == 1
        assert "connection refused" in result.output

    def test_terse_listing_error_still_exits_one(
        self, runner: CliRunner, install_agent, fake_agent
    ) -> None:
        install_agent(fake_agent(error=ListingError("boom")))
        result = _check(runner, "--terse")
        assert result.exit_code == 1
