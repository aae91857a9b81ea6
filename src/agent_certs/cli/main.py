"""CLI entry point for agent-certs.

Invoked as::

    agent-certs [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m agent_certs.cli.main

Commands
--------
check     Report agent certificates that are expired or about to expire
version   Show version information

Exit codes for ``check``: 0 when the listing completes, 1 on any error,
on conflicting options, or (with ``--terse``) when a certificate is marked.
"""
from __future__ import annotations

import logging
import sys

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from agent_certs.agent.client import AgentConnectionError, ListingError
from agent_certs.config import (
    DEFAULT_TIMEOUT,
    DurationParseError,
    ListingConfig,
    parse_duration,
)
from agent_certs.keys.parser import KeyParseError
from agent_certs.listing import run_listing
from agent_certs.render import render_listing

console = Console()


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="agent-certs")
def cli() -> None:
    """Check certificates held by an ssh-agent for imminent expiry"""


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from agent_certs import __version__

    console.print(f"[bold]agent-certs[/bold] v{__version__}")


# ------------------------------------------------------------------
# check
# ------------------------------------------------------------------


@cli.command(name="check")
@click.option(
    "--socket",
    "-s",
    "socket_path",
    envvar="SSH_AUTH_SOCK",
    required=True,
    help="Path to the agent socket (defaults to $SSH_AUTH_SOCK).",
)
@click.option(
    "--filter",
    "-f",
    "filter_string",
    default="",
    help="Only consider certificates whose comment or key type contains this text.",
)
@click.option(
    "--expiry",
    "-e",
    default="60m",
    show_default=True,
    help="Mark certificates expiring within this duration (e.g. 90s, 30m, 1h30m).",
)
@click.option("--verbose", "-v", is_flag=True, help="Show every matching identity.")
@click.option("--terse", "-t", is_flag=True, help="Print nothing; exit 1 if any certificate is marked.")
@click.option(
    "--timeout",
    type=click.FloatRange(min=0),
    default=DEFAULT_TIMEOUT,
    show_default=True,
    help="Seconds to wait for the agent before giving up (0 waits forever).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity (written to stderr).",
)
def check_command(
    socket_path: str,
    filter_string: str,
    expiry: str,
    verbose: bool,
    terse: bool,
    timeout: float,
    log_level: str,
) -> None:
    """List agent certificates that are expired or expire within --expiry."""
    logging.basicConfig(level=getattr(logging, log_level.upper()))

    try:
        window = parse_duration(expiry)
        config = ListingConfig(
            socket_path=socket_path,
            filter=filter_string,
            window=window,
            verbose=verbose,
            terse=terse,
            timeout=timeout or None,
        )
    except DurationParseError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        sys.exit(1)
    except ValidationError as exc:
        console.print(f"[red]Error:[/red] invalid options: {escape(_first_error(exc))}")
        sys.exit(1)

    try:
        records = run_listing(config)
    except (AgentConnectionError, ListingError, KeyParseError) as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}", highlight=False)
        sys.exit(1)

    if config.terse:
        if any(record.marked for record in records):
            sys.exit(1)
        return

    for record, text in zip(records, render_listing(records)):
        console.print(
            text,
            markup=False,
            highlight=False,
            soft_wrap=True,
            style="bold red" if record.marked else None,
        )


def _first_error(exc: ValidationError) -> str:
    """Return the message of the first validation failure."""
    errors = exc.errors()
    if not errors:
        return str(exc)
    message = str(errors[0].get("msg", exc))
    return message.removeprefix("Value error, ")


if __name__ == "__main__":
    cli()
