"""Listing Orchestrator — one pass over the agent's identities.

:func:`list_certificates` turns the agent's raw entries into the records a
caller should see; :func:`run_listing` does the same from a
:class:`~agent_certs.config.ListingConfig`, owning the agent connection
for the duration of the call.
"""
from __future__ import annotations

import datetime
import logging

from agent_certs.agent.client import IdentityAgent, connect
from agent_certs.config import ListingConfig
from agent_certs.engine import evaluate
from agent_certs.keys.parser import KeyKind
from agent_certs.keys.record import CertificateRecord, build

logger = logging.getLogger(__name__)


def list_certificates(
    agent: IdentityAgent,
    filter_string: str,
    window: datetime.timedelta,
    verbose: bool,
    now: datetime.datetime | None = None,
) -> list[CertificateRecord]:
    """Select the agent identities worth reporting.

    Parameters
    ----------
    agent:
        Collaborator exposing ``list_identities()``.
    filter_string:
        Substring filter; empty matches every certificate.
    window:
        Certificates expiring within this window of *now* are marked.
    verbose:
        Include plain keys and matching-but-unmarked certificates.
    now:
        Reference time; defaults to the current UTC time.

    Returns
    -------
    list[CertificateRecord]
        Included records in agent-reported order.

    Raises
    ------
    ListingError
        If the agent cannot list its identities.
    KeyParseError
        If any identity fails to parse. No partial result is returned.
    """
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)

    entries = agent.list_identities()
    records = [build(entry) for entry in entries]

    selected: list[CertificateRecord] = []
    for record in records:
        if record.key.kind is KeyKind.PLAIN:
            if verbose:
                selected.append(record)
            continue

        record = evaluate(record, filter_string, now, window)
        if record.marked or (record.filter_matched and verbose):
            selected.append(record)

    logger.info(
        "Listed %d identities, selected %d (%d marked)",
        len(records),
        len(selected),
        sum(1 for record in selected if record.marked),
    )
    return selected


def run_listing(
    config: ListingConfig,
    now: datetime.datetime | None = None,
) -> list[CertificateRecord]:
    """Connect to the agent named by *config* and run one listing pass.

    The agent socket is closed before this function returns or raises.

    Raises
    ------
    AgentConnectionError
        If the agent socket cannot be reached.
    ListingError, KeyParseError
        Propagated from :func:`list_certificates`.
    """
    with connect(config.socket_path, timeout=config.timeout) as agent:
        return list_certificates(
            agent,
            filter_string=config.filter,
            window=config.window,
            verbose=config.verbose,
            now=now,
        )
