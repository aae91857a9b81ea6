"""agent-certs — report ssh-agent certificates that are expired or about to expire.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Quick start
-----------
::

    from agent_certs import ListingConfig, run_listing, render_record

    config = ListingConfig(socket_path="/tmp/agent.sock", window="30m")
    for record in run_listing(config):
        print(render_record(record))
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Agent collaborator
# ------------------------------------------------------------------
from agent_certs.agent.client import (
    AgentClient,
    AgentConnectionError,
    IdentityAgent,
    ListingError,
    RawIdentityEntry,
    connect,
)

# ------------------------------------------------------------------
# Keys and records
# ------------------------------------------------------------------
from agent_certs.keys.parser import (
    Certificate,
    KeyKind,
    KeyParseError,
    ParsedPublicKey,
    PlainKey,
    parse,
)
from agent_certs.keys.record import CertificateRecord, build, fingerprint

# ------------------------------------------------------------------
# Engine, listing, configuration
# ------------------------------------------------------------------
from agent_certs.config import (
    ConfigurationError,
    DurationParseError,
    ListingConfig,
    parse_duration,
)
from agent_certs.engine import evaluate, evaluate_expiry, evaluate_filter, expires_in, mark
from agent_certs.listing import list_certificates, run_listing
from agent_certs.render import render_listing, render_record

__all__ = [
    "__version__",
    # Agent
    "AgentClient",
    "AgentConnectionError",
    "IdentityAgent",
    "ListingError",
    "RawIdentityEntry",
    "connect",
    # Keys
    "Certificate",
    "CertificateRecord",
    "KeyKind",
    "KeyParseError",
    "ParsedPublicKey",
    "PlainKey",
    "build",
    "fingerprint",
    "parse",
    # Engine / listing / config
    "ConfigurationError",
    "DurationParseError",
    "ListingConfig",
    "evaluate",
    "evaluate_expiry",
    "evaluate_filter",
    "expires_in",
    "list_certificates",
    "mark",
    "parse_duration",
    "render_listing",
    "render_record",
    "run_listing",
]
