"""Credential agent collaborator.

Provides the minimal ssh-agent client used to enumerate the public
identities an agent holds.
"""
from __future__ import annotations

from agent_certs.agent.client import (
    AgentClient,
    AgentConnectionError,
    IdentityAgent,
    ListingError,
    RawIdentityEntry,
    connect,
)
from agent_certs.agent.protocol import AgentProtocolError

__all__ = [
    "AgentClient",
    "AgentConnectionError",
    "AgentProtocolError",
    "IdentityAgent",
    "ListingError",
    "RawIdentityEntry",
    "connect",
]
