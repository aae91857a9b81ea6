"""Public key parsing and the per-identity record model."""
from __future__ import annotations

from agent_certs.keys.parser import (
    Certificate,
    KeyKind,
    KeyParseError,
    ParsedPublicKey,
    PlainKey,
    parse,
)
from agent_certs.keys.record import CertificateRecord, build, fingerprint

__all__ = [
    "Certificate",
    "CertificateRecord",
    "KeyKind",
    "KeyParseError",
    "ParsedPublicKey",
    "PlainKey",
    "build",
    "fingerprint",
    "parse",
]
