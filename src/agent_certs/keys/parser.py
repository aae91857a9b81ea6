"""Key Parser — decodes agent key blobs into typed public keys.

A blob is either a plain public key or an OpenSSH certificate. The two
cases form a tagged union distinguished by :class:`KeyKind`; consumers
dispatch on ``parsed.kind`` rather than on concrete classes.
"""
from __future__ import annotations

import base64
import datetime
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import SSHCertificate

from agent_certs.agent.client import RawIdentityEntry

logger = logging.getLogger(__name__)

# Upper bound for "valid forever" certificates (valid_before == 2**64 - 1).
MAX_TIMESTAMP = datetime.datetime.max.replace(tzinfo=datetime.timezone.utc)


class KeyKind(str, Enum):
    """Discriminator for :data:`ParsedPublicKey`."""

    PLAIN = "plain"
    CERTIFICATE = "certificate"


class KeyParseError(Exception):
    """Raised when an identity's key material cannot be decoded.

    Parameters
    ----------
    format_tag:
        The key type the agent reported for the identity.
    reason:
        Human-readable description of the failure.
    """

    def __init__(self, format_tag: str, reason: str) -> None:
        self.format_tag = format_tag
        self.reason = reason
        super().__init__(f"Cannot parse {format_tag!r} key: {reason}")


@dataclass(frozen=True)
class PlainKey:
    """A public key with no validity window."""

    key_type: str
    blob: bytes
    kind: KeyKind = field(default=KeyKind.PLAIN, init=False)


@dataclass(frozen=True)
class Certificate:
    """An OpenSSH certificate.

    Parameters
    ----------
    key_type:
        Certificate type name, e.g. ``ssh-ed25519-cert-v01@openssh.com``.
    blob:
        Wire encoding of the whole certificate.
    valid_after:
        Start of the validity window (UTC).
    valid_before:
        End of the validity window (UTC).
    key_id:
        Identifier the issuing CA stamped into the certificate.
    signing_key_blob:
        Wire encoding of the certified public key; the fingerprint is
        computed over these bytes.
    """

    key_type: str
    blob: bytes
    valid_after: datetime.datetime
    valid_before: datetime.datetime
    key_id: str
    signing_key_blob: bytes
    kind: KeyKind = field(default=KeyKind.CERTIFICATE, init=False)


ParsedPublicKey = Union[PlainKey, Certificate]


def parse(entry: RawIdentityEntry) -> ParsedPublicKey:
    """Decode *entry*'s blob into a :data:`ParsedPublicKey`.

    Raises
    ------
    KeyParseError
        If the blob is malformed or of a key type the decoder does not know.
    """
    if not entry.format_tag:
        raise KeyParseError(entry.format_tag, "key blob does not name a key type")
    encoded = entry.format_tag.encode("ascii", errors="replace")
    encoded += b" " + base64.b64encode(entry.blob)
    try:
        loaded = serialization.load_ssh_public_identity(encoded)
    except UnsupportedAlgorithm as exc:
        raise KeyParseError(entry.format_tag, f"unsupported key type ({exc})") from exc
    except ValueError as exc:
        raise KeyParseError(entry.format_tag, str(exc)) from exc

    if not isinstance(loaded, SSHCertificate):
        logger.debug("Identity %r is a plain %s key", entry.comment, entry.format_tag)
        return PlainKey(key_type=entry.format_tag, blob=entry.blob)

    return Certificate(
        key_type=entry.format_tag,
        blob=entry.blob,
        valid_after=_from_unix(loaded.valid_after),
        valid_before=_from_unix(loaded.valid_before),
        key_id=loaded.key_id.decode("utf-8", errors="replace"),
        signing_key_blob=_wire_bytes(loaded.public_key()),
    )


def _from_unix(timestamp: int) -> datetime.datetime:
    try:
        return datetime.datetime.fromtimestamp(timestamp, tz=datetime.timezone.utc)
    except (OverflowError, OSError, ValueError):
        return MAX_TIMESTAMP


def _wire_bytes(public_key: serialization.SSHCertPublicKeyTypes) -> bytes:
    """Return the OpenSSH wire encoding of *public_key*."""
    line = public_key.public_bytes(
        serialization.Encoding.OpenSSH,
        serialization.PublicFormat.OpenSSH,
    )
    return base64.b64decode(line.split()[1])
