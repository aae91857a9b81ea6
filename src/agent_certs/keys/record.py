"""Certificate Record — one agent identity plus its evaluation state.

Records are immutable. The engine derives filter, expiry and mark state
by returning updated copies (see :mod:`agent_certs.engine`), so a record
read by one consumer never changes under it.
"""
from __future__ import annotations

import base64
import datetime
import hashlib
from dataclasses import dataclass

from agent_certs.agent.client import RawIdentityEntry
from agent_certs.keys.parser import KeyKind, ParsedPublicKey, parse


@dataclass(frozen=True)
class CertificateRecord:
    """The in-memory model of one identity for a single listing pass.

    Parameters
    ----------
    entry:
        The raw identity the record was built from.
    key:
        The parsed public key or certificate.
    filter_matched:
        Whether the active filter matched. Always False for plain keys.
    is_expiring:
        Whether the certificate is expired or inside the expiry window.
        Always False for plain keys.
    expires_in:
        Signed time left until ``valid_before``. Zero for plain keys.
    marked:
        ``filter_matched and is_expiring``; never True for plain keys.
    """

    entry: RawIdentityEntry
    key: ParsedPublicKey
    filter_matched: bool = False
    is_expiring: bool = False
    expires_in: datetime.timedelta = datetime.timedelta(0)
    marked: bool = False

    @property
    def is_certificate(self) -> bool:
        return self.key.kind is KeyKind.CERTIFICATE

    @property
    def format_tag(self) -> str:
        return self.entry.format_tag

    @property
    def comment(self) -> str:
        return self.entry.comment


def build(entry: RawIdentityEntry) -> CertificateRecord:
    """Parse *entry* into a record with all derived state at its defaults.

    Raises
    ------
    KeyParseError
        Propagated from :func:`agent_certs.keys.parser.parse`.
    """
    return CertificateRecord(entry=entry, key=parse(entry))


def fingerprint(record: CertificateRecord) -> str:
    """Return the ``SHA256:`` fingerprint of a certificate's certified key.

    Only defined for certificate records; calling it for a plain key is a
    programming error and raises ``TypeError``.
    """
    if record.key.kind is not KeyKind.CERTIFICATE:
        raise TypeError(
            f"fingerprint() requires a certificate, got a plain {record.format_tag} key"
        )
    digest = hashlib.sha256(record.key.signing_key_blob).digest()
    return "SHA256:" + base64.b64encode(digest).decode("ascii").rstrip("=")
