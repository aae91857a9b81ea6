"""Shared fixtures: real OpenSSH keys and certificates plus an in-memory agent."""
from __future__ import annotations

import base64
import datetime
from collections.abc import Callable

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from agent_certs.agent.client import ListingError, RawIdentityEntry

NOW = datetime.datetime(2026, 3, 7, 8, 0, 0, tzinfo=datetime.timezone.utc)


def _wire_blob(line: bytes) -> tuple[str, bytes]:
    key_type, b64 = line.split()[:2]
    return key_type.decode("ascii"), base64.b64decode(b64)


class FakeAgent:
    """In-memory stand-in for a connected ssh-agent."""

    def __init__(
        self,
        entries: list[RawIdentityEntry] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.entries = list(entries or [])
        self.error = error
        self.calls = 0
        self.closed = False

    def list_identities(self) -> list[RawIdentityEntry]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.entries)

    def __enter__(self) -> "FakeAgent":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.closed = True


@pytest.fixture()
def now() -> datetime.datetime:
    return NOW


@pytest.fixture(scope="session")
def ca_key() -> ed25519.Ed25519PrivateKey:
    return ed25519.Ed25519PrivateKey.generate()


@pytest.fixture()
def plain_entry() -> Callable[..., RawIdentityEntry]:
    """Factory for plain ed25519 identities."""

    def _make(comment: str = "key_only") -> RawIdentityEntry:
        key = ed25519.Ed25519PrivateKey.generate().public_key()
        line = key.public_bytes(
            serialization.Encoding.OpenSSH,
            serialization.PublicFormat.OpenSSH,
        )
        key_type, blob = _wire_blob(line)
        return RawIdentityEntry(format_tag=key_type, blob=blob, comment=comment)

    return _make


@pytest.fixture()
def cert_entry(
    ca_key: ed25519.Ed25519PrivateKey,
) -> Callable[..., RawIdentityEntry]:
    """Factory for ed25519 user certificates signed by the session CA.

    ``valid_for`` is measured from :data:`NOW`; pass a negative value for an
    already-expired certificate.
    """

    def _make(
        comment: str = "acme_inc",
        valid_for: datetime.timedelta = datetime.timedelta(minutes=20),
        key_id: str = "acme_inc",
        valid_before: int | None = None,
    ) -> RawIdentityEntry:
        user_key = ed25519.Ed25519PrivateKey.generate().public_key()
        if valid_before is None:
            valid_before = int((NOW + valid_for).timestamp())
        cert = (
            serialization.SSHCertificateBuilder()
            .public_key(user_key)
            .serial(1)
            .type(serialization.SSHCertificateType.USER)
            .key_id(key_id.encode())
            .valid_for_all_principals()
            .valid_after(int((NOW - datetime.timedelta(hours=1)).timestamp()))
            .valid_before(valid_before)
            .sign(ca_key)
        )
        key_type, blob = _wire_blob(cert.public_bytes())
        return RawIdentityEntry(format_tag=key_type, blob=blob, comment=comment)

    return _make


@pytest.fixture()
def fake_agent() -> Callable[..., FakeAgent]:
    def _make(
        entries: list[RawIdentityEntry] | None = None,
        error: Exception | None = None,
    ) -> FakeAgent:
        return FakeAgent(entries=entries, error=error)

    return _make


@pytest.fixture()
def failing_agent() -> FakeAgent:
    return FakeAgent(error=ListingError("agent listing error"))
