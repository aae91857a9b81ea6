"""AgentClient — enumerates the identities held by a running ssh-agent.

The client speaks just enough of the agent protocol to issue one
``REQUEST_IDENTITIES`` round-trip over a unix stream socket. It is used as
a context manager so the socket is released on every exit path::

    with connect("/run/user/1000/ssh-agent.sock") as agent:
        entries = agent.list_identities()
"""
from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Protocol

from agent_certs.agent.protocol import (
    SSH_AGENT_FAILURE,
    SSH_AGENT_IDENTITIES_ANSWER,
    SSH_AGENTC_REQUEST_IDENTITIES,
    AgentProtocolError,
    decode_body,
    decode_header,
    encode_message,
    key_format,
    parse_identities_answer,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawIdentityEntry:
    """One identity exactly as reported by the agent.

    Parameters
    ----------
    format_tag:
        Key type name, e.g. ``ssh-ed25519`` or
        ``ssh-ed25519-cert-v01@openssh.com``.
    blob:
        OpenSSH wire encoding of the public key or certificate.
    comment:
        Free-form comment the key was added with.
    """

    format_tag: str
    blob: bytes
    comment: str


class AgentConnectionError(Exception):
    """Raised when the agent socket cannot be reached."""

    def __init__(self, socket_path: str, reason: str) -> None:
        self.socket_path = socket_path
        self.reason = reason
        super().__init__(f"Cannot connect to agent at {socket_path!r}: {reason}")


class ListingError(Exception):
    """Raised when the agent fails or misbehaves while listing identities."""


class IdentityAgent(Protocol):
    """Anything that can report the identities held by a credential agent."""

    def list_identities(self) -> list[RawIdentityEntry]:
        ...


class AgentClient:
    """Client for a connected agent socket.

    Parameters
    ----------
    sock:
        A connected stream socket. The client takes ownership and closes it
        in :meth:`close`.
    """

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    def __enter__(self) -> "AgentClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying socket."""
        self._sock.close()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def list_identities(self) -> list[RawIdentityEntry]:
        """Ask the agent for every public identity it holds.

        Returns
        -------
        list[RawIdentityEntry]
            Identities in the order the agent reported them.

        Raises
        ------
        ListingError
            On agent failure, transport errors, timeouts, or malformed replies.
        """
        try:
            self._sock.sendall(encode_message(SSH_AGENTC_REQUEST_IDENTITIES))
            length = decode_header(self._recv_exact(4))
            message = decode_body(self._recv_exact(length))
        except socket.timeout as exc:
            raise ListingError("Timed out waiting for the agent") from exc
        except AgentProtocolError as exc:
            raise ListingError(f"Malformed agent reply: {exc}") from exc
        except OSError as exc:
            raise ListingError(f"Agent transport error: {exc}") from exc

        if message.msg_type == SSH_AGENT_FAILURE:
            raise ListingError("Agent refused to list identities")
        if message.msg_type != SSH_AGENT_IDENTITIES_ANSWER:
            raise ListingError(
                f"Unexpected agent reply type {message.msg_type} "
                f"(expected {SSH_AGENT_IDENTITIES_ANSWER})"
            )

        try:
            entries = [
                RawIdentityEntry(
                    format_tag=_format_tag(blob),
                    blob=blob,
                    comment=comment.decode("utf-8", errors="replace"),
                )
                for blob, comment in parse_identities_answer(message.payload)
            ]
        except AgentProtocolError as exc:
            raise ListingError(f"Malformed identities answer: {exc}") from exc

        logger.debug("Agent reported %d identities", len(entries))
        return entries

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _recv_exact(self, size: int) -> bytes:
        chunks: list[bytes] = []
        remaining = size
        while remaining:
            chunk = self._sock.recv(remaining)
            if not chunk:
                raise AgentProtocolError(
                    f"Agent closed the connection with {remaining} bytes outstanding"
                )
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)


def _format_tag(blob: bytes) -> str:
    """Return the key type named in *blob*, or "" if the blob is too damaged to say.

    Undecodable key material is reported by the key parser, not here.
    """
    try:
        return key_format(blob)
    except AgentProtocolError:
        return ""


def connect(socket_path: str, timeout: float | None = None) -> AgentClient:
    """Open a unix socket connection to the agent at *socket_path*.

    Parameters
    ----------
    socket_path:
        Filesystem path of the agent socket (usually ``$SSH_AUTH_SOCK``).
    timeout:
        Deadline in seconds for each socket operation, or None to block.

    Raises
    ------
    AgentConnectionError
        If the path is empty or the socket cannot be connected.
    """
    if not socket_path:
        raise AgentConnectionError(socket_path, "no socket path given")

    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.settimeout(timeout)
    try:
        sock.connect(socket_path)
    except OSError as exc:
        sock.close()
        raise AgentConnectionError(socket_path, str(exc)) from exc

    logger.debug("Connected to agent at %s", socket_path)
    return AgentClient(sock)
