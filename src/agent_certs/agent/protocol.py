"""ssh-agent wire framing for the identity listing request.

Every agent message is a big-endian ``uint32`` length followed by a one
byte message type and the payload. Only the pieces needed to enumerate
identities are implemented here; signing, adding and removing keys are
handled by the agent's own tooling.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass

SSH_AGENT_FAILURE = 5
SSH_AGENTC_REQUEST_IDENTITIES = 11
SSH_AGENT_IDENTITIES_ANSWER = 12

# Matches the response ceiling used by the Go and OpenSSH clients.
MAX_MESSAGE_LENGTH = 16 << 20

_UINT32 = struct.Struct(">I")


class AgentProtocolError(ValueError):
    """Raised when bytes received from the agent do not form a valid message."""


@dataclass(frozen=True)
class AgentMessage:
    """A single decoded agent frame."""

    msg_type: int
    payload: bytes


def encode_message(msg_type: int, payload: bytes = b"") -> bytes:
    """Frame *payload* as an agent message of type *msg_type*."""
    return _UINT32.pack(len(payload) + 1) + bytes([msg_type]) + payload


def decode_header(header: bytes) -> int:
    """Return the body length announced by a four byte frame header."""
    if len(header) != _UINT32.size:
        raise AgentProtocolError(
            f"Truncated frame header: expected 4 bytes, got {len(header)}"
        )
    (length,) = _UINT32.unpack(header)
    if length == 0:
        raise AgentProtocolError("Empty agent message")
    if length > MAX_MESSAGE_LENGTH:
        raise AgentProtocolError(
            f"Agent message of {length} bytes exceeds the {MAX_MESSAGE_LENGTH} byte limit"
        )
    return length


def decode_body(body: bytes) -> AgentMessage:
    """Split a frame body into its message type and payload."""
    if not body:
        raise AgentProtocolError("Empty agent message")
    return AgentMessage(msg_type=body[0], payload=body[1:])


def read_uint32(data: bytes, offset: int) -> tuple[int, int]:
    """Read a ``uint32`` at *offset*, returning ``(value, new_offset)``."""
    end = offset + _UINT32.size
    if end > len(data):
        raise AgentProtocolError("Unexpected end of data reading uint32")
    (value,) = _UINT32.unpack_from(data, offset)
    return value, end


def read_string(data: bytes, offset: int) -> tuple[bytes, int]:
    """Read an SSH ``string`` (length-prefixed bytes) at *offset*."""
    length, start = read_uint32(data, offset)
    end = start + length
    if end > len(data):
        raise AgentProtocolError(
            f"String of {length} bytes runs past the end of the message"
        )
    return data[start:end], end


def parse_identities_answer(payload: bytes) -> list[tuple[bytes, bytes]]:
    """Decode the payload of ``SSH_AGENT_IDENTITIES_ANSWER``.

    Returns a list of ``(key_blob, comment)`` pairs in the order the agent
    reported them.
    """
    count, offset = read_uint32(payload, 0)
    identities: list[tuple[bytes, bytes]] = []
    for _ in range(count):
        blob, offset = read_string(payload, offset)
        comment, offset = read_string(payload, offset)
        identities.append((blob, comment))
    if offset != len(payload):
        raise AgentProtocolError(
            f"{len(payload) - offset} trailing bytes after {count} identities"
        )
    return identities


def key_format(blob: bytes) -> str:
    """Return the key type name that prefixes every public key blob."""
    name, _ = read_string(blob, 0)
    try:
        return name.decode("ascii")
    except UnicodeDecodeError as exc:
        raise AgentProtocolError("Key type name is not ASCII") from exc
