"""ListingConfig — the single immutable configuration value for a listing run.

Also provides :func:`parse_duration`, which accepts Go-style duration
strings such as ``"60m"``, ``"1h30m"`` or ``"1.5h"``.
"""
from __future__ import annotations

import datetime
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

DEFAULT_WINDOW = datetime.timedelta(minutes=60)
DEFAULT_TIMEOUT = 10.0

_UNIT_SECONDS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

# Largest duration Go can represent (int64 nanoseconds), roughly 2562047h.
MAX_DURATION_SECONDS = (2**63 - 1) / 1e9

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


class DurationParseError(ValueError):
    """Raised when an expiration window string is malformed."""

    def __init__(self, value: str, reason: str) -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid duration {value!r}: {reason}")


class ConfigurationError(ValueError):
    """Raised when listing options contradict each other."""


def parse_duration(value: str) -> datetime.timedelta:
    """Parse a Go-style duration string into a ``timedelta``.

    A duration is a sequence of decimal numbers, each with a unit suffix
    (``ns``, ``us``, ``ms``, ``s``, ``m``, ``h``). ``"0"`` is accepted on
    its own. Negative durations are rejected since a window cannot look
    into the past.

    Raises
    ------
    DurationParseError
        If *value* is empty, has an unknown unit, is negative,
        or exceeds the largest duration Go can represent.
    """
    text = value.strip()
    if not text:
        raise DurationParseError(value, "empty duration")
    if text.startswith("-"):
        raise DurationParseError(value, "negative durations are not allowed")
    if text.startswith("+"):
        text = text[1:]
    if text == "0":
        return datetime.timedelta(0)

    total = 0.0
    position = 0
    while position < len(text):
        match = _COMPONENT.match(text, position)
        if match is None:
            raise DurationParseError(
                value, f"unexpected input at {text[position:]!r}"
            )
        number, unit = match.groups()
        total += float(number) * _UNIT_SECONDS[unit]
        position = match.end()

    if total > MAX_DURATION_SECONDS:
        raise DurationParseError(value, "duration exceeds 2562047h")
    try:
        return datetime.timedelta(seconds=total)
    except OverflowError as exc:
        raise DurationParseError(value, "duration out of range") from exc


class ListingConfig(BaseModel):
    """Everything a listing run needs, collected in one frozen value.

    Parameters
    ----------
    socket_path:
        Filesystem path of the agent socket.
    filter:
        Case-insensitive substring to match against comment and key type.
    window:
        Certificates expiring within this window are marked. Accepts a
        ``timedelta`` or a duration string.
    verbose:
        Also report unmarked matching certificates and plain keys.
    terse:
        Report only through the exit code. Exclusive with *verbose*.
    timeout:
        Socket deadline in seconds, or None to block indefinitely.
    """

    model_config = ConfigDict(frozen=True)

    socket_path: str
    filter: str = ""
    window: datetime.timedelta = DEFAULT_WINDOW
    verbose: bool = False
    terse: bool = False
    timeout: Optional[float] = DEFAULT_TIMEOUT

    @field_validator("window", mode="before")
    @classmethod
    def _parse_window(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("window")
    @classmethod
    def _non_negative_window(cls, value: datetime.timedelta) -> datetime.timedelta:
        if value < datetime.timedelta(0):
            raise ValueError("window must not be negative")
        return value

    @model_validator(mode="after")
    def _verbose_excludes_terse(self) -> "ListingConfig":
        if self.verbose and self.terse:
            raise ConfigurationError("verbose and terse are mutually exclusive")
        return self
