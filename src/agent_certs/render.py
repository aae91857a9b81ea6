"""Text rendering for certificate records."""
from __future__ import annotations

import datetime
from decimal import ROUND_HALF_UP, Decimal

from agent_certs.keys.parser import KeyKind
from agent_certs.keys.record import CertificateRecord, fingerprint

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %Z"


def format_timestamp(value: datetime.datetime) -> str:
    return value.astimezone(datetime.timezone.utc).strftime(TIMESTAMP_FORMAT)


def whole_seconds(value: datetime.timedelta) -> int:
    """Round a duration to the nearest whole second, halves away from zero."""
    seconds = Decimal(value // datetime.timedelta(microseconds=1)).scaleb(-6)
    return int(seconds.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def render_record(record: CertificateRecord) -> str:
    """Render *record* as the plain text block shown to operators.

    Plain keys render as a single line; certificates as an indented block
    listing fingerprint, type, comment, validity, time left and mark.
    """
    key = record.key
    if key.kind is KeyKind.PLAIN:
        return f"key {record.format_tag} : is not a certificate"

    return "\n".join(
        [
            f"key {fingerprint(record)}",
            f"    type:       {key.key_type}",
            f"    comment:    {record.comment}",
            f"    validity:   {format_timestamp(key.valid_after)} to "
            f"{format_timestamp(key.valid_before)}",
            f"    expires in: {whole_seconds(record.expires_in)}s",
            f"    marked:     {str(record.marked).lower()}",
        ]
    )


def render_listing(records: list[CertificateRecord]) -> list[str]:
    """Render each record prefixed with its position in the listing."""
    return [f"{index} {render_record(record)}" for index, record in enumerate(records)]
