"""Filter & Expiry Engine — pure decision logic over certificate records.

None of these functions mutate their input; :func:`evaluate` and
:func:`mark` return new records.
"""
from __future__ import annotations

import dataclasses
import datetime
import logging

from agent_certs.keys.parser import KeyKind
from agent_certs.keys.record import CertificateRecord

logger = logging.getLogger(__name__)


def evaluate_filter(record: CertificateRecord, filter_string: str) -> bool:
    """Return True if *filter_string* matches the record.

    An empty filter matches everything. Otherwise the match is a
    case-insensitive substring test against ``comment + format_tag``.
    """
    if not filter_string:
        return True
    haystack = (record.comment + record.format_tag).lower()
    return filter_string.lower() in haystack


def expires_in(record: CertificateRecord, now: datetime.datetime) -> datetime.timedelta:
    """Return the signed time left before the certificate expires.

    Plain keys have no expiry and always report zero.
    """
    key = record.key
    if key.kind is KeyKind.PLAIN:
        return datetime.timedelta(0)
    return key.valid_before - now


def evaluate_expiry(
    record: CertificateRecord,
    now: datetime.datetime,
    window: datetime.timedelta,
) -> bool:
    """Return True if the certificate expires within *window* of *now*.

    Already-expired certificates are always expiring. Plain keys are never
    expiring and do not raise.
    """
    if record.key.kind is KeyKind.PLAIN:
        return False
    return expires_in(record, now) <= window


def mark(record: CertificateRecord) -> CertificateRecord:
    """Return a copy of *record* with ``marked`` recomputed from its flags."""
    marked = record.is_certificate and record.filter_matched and record.is_expiring
    return dataclasses.replace(record, marked=marked)


def evaluate(
    record: CertificateRecord,
    filter_string: str,
    now: datetime.datetime,
    window: datetime.timedelta,
) -> CertificateRecord:
    """Compute every derived field of *record* in one step.

    Plain keys come back unchanged with their "not applicable" defaults.
    """
    if record.key.kind is KeyKind.PLAIN:
        return record

    evaluated = dataclasses.replace(
        record,
        filter_matched=evaluate_filter(record, filter_string),
        is_expiring=evaluate_expiry(record, now, window),
        expires_in=expires_in(record, now),
    )
    evaluated = mark(evaluated)
    logger.debug(
        "Certificate %r: matched=%s expiring=%s expires_in=%s marked=%s",
        record.comment,
        evaluated.filter_matched,
        evaluated.is_expiring,
        evaluated.expires_in,
        evaluated.marked,
    )
    return evaluated
