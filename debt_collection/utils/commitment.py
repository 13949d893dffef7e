"""Helpers for the payment-commitment marker collectors type into notes.

Older mobile clients do not send ``commitmentDate``; they append
``"Komitmen: <when>"`` to the visit notes instead. The marker alone makes the
visit a commitment. The text after it is kept as typed and read as a date
when it can be; collectors write day-first (``05/02/2026`` is 5 February).
"""

from __future__ import annotations

import re
from datetime import date
from typing import NamedTuple

from dateutil import parser as dateparser

COMMITMENT_MARKER = "Komitmen:"

_MARKER_RE = re.compile(r"Komitmen:\s*(?P<value>[^\n;,]*)")


class InvalidCommitmentDate(ValueError):
    """Raised when a value given as a date cannot be read as one."""


class Commitment(NamedTuple):
    text: str
    date: date | None


def has_commitment_marker(notes: str | None) -> bool:
    return bool(notes) and COMMITMENT_MARKER in notes


def parse_commitment_date(value) -> date | None:
    """Parse an ISO or day-first date string; ``None``/blank stays ``None``."""
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return dateparser.isoparse(text).date()
    except (ValueError, OverflowError):
        pass
    try:
        return dateparser.parse(text, dayfirst=True, fuzzy=True).date()
    except (ValueError, OverflowError) as exc:
        raise InvalidCommitmentDate(f"Invalid commitment date: {value!r}") from exc


def commitment_from_notes(notes: str | None) -> Commitment | None:
    """Return the commitment a ``Komitmen:`` marker records, if any.

    ``date`` is ``None`` when the text after the marker is not a date
    (``"Komitmen: minggu depan"``); the visit is still a commitment.
    """
    if not has_commitment_marker(notes):
        return None
    match = _MARKER_RE.search(notes)
    text = match.group("value").strip() if match else ""
    try:
        when = parse_commitment_date(text)
    except InvalidCommitmentDate:
        when = None
    return Commitment(text, when)
