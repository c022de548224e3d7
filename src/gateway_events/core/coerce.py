"""Field-level repairs applied while decoding gateway payloads.

These are the few fields whose wire form is not what the domain model
stores: the resume URL (a ``wss://`` URL where a hostname is wanted) and
the two timestamp encodings used by the gateway.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

_WSS_PREFIX = "wss://"
_TRAILING_SLASH = "/"

# Calendar date, literal T, then hours, minutes and seconds
_DATE_TIME_PREFIX = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")


def extract_hostname(url: str) -> str:
    """Strip a leading ``wss://`` and a trailing ``/`` from *url*.

    Only those two literals are recognised; anything else passes through
    untouched. ``"wss://gateway.example.com/"`` becomes
    ``"gateway.example.com"``.
    """
    if url.startswith(_WSS_PREFIX):
        url = url[len(_WSS_PREFIX):]
    if url.endswith(_TRAILING_SLASH):
        url = url[: -len(_TRAILING_SLASH)]
    return url


def posix_to_utc(value: Any) -> datetime:
    """Convert POSIX epoch seconds to an aware UTC ``datetime``.

    Raises ``ValueError`` for anything that is not an int or float.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(
            f"expected POSIX seconds as a number, got {type(value).__name__}"
        )
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError(f"POSIX timestamp out of range: {value}") from exc


def parse_iso8601(text: str) -> datetime | None:
    """Parse an ISO-8601 date-time, returning ``None`` when it does not parse.

    A full ``YYYY-MM-DDTHH:MM:SS`` date-time is required; date-only and
    space-separated forms are rejected. Naive results are taken to be UTC.
    """
    if not _DATE_TIME_PREFIX.match(text):
        return None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
