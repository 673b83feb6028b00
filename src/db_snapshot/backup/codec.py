"""Snapshot encoding and decoding.

A snapshot is the JSON text of one table's record set, indented by two
spaces, with field order preserved.  Record values are restricted to
``None``, ``bool``, ``int``/``float``, ``str``, ``datetime``, ``dict``
and ``list``.

``datetime`` has no JSON representation, so it is written as an ISO-8601
UTC string with millisecond precision (``2024-05-01T12:30:00.250Z``).
On decode every string with exactly that shape is turned back into a
UTC-aware ``datetime``, wherever it sits in the structure.  The rule has
no schema hint: a plain string that happens to look like an instant is
revived too.

Usage:
    from db_snapshot.backup.codec import decode, encode

    data = encode([{"id": 1, "created_at": datetime.now(timezone.utc)}])
    rows = decode(data)
"""

import json
import re
from datetime import datetime, timezone
from typing import Any

from db_snapshot.errors import EncodeError, ParseError

# "." before the milliseconds is unescaped; parse_instant() rejects other characters there
INSTANT_PATTERN = re.compile(
    r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}.\d{3}Z", re.ASCII
)


def format_instant(value: datetime) -> str:
    """Format a datetime as ``YYYY-MM-DDTHH:MM:SS.sssZ`` in UTC.

    Naive datetimes are taken to be UTC.  Precision below one millisecond
    is truncated.

    Example:
        >>> format_instant(datetime(2024, 5, 1, 12, 30, 0, 250999, tzinfo=timezone.utc))
        '2024-05-01T12:30:00.250Z'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
        f".{value.microsecond // 1000:03d}Z"
    )


def parse_instant(value: str) -> datetime | None:
    """Parse a string matching the instant pattern, or return None.

    Returns None for strings of the right shape that are not a real
    calendar instant (``2024-13-40T99:00:00.000Z``), including those
    with something other than ``.`` before the milliseconds
    (``2024-05-01T12:30:00X250Z``).
    """
    if not INSTANT_PATTERN.fullmatch(value) or value[19] != ".":
        return None
    try:
        return datetime(
            int(value[0:4]),
            int(value[5:7]),
            int(value[8:10]),
            int(value[11:13]),
            int(value[14:16]),
            int(value[17:19]),
            int(value[20:23]) * 1000,
            tzinfo=timezone.utc,
        )
    except ValueError:
        return None


def revive(value: Any) -> Any:
    """Recursively replace instant-shaped strings with datetimes."""
    if isinstance(value, str):
        instant = parse_instant(value)
        return value if instant is None else instant
    if isinstance(value, dict):
        return {k: revive(v) for k, v in value.items()}
    if isinstance(value, list):
        return [revive(v) for v in value]
    return value


def _encode_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_instant(value)
    raise TypeError(f"Object of type {type(value).__name__} is not a record value")


def encode(rows: list[dict]) -> bytes:
    """Encode a record set as indented UTF-8 JSON.

    Raises:
        EncodeError: If a value is outside the record value types, or is a
            float JSON cannot represent (NaN, infinity).
    """
    try:
        text = json.dumps(
            rows,
            indent=2,
            ensure_ascii=False,
            allow_nan=False,
            default=_encode_default,
        )
    except (TypeError, ValueError) as e:
        raise EncodeError(f"Cannot encode record set: {e}") from e
    return text.encode("utf-8")


def decode(data: bytes | str) -> list[dict]:
    """Decode snapshot content back into a record set.

    Raises:
        ParseError: If the content is not UTF-8 JSON, or its top level is
            not a list of objects.
    """
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        parsed = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ParseError(f"Malformed snapshot: {e}") from e

    if not isinstance(parsed, list) or not all(isinstance(r, dict) for r in parsed):
        raise ParseError("Malformed snapshot: expected a list of records")

    return revive(parsed)
