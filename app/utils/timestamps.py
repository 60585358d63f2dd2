"""
Timestamp helpers for rows coming out of Supabase.

Postgres renders timestamptz as e.g. ``2024-05-01 10:00:00.123+00`` which
``datetime.fromisoformat`` rejects on older interpreters, so offsets are
normalized before parsing.
"""
from datetime import datetime, timezone
from typing import Any

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a created_at value into an aware UTC datetime.

    Missing or unparsable values map to the epoch so they never win a
    "most recent" comparison and never raise.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if not isinstance(value, str) or not value.strip():
        return EPOCH

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    elif text.endswith("+00"):
        text = text + ":00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return EPOCH

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
