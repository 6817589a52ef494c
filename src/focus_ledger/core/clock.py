"""Time helpers shared by the controller and the command line."""

from datetime import datetime, timezone, tzinfo
from typing import Union

from focus_ledger.core.errors import ValidationError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_instant(value: Union[datetime, str]) -> datetime:
    """Accept an aware datetime or ISO-8601 string and return it in UTC."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise ValidationError(f"Invalid timestamp: {value!r}") from e
    if not isinstance(value, datetime):
        raise ValidationError(f"Invalid timestamp: {value!r}")
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationError(f"Timestamp must carry a timezone: {value.isoformat()}")
    return value.astimezone(timezone.utc)


def localize(value: str, tz: tzinfo) -> datetime:
    """Parse a wall-clock string, attaching ``tz`` when it has no offset."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return to_instant(parsed)


def format_elapsed(seconds: int) -> str:
    """H:MM:SS once past an hour, MM:SS before that."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02}:{secs:02}"
    return f"{minutes:02}:{secs:02}"


def hour_progress(seconds: int) -> float:
    """Fraction of the current hour-long goal reached, capped at 1."""
    return min(max(seconds, 0) / 3600, 1.0)
