"""
Conversions between wall-clock readings and absolute instants.

An *instant* is a timezone-aware ``datetime`` in UTC. A wall clock is the
naive reading a user typed into a local datetime control. Offsets are signed
minutes east of UTC (``+120`` for UTC+2, ``-300`` for UTC-5), the same sign
``datetime.utcoffset()`` uses, so:

    instant = wall_clock_as_if_utc - offset

The offset is applied with its sign. Taking its absolute value would invert
every conversion east of UTC.
"""
import re
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from gradekeeper.engine.errors import InvalidDate

_EXPLICIT_OFFSET = re.compile(r"T.*([+-]\d{2}:?\d{2}|Z)$")

# real zones run from UTC-12 to UTC+14
MAX_OFFSET_MINUTES = 14 * 60


class LocalWallClock(NamedTuple):
    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0

    def as_naive(self) -> datetime:
        try:
            return datetime(self.year, self.month, self.day, self.hour, self.minute)
        except (TypeError, ValueError) as exc:
            raise InvalidDate(tuple(self)) from exc


def _require_instant(value) -> datetime:
    if not isinstance(value, datetime) or value.utcoffset() is None:
        raise InvalidDate(value)
    return value


def ensure_utc(value: datetime) -> datetime:
    """Coerce a stored datetime to an aware UTC instant.

    SQLite hands back naive datetimes; those are taken to already be UTC.
    """
    if not isinstance(value, datetime):
        raise InvalidDate(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except OverflowError as exc:
        raise InvalidDate(value) from exc


def to_instant(wall_clock: LocalWallClock, tz_offset_minutes: int) -> datetime:
    as_if_utc = wall_clock.as_naive().replace(tzinfo=timezone.utc)
    try:
        return as_if_utc - timedelta(minutes=tz_offset_minutes)
    except OverflowError as exc:
        raise InvalidDate(tuple(wall_clock)) from exc


def to_local_wall_clock(instant: datetime, tz_offset_minutes: int) -> LocalWallClock:
    instant = _require_instant(instant)
    try:
        local = instant.astimezone(timezone.utc) + timedelta(minutes=tz_offset_minutes)
    except OverflowError as exc:
        raise InvalidDate(instant) from exc
    return LocalWallClock(local.year, local.month, local.day, local.hour, local.minute)


def remaining(instant: datetime, now: datetime) -> timedelta:
    """Signed time left until ``instant``; negative once it has passed."""
    return _require_instant(instant) - _require_instant(now)


def is_overdue(instant: datetime, now: datetime) -> bool:
    return _require_instant(now) >= _require_instant(instant)


def parse_instant(raw) -> datetime:
    """
    Parse an ISO-8601 timestamp into a UTC instant.

    Strings without an offset are assumed to be UTC, as records coming from
    the persistence layer are.
    """
    if isinstance(raw, datetime):
        return ensure_utc(raw)
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidDate(raw)

    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise InvalidDate(raw) from exc
    return ensure_utc(parsed)


def parse_wall_clock(raw: str) -> LocalWallClock:
    """Parse the ``YYYY-MM-DDTHH:mm`` value of a local datetime control."""
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidDate(raw)
    try:
        parsed = datetime.fromisoformat(raw.strip())
    except ValueError as exc:
        raise InvalidDate(raw) from exc
    if parsed.tzinfo is not None:
        raise InvalidDate(raw)
    return LocalWallClock(parsed.year, parsed.month, parsed.day, parsed.hour, parsed.minute)


def format_wall_clock(wall_clock: LocalWallClock) -> str:
    return wall_clock.as_naive().strftime("%Y-%m-%dT%H:%M")


def normalize_due(raw: str, tz_offset_minutes: int) -> datetime:
    """
    Turn a due-date string into an instant.

    Strings that already carry ``Z`` or an explicit ``±HH:MM`` are absolute
    and are not shifted again; bare wall-clock strings are converted with
    the caller's offset.
    """
    if isinstance(raw, str) and _EXPLICIT_OFFSET.search(raw.strip()):
        return parse_instant(raw)
    return to_instant(parse_wall_clock(raw), tz_offset_minutes)


def system_offset_minutes(at: datetime) -> int:
    """UTC offset of the host timezone at ``at``, in minutes east of UTC."""
    offset = _require_instant(at).astimezone().utcoffset()
    return int(offset.total_seconds() // 60)
