# tourbot/core/travel/timezones.py
"""
TIMEZONES MODULE - Turn naive local timestamps into absolute instants

Purpose:
    Flight tables store departure times as local wall-clock strings
    ("2025-03-15T09:00:00") next to an IANA zone name ("Australia/Sydney").
    To filter and sort flights we need the absolute instant.

Algorithm:
    1. Read Y-M-D h:m:s straight from fixed string offsets
    2. Pretend those fields are UTC → provisional instant
    3. Ask the zone what its UTC offset is at that instant
    4. Subtract → first guess
    5. Ask again at the guess and subtract from the provisional instant

The second pass fixes the guess when a DST switch sits between the
provisional instant and the real one. Zones never change offset twice
inside one day, so two passes are enough.
"""

import calendar
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def resolve_zone(zone: str) -> ZoneInfo:
    """
    Look up an IANA zone.

    Raises:
        ValueError: empty, malformed or unknown zone name
    """
    if not zone or not str(zone).strip():
        raise ValueError("Timezone name is empty")
    try:
        return ZoneInfo(str(zone).strip())
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {zone!r}") from e


def _read_component(local_iso: str, start: int, end: int, default: Optional[int] = None) -> int:
    chunk = local_iso[start:end]
    if not chunk:
        if default is None:
            raise ValueError(f"Incomplete local timestamp: {local_iso!r}")
        return default
    if not chunk.isdigit():
        raise ValueError(f"Malformed local timestamp: {local_iso!r}")
    return int(chunk)


def parse_local_fields(local_iso: str) -> tuple:
    """
    Split "YYYY-MM-DDTHH:MM:SS" into six integers.

    Hours, minutes and seconds are optional and default to 0.
    No general date parsing happens here, so the process timezone
    can never leak into the result.

    Examples:
        "2025-03-15T09:00:00" → (2025, 3, 15, 9, 0, 0)
        "2025-03-15T09:00"    → (2025, 3, 15, 9, 0, 0)
        "2025-03-15"          → (2025, 3, 15, 0, 0, 0)
    """
    local_iso = str(local_iso or "").strip()

    year = _read_component(local_iso, 0, 4)
    month = _read_component(local_iso, 5, 7)
    day = _read_component(local_iso, 8, 10)
    hour = _read_component(local_iso, 11, 13, 0)
    minute = _read_component(local_iso, 14, 16, 0)
    second = _read_component(local_iso, 17, 19, 0)

    # Let datetime reject 2025-02-30, 25:00 and friends
    datetime(year, month, day, hour, minute, second)
    return year, month, day, hour, minute, second


def _fields_as_utc_ms(fields: tuple) -> int:
    return calendar.timegm(fields) * 1000


def offset_ms_at(utc_ms: int, zone: str) -> int:
    """
    UTC offset of `zone` at the instant `utc_ms`, in milliseconds.

    Renders the instant as wall-clock fields in the zone, reads those
    fields back as if they were UTC and takes the difference.

    Example:
        Sydney in January (AEDT) → 39_600_000 (+11h)
    """
    tz = resolve_zone(zone)
    try:
        local = datetime.fromtimestamp(utc_ms / 1000, tz=tz)
    except (OverflowError, OSError) as e:
        raise ValueError(f"Instant {utc_ms} is out of range in {zone}") from e
    wall = (local.year, local.month, local.day, local.hour, local.minute, local.second)
    # whole seconds only; sub-second part is identical on both sides
    return _fields_as_utc_ms(wall) - (utc_ms // 1000) * 1000


def to_epoch_ms(local_iso: str, zone: str) -> int:
    """
    Convert a naive local timestamp in `zone` to epoch milliseconds.

    Args:
        local_iso: "YYYY-MM-DDTHH:MM:SS" (seconds optional), no offset
        zone: IANA zone name, e.g. "Australia/Sydney"

    Returns:
        Milliseconds since the Unix epoch

    Raises:
        ValueError: malformed timestamp, unknown zone, or a wall clock
            too close to the calendar limits to convert

    Example:
        to_epoch_ms("2025-03-15T09:00:00", "Australia/Sydney")
        → 1741989600000  (2025-03-14T22:00:00Z)
    """
    base = _fields_as_utc_ms(parse_local_fields(local_iso))

    offset = offset_ms_at(base, zone)
    guess = base - offset

    # second pass: the offset at the guess, not at the provisional instant
    offset = offset_ms_at(guess, zone)
    return base - offset


def from_epoch_ms(epoch_ms: int, zone: str) -> datetime:
    """Aware datetime for `epoch_ms` as seen on a wall clock in `zone`."""
    tz = resolve_zone(zone)
    try:
        return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).astimezone(tz)
    except (OverflowError, OSError) as e:
        raise ValueError(f"Instant {epoch_ms} is out of range in {zone}") from e


def local_date_key(epoch_ms: int, zone: str) -> str:
    """Calendar date ("YYYY-MM-DD") of `epoch_ms` in `zone`."""
    return from_epoch_ms(epoch_ms, zone).strftime("%Y-%m-%d")


def pretty_date(epoch_ms: int, zone: str) -> str:
    """
    Long weekday + date in the zone, e.g. "Saturday 15 March 2025".
    """
    local = from_epoch_ms(epoch_ms, zone)
    return f"{local:%A} {local.day} {local:%B} {local.year}"


def pretty_time(epoch_ms: int, zone: str) -> str:
    """24-hour time of day in the zone, e.g. "09:00"."""
    return from_epoch_ms(epoch_ms, zone).strftime("%H:%M")
