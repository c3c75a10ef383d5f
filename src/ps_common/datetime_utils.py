"""UTC datetime utilities and viewer-local calendar dates."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: datetime | str | None) -> datetime | None:
    """Parse an ISO-8601 value from a row payload; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        # Postgres JSON emits "+00:00"; some clients send a trailing "Z"
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def resolve_timezone(name: str) -> ZoneInfo:
    """Look up an IANA zone name, raising ValueError for unknown names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name}") from e


def local_date(ts: datetime, tz: ZoneInfo) -> date:
    """Calendar date of ts as seen by a viewer in tz."""
    return ts.astimezone(tz).date()


def local_date_key(ts: datetime, tz: ZoneInfo) -> str:
    """YYYY-MM-DD key of ts in the viewer's zone."""
    return local_date(ts, tz).isoformat()
