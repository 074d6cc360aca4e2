from datetime import datetime, timezone

TS_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_ts(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(TS_FORMAT)


def now_str() -> str:
    return format_ts(utc_now())


def parse_ts(value: str | datetime | None) -> datetime | None:
    """Parse a stored or user-supplied timestamp into an aware UTC datetime.

    Accepts the storage format (``2025-01-31T09:00:00Z``), any ISO-8601 string
    and bare dates (``2025-01-31``, read as midnight UTC). Naive values are
    treated as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
