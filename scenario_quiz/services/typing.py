from datetime import datetime, timezone


def to_iso(value) -> str:
    # stores hand back either datetimes or ISO strings; emit UTC ISO-8601
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    return str(value)
