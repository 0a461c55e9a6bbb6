import re
from datetime import date, datetime

from services.errors import ValidationError

TIME_OF_DAY_RE = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]:[0-5][0-9]$")


def parse_datetime(value, field: str) -> datetime:
    # Expect ISO format like "2026-01-20T18:00:00"; offsets are converted to local time
    if not isinstance(value, str) or not value.strip():
        raise ValidationError.for_field(field, f"Valid {field} is required")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError.for_field(field, f"Valid {field} is required") from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_date(value, field: str = "date") -> date:
    if not value:
        raise ValidationError.for_field(field, "Date parameter is required")
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError.for_field(field, "Invalid date. Use YYYY-MM-DD") from None


def parse_optional_datetime(value, field: str):
    if value in (None, ""):
        return None
    return parse_datetime(value, field)


def parse_time_of_day(value, field: str) -> str:
    if not isinstance(value, str) or not TIME_OF_DAY_RE.match(value):
        raise ValidationError.for_field(field, "Invalid time format")
    # normalize "9:00:00" -> "09:00:00"
    return value.zfill(8)


def parse_limit(value, default: int, maximum: int = 500) -> int:
    try:
        limit = int(value) if value not in (None, "") else default
    except (TypeError, ValueError):
        raise ValidationError.for_field("limit", "limit must be an integer") from None
    return max(1, min(limit, maximum))
