"""
Calendar days vs. instants.

A booking day has no timezone: it travels as an ISO `YYYY-MM-DD` string and is
modelled as `datetime.date`. Instants (`arrived_at`, `entry_time`, ...) are
timezone-aware UTC datetimes. The only bridge between the two is the local
zone from settings, used to answer "what day is it today" and for display.
"""
import re
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from condo.core.config import settings
from condo.core.errors import ValidationError

LOCAL_TZ = ZoneInfo(settings.TIMEZONE)
DAY_FORMAT = re.compile(r"\d{4}-\d{2}-\d{2}")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_today() -> date:
    return datetime.now(LOCAL_TZ).date()


def parse_day(value, field: str = "date") -> date:
    """Accepts a `date` or a strict `YYYY-MM-DD` string. Datetimes and time parts are rejected."""
    if isinstance(value, datetime):
        raise ValidationError("Informe apenas a data, sem horário.", field=field)
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DAY_FORMAT.fullmatch(value):
        raise ValidationError("Data inválida. Use o formato AAAA-MM-DD.", detail=str(value), field=field)
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError("Data inválida. Use o formato AAAA-MM-DD.", detail=value, field=field)


def parse_stored_day(value, field: str = "date") -> date:
    """Like parse_day, for values read back from the store, which may carry a time part
    ("2025-03-10 00:00:00.000Z"); the day is the prefix."""
    if isinstance(value, str):
        value = value[:10]
    return parse_day(value, field=field)


def format_day(day: date) -> str:
    return day.strftime("%d/%m/%Y")


def parse_instant(value: str) -> datetime:
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_instant(value) -> str:
    """Local wall-clock rendering of a stored instant, e.g. 10/03/2025 às 14:30."""
    if not value:
        return "Data N/A"
    try:
        dt = value if isinstance(value, datetime) else parse_instant(str(value))
    except ValueError:
        return "Data Inválida"
    return dt.astimezone(LOCAL_TZ).strftime("%d/%m/%Y às %H:%M")
