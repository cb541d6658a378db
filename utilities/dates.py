"""
UTC calendar-date helpers and human readable time formatting.
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Optional

# Daily checks are assumed to happen around midday UTC.
CHECK_HOUR_UTC = 12


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_today_date(now: Optional[datetime] = None) -> str:
    """Return today's UTC date as YYYY-MM-DD."""
    now = now or utc_now()
    return now.astimezone(timezone.utc).date().isoformat()


def get_date_one_day_before(day: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """Return the calendar day before ``day`` (today UTC when omitted)."""
    base = date.fromisoformat(day) if day else date.fromisoformat(get_today_date(now))
    return (base - timedelta(days=1)).isoformat()


def get_yesterday_date(now: Optional[datetime] = None) -> str:
    return get_date_one_day_before(now=now)


def check_time(day: str) -> datetime:
    """Instant representing the daily check on ``day``."""
    return datetime.combine(
        date.fromisoformat(day), datetime.min.time(), tzinfo=timezone.utc
    ).replace(hour=CHECK_HOUR_UTC)


def epoch_millis(moment: Optional[datetime] = None) -> int:
    moment = moment or utc_now()
    return int(moment.timestamp() * 1000)


def format_datetime(value: datetime) -> str:
    """Format an instant like ``November 19, 2024 at 12 PM UTC``."""
    value = value.astimezone(timezone.utc)
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{value:%B} {value.day}, {value.year} at {hour} {meridiem} UTC"


def _add_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_relative_time(value: datetime, now: Optional[datetime] = None) -> str:
    """
    Describe the time elapsed since ``value`` in words.

    The duration is balanced from years down to minutes, e.g.
    ``1 year, 2 months, 3 days``. Zero-valued units are omitted.
    """
    now = (now or utc_now()).astimezone(timezone.utc)
    start = value.astimezone(timezone.utc).replace(second=0, microsecond=0)
    now = now.replace(second=0, microsecond=0)
    if start > now:
        start, now = now, start

    months = (now.year - start.year) * 12 + (now.month - start.month)
    if _add_months(start, months) > now:
        months -= 1
    cursor = _add_months(start, months)

    remainder = now - cursor
    days = remainder.days
    hours, seconds = divmod(remainder.seconds, 3600)
    minutes = seconds // 60

    parts = []
    for count, unit in (
        (months // 12, "year"),
        (months % 12, "month"),
        (days, "day"),
        (hours, "hour"),
        (minutes, "minute"),
    ):
        if count:
            parts.append(_plural(count, unit))

    return ", ".join(parts) if parts else "0 minutes"

