"""Next-fire calculation for timer set reminders"""
import calendar
from datetime import date, datetime, timedelta
from typing import Dict, Optional

from domain.models import NotificationConfig, NotificationRepeat

# year is a flat 365 days, leap years are not considered
UNIT_SECONDS: Dict[str, int] = {
    "minute": 60,
    "hour": 3600,
    "day": 86400,
    "week": 7 * 86400,
    "year": 365 * 86400,
}


def _js_weekday(d: date) -> int:
    # 0=Sunday .. 6=Saturday
    return (d.weekday() + 1) % 7


def base_datetime(config: NotificationConfig, today: date) -> datetime:
    """
    Combine the configured date and time.

    Raises:
        ValueError: malformed date (YYYY-MM-DD) or time (HH:MM)
    """
    d = date.fromisoformat(config.date) if config.date else today
    hh, mm = (config.time or "00:00").split(":")[:2]
    return datetime(d.year, d.month, d.day, int(hh), int(mm))


def _next_interval(base: datetime, repeat: NotificationRepeat, after: datetime) -> datetime:
    step = UNIT_SECONDS.get(repeat.unit, 60) * max(1, int(repeat.every))
    if base > after:
        return base
    k = int((after - base).total_seconds() // step) + 1
    return base + timedelta(seconds=k * step)


def _next_weekday(base: datetime, repeat: NotificationRepeat, after: datetime) -> Optional[datetime]:
    if not repeat.weekdays:
        return None
    weeks = max(1, int(repeat.interval_weeks))
    wanted = set(repeat.weekdays)
    base_week_start = base.date() - timedelta(days=_js_weekday(base.date()))

    day = max(after.date(), base.date())
    for _ in range(7 * weeks + 7):
        if _js_weekday(day) in wanted:
            week_index = (day - base_week_start).days // 7
            if week_index % weeks == 0:
                candidate = datetime(day.year, day.month, day.day, base.hour, base.minute)
                if candidate > after:
                    return candidate
        day += timedelta(days=1)
    return None


def _nth_weekday_of_month(year: int, month: int, nth: int, js_weekday: int) -> Optional[date]:
    days_in_month = calendar.monthrange(year, month)[1]
    matches = [
        date(year, month, d)
        for d in range(1, days_in_month + 1)
        if _js_weekday(date(year, month, d)) == js_weekday
    ]
    if nth >= 5:
        return matches[-1]
    if 1 <= nth <= len(matches):
        return matches[nth - 1]
    return None


def _next_monthly(base: datetime, repeat: NotificationRepeat, after: datetime) -> Optional[datetime]:
    start = max(after, base)
    year, month = start.year, start.month
    for _ in range(25):
        d = _nth_weekday_of_month(year, month, int(repeat.nth_week), int(repeat.weekday))
        if d is not None:
            candidate = datetime(d.year, d.month, d.day, base.hour, base.minute)
            if candidate > after and candidate >= base.replace(hour=0, minute=0):
                return candidate
        month += 1
        if month > 12:
            month = 1
            year += 1
    return None


def next_occurrence(config: Optional[NotificationConfig], after: datetime) -> Optional[datetime]:
    """
    Next time a reminder should fire strictly after `after`.

    Returns None when the config is disabled, a one-shot time already passed,
    or the repeat rule can never match.
    """
    if config is None or not config.enabled:
        return None

    base = base_datetime(config, after.date())
    repeat = config.repeat
    if repeat is None:
        return base if base > after else None

    if repeat.mode == "interval":
        return _next_interval(base, repeat, after)
    if repeat.mode == "weekday":
        return _next_weekday(base, repeat, after)
    if repeat.mode == "monthly":
        return _next_monthly(base, repeat, after)

    raise ValueError(f"Invalid repeat mode: {repeat.mode}")
