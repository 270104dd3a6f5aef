"""
Derived statistics for the dashboard cards.

"Today" is a plain string match on the local calendar date. "Last 7 days"
compares the entry date, read as local midnight, against now minus 7 days.
"""

from datetime import datetime, time, timedelta
from typing import Iterable, List, Optional

from models.health_entry import HealthEntry, round_half_up, to_number

WEEK = timedelta(days=7)


def today_key(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return now.strftime("%Y-%m-%d")


def today_entry(entries: Iterable[HealthEntry], now: Optional[datetime] = None) -> Optional[HealthEntry]:
    key = today_key(now)
    return next((e for e in entries if e.entry_date == key), None)


def last_7_days(entries: Iterable[HealthEntry], now: Optional[datetime] = None) -> List[HealthEntry]:
    now = now or datetime.now()
    cutoff = now - WEEK
    week = []
    for e in entries:
        day = e.entry_day()
        if day is not None and datetime.combine(day, time.min) >= cutoff:
            week.append(e)
    return week


def total(field: str, entries: Iterable[HealthEntry]):
    return sum(to_number(getattr(e, field, 0)) for e in entries)


def average(field: str, entries: List[HealthEntry]) -> float:
    """Mean rounded to one decimal; an empty set averages to 0."""
    if not entries:
        return 0
    return round_half_up(total(field, entries) / len(entries), 1)


def _fmt(value):
    # 7.0 -> "7", 7.5 -> "7.5"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def summary_cards(entries: List[HealthEntry], now: Optional[datetime] = None) -> List[dict]:
    today = today_entry(entries, now)
    week = last_7_days(entries, now)

    return [
        {
            "title": "Today's Calories",
            "value": today.calories_consumed if today else 0,
            "subtitle": f"Burned: {today.calories_burned if today else 0}",
            "icon": "flame",
        },
        {
            "title": "Today's Workout",
            "value": f"{today.workout_minutes if today else 0} min",
            "subtitle": (today.workout_type if today and today.workout_type else "No workout"),
            "icon": "activity",
        },
        {
            "title": "Last Sleep",
            "value": f"{_fmt(today.sleep_hours) if today else 0}h",
            "subtitle": f"Quality: {today.sleep_quality if today else 0}/5",
            "icon": "moon",
        },
        {
            "title": "Weekly Average",
            "value": f"{_fmt(average('workout_minutes', week))} min",
            "subtitle": f"Sleep: {_fmt(average('sleep_hours', week))}h",
            "icon": "trending-up",
        },
    ]
