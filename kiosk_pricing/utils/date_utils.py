"""Date manipulation utilities"""

import calendar
from datetime import date, timedelta
from typing import Tuple


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def first_of_next_month(from_date: date) -> date:
    if from_date.month == 12:
        return date(from_date.year + 1, 1, 1)
    return date(from_date.year, from_date.month + 1, 1)


def with_clamped_day(month_start: date, day: int) -> date:
    """Same month, day-of-month clamped into [1, last day of that month]"""
    last_day = days_in_month(month_start.year, month_start.month)
    return month_start.replace(day=min(max(day, 1), last_day))


def trailing_window(today: date, days: int = 30) -> Tuple[date, date]:
    """Inclusive (start, end) of the last `days` calendar days ending today"""
    return today - timedelta(days=max(days, 1) - 1), today


def calendar_days_between(start: date, end: date) -> int:
    """end - start in whole calendar days (negative when end is earlier)"""
    return (end - start).days


def time_ago(when: date, today: date) -> str:
    """Arabic relative label: today, yesterday, N days/weeks/months/years ago"""
    diff = calendar_days_between(when, today)
    if diff <= 0:
        return "اليوم"
    if diff == 1:
        return "أمس"
    if diff < 7:
        return f"منذ {diff} أيام"
    if diff < 30:
        return f"منذ {diff // 7} أسابيع"
    if diff < 365:
        return f"منذ {diff // 30} أشهر"
    return f"منذ {diff // 365} سنوات"
