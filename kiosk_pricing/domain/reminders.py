"""Recharge reminder scheduling - next due date and urgency"""

from datetime import date, timedelta
from typing import Iterable, List, Optional

from kiosk_pricing.domain.models import CycleType, RechargeReminder, ReminderLabel, ReminderStatus
from kiosk_pricing.utils.date_utils import calendar_days_between, first_of_next_month, with_clamped_day

DEFAULT_CYCLE_DAYS = 30


def next_recharge_date(
    last_date: date,
    cycle_type: CycleType,
    cycle_day_of_month: Optional[int] = None,
    cycle_days: Optional[int] = None,
) -> date:
    """
    Next top-up due date.

    monthly: the configured day of the month after last_date, clamped to that
             month's length (day 31 in April -> April 30)
    days:    last_date + cycle_days
    A missing cycle parameter falls back to a 30-day cycle.
    """
    cycle_type = CycleType(cycle_type)
    if cycle_type == CycleType.MONTHLY and cycle_day_of_month:
        return with_clamped_day(first_of_next_month(last_date), cycle_day_of_month)
    if cycle_type == CycleType.DAYS and cycle_days and cycle_days > 0:
        return last_date + timedelta(days=cycle_days)
    return last_date + timedelta(days=DEFAULT_CYCLE_DAYS)


def days_until(target: date, today: date) -> int:
    """Calendar days from today to target; negative when overdue"""
    return calendar_days_between(today, target)


def urgency_label(days_remaining: int) -> ReminderLabel:
    if days_remaining < 0:
        return ReminderLabel(key="overdue", text="متأخر", color="red")
    if days_remaining == 0:
        return ReminderLabel(key="due_today", text="اليوم", color="red")
    if days_remaining == 1:
        return ReminderLabel(key="tomorrow", text="غداً", color="orange")
    if days_remaining <= 3:
        return ReminderLabel(key="soon", text=f"بعد {days_remaining} أيام", color="yellow")
    return ReminderLabel(key="upcoming", text=f"بعد {days_remaining} أيام", color="green")


def schedule_reminder(reminder: RechargeReminder) -> RechargeReminder:
    """Fill in next_recharge_date from the reminder's cycle"""
    reminder.next_recharge_date = next_recharge_date(
        reminder.last_recharge_date,
        reminder.cycle_type,
        reminder.cycle_day_of_month,
        reminder.cycle_days,
    )
    return reminder


def reminder_status(reminder: RechargeReminder, today: date) -> ReminderStatus:
    due = reminder.next_recharge_date or schedule_reminder(reminder).next_recharge_date
    remaining = days_until(due, today)
    return ReminderStatus(
        reminder=reminder,
        next_recharge_date=due,
        days_remaining=remaining,
        is_due_today=remaining == 0,
        is_overdue=remaining < 0,
        should_remind=remaining <= reminder.remind_before_days,
        label=urgency_label(remaining),
    )


def filter_reminders(statuses: Iterable[ReminderStatus], which: str = "all") -> List[ReminderStatus]:
    """all | today (due today) | week (due within 7 days, overdue included)"""
    if which == "today":
        return [s for s in statuses if s.is_due_today]
    if which == "week":
        return [s for s in statuses if s.days_remaining <= 7]
    return list(statuses)
