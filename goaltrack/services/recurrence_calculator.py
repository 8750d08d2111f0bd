# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

"""
Works out the dates on which an action item should have a ScheduledTask.

Everything here is pure date arithmetic: no sessions, no writes. Callers are
responsible for skipping dates that already have a row, which keeps schedule
generation idempotent.

Weekday numbers follow the stored convention 0=Sunday .. 6=Saturday.
"""

import calendar
import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from dateutil import rrule
from dateutil.relativedelta import relativedelta

from goaltrack.models.action_item import ActionItem, TaskType
from goaltrack.schemas.action_item_schemas import TaskRecurrence, FrequencyGoal

logger = logging.getLogger(__name__)

_RRULE_FREQ = {
    "daily": rrule.DAILY,
    "weekly": rrule.WEEKLY,
}


def to_python_weekday(day: int) -> int:
    """0=Sunday based -> date.weekday() (0=Monday)."""
    return (day - 1) % 7


def from_python_weekday(weekday: int) -> int:
    return (weekday + 1) % 7


def _clip_end(end: date, ends_at: Optional[date]) -> date:
    if ends_at and ends_at < end:
        return ends_at
    return end


def recurrence_dates(recurrence: TaskRecurrence, anchor: Optional[date], start: date, end: date) -> List[date]:
    """
    Dates produced by a recurrence inside [start, end], never after ends_at.

    Interval recurrences step from the anchor (starts_on, else the item's
    creation date). days_of_week narrows daily/weekly recurrences to the listed
    weekdays; monthly/yearly keep the anchor's day of month and clamp to the
    month's last day (Jan 31 -> Feb 29 -> Mar 31).
    """
    if recurrence is None or not recurrence.enabled:
        return []

    end = _clip_end(end, recurrence.ends_at)
    anchor = recurrence.starts_on or anchor or start
    if start > end or anchor > end:
        return []

    if recurrence.frequency in _RRULE_FREQ:
        byweekday = None
        if recurrence.days_of_week:
            byweekday = [rrule.weekday(to_python_weekday(d)) for d in recurrence.days_of_week]

        rule = rrule.rrule(
            _RRULE_FREQ[recurrence.frequency],
            interval=recurrence.interval,
            dtstart=datetime.combine(anchor, datetime.min.time()),
            until=datetime.combine(end, datetime.min.time()),
            byweekday=byweekday,
            wkst=rrule.SU,
        )
        return [dt.date() for dt in rule if dt.date() >= start]

    unit = "months" if recurrence.frequency == "monthly" else "years"

    results = []
    k = 0
    while True:
        # Always offset from the anchor so clamped days do not drift
        current = anchor + relativedelta(**{unit: k * recurrence.interval})
        if current > end:
            break
        if current >= start:
            results.append(current)
        k += 1
    return results


def _period_windows(period: str, start: date, end: date):
    """Yield (window_start, window_length) for every period touching [start, end]."""
    if period == "week":
        # ISO weeks, Monday first
        window_start = start - timedelta(days=start.weekday())
        while window_start <= end:
            yield window_start, 7
            window_start += timedelta(days=7)
    else:
        window_start = start.replace(day=1)
        while window_start <= end:
            yield window_start, calendar.monthrange(window_start.year, window_start.month)[1]
            window_start += relativedelta(months=1)


def frequency_goal_dates(frequency_goal: FrequencyGoal, start: date, end: date) -> List[date]:
    """
    Dates for an "N times per week/month" goal inside [start, end].

    With fixed_days every listed weekday is scheduled. Without them each whole
    period window gets `count` dates at offsets floor(i * length / count), so
    the picks are spread evenly and do not depend on the requested range.
    """
    if frequency_goal is None or start > end:
        return []

    if frequency_goal.fixed_days:
        wanted = {to_python_weekday(d) for d in frequency_goal.fixed_days}
        days = (end - start).days + 1
        return [start + timedelta(days=i) for i in range(days)
                if (start + timedelta(days=i)).weekday() in wanted]

    results = []
    for window_start, length in _period_windows(frequency_goal.period, start, end):
        count = min(frequency_goal.count, length)
        offsets = sorted({(i * length) // count for i in range(count)})
        for offset in offsets:
            current = window_start + timedelta(days=offset)
            if start <= current <= end:
                results.append(current)
    return results


def dates_for_item(item: ActionItem, start: date, end: date) -> List[date]:
    if item.task_type == TaskType.one_time:
        if item.target_date and start <= item.target_date <= end:
            return [item.target_date]
        return []

    if item.task_type == TaskType.recurring:
        return recurrence_dates(item.recurrence_config, item.anchor_date, start, end)

    if item.task_type == TaskType.frequency_based:
        return frequency_goal_dates(item.frequency_goal_config, start, end)

    logger.warning("Unknown task type %s for action item %s", item.task_type, item.id)
    return []
