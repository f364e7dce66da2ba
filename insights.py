"""
List, timeline, calendar and analytics views over a user's tasks.

Everything here is a pure function of a task list and a reference time, so
the dashboard views and their JSON endpoints agree on the grouping rules.
"""

from __future__ import annotations

import calendar
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from database import TASK_PRIORITIES, Task, utcnow

PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}
STATUS_RANK = {"pending": 0, "completed": 1}
TIMELINE_RANGES = ("all", "today", "week", "month")
SORT_KEYS = ("priority", "due_date", "status")


def format_duration(minutes: int) -> str:
    """125 -> '2h 5m'"""
    minutes = max(int(minutes), 0)
    return f"{minutes // 60}h {minutes % 60}m"


def timer_seconds(task: Task, timer_type: str) -> int:
    ts = task.timer_settings
    if timer_type == "work":
        return ts["pomodoro_length"] * 60
    if timer_type == "shortBreak":
        return ts["short_break"] * 60 + ts["short_break_seconds"]
    if timer_type == "longBreak":
        return ts["long_break"] * 60 + ts["long_break_seconds"]
    raise ValueError(f"unknown timer type: {timer_type}")


# ---------- List view ----------
def filter_tasks(
    tasks: Iterable[Task],
    priority: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Task]:
    out = list(tasks)
    if priority and priority != "all":
        out = [t for t in out if t.priority == priority]
    if status and status != "all":
        out = [t for t in out if t.status == status]
    if search:
        needle = search.strip().lower()
        out = [t for t in out if needle in (t.title or "").lower()]
    return out


def sort_tasks(tasks: Iterable[Task], sort_by: Optional[str]) -> List[Task]:
    out = list(tasks)
    # sorted() is stable, so ties keep the incoming (newest-first) order
    if sort_by == "priority":
        return sorted(out, key=lambda t: PRIORITY_RANK.get(t.priority, 1))
    if sort_by == "due_date":
        return sorted(out, key=lambda t: (t.due_date is None, t.due_date or datetime.max))
    if sort_by == "status":
        return sorted(out, key=lambda t: STATUS_RANK.get(t.status, 0))
    return out


# ---------- Timeline ----------
def _in_range(day: date, range_: str, today: date) -> bool:
    if range_ == "today":
        return day == today
    if range_ == "week":
        # Sunday-first, same as the calendar grid
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return start <= day < start + timedelta(days=7)
    if range_ == "month":
        return (day.year, day.month) == (today.year, today.month)
    return True


def timeline(
    tasks: Iterable[Task], range_: str = "all", today: Optional[date] = None
) -> List[Tuple[date, List[Task]]]:
    """Tasks with a due date grouped per day, oldest day first."""
    if range_ not in TIMELINE_RANGES:
        raise ValueError(f"unknown timeline range: {range_}")
    today = today or utcnow().date()
    groups: Dict[date, List[Task]] = defaultdict(list)
    for t in tasks:
        if t.due_date is None:
            continue
        day = t.due_date.date()
        if _in_range(day, range_, today):
            groups[day].append(t)
    return sorted(groups.items(), key=lambda kv: kv[0])


# ---------- Calendar ----------
def calendar_month(
    tasks: Iterable[Task], year: int, month: int
) -> Tuple[int, List[Tuple[date, List[Task]]]]:
    """
    One entry per day of ``month`` with the tasks due that day.

    Also returns how many blank cells precede day 1 in a grid whose
    columns run Sunday..Saturday.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month out of range: {month}")
    first_weekday, days_in_month = calendar.monthrange(year, month)
    leading_blanks = (first_weekday + 1) % 7

    by_day: Dict[date, List[Task]] = defaultdict(list)
    for t in tasks:
        if t.due_date is not None and (t.due_date.year, t.due_date.month) == (year, month):
            by_day[t.due_date.date()].append(t)

    days = []
    for n in range(1, days_in_month + 1):
        d = date(year, month, n)
        days.append((d, by_day.get(d, [])))
    return leading_blanks, days


# ---------- Analytics ----------
def analytics(tasks: Sequence[Task], now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    total = len(tasks)
    completed = sum(1 for t in tasks if t.status == "completed")
    overdue = sum(
        1 for t in tasks if t.status == "pending" and t.due_date is not None and t.due_date < now
    )
    tracked = sum(t.time_spent or 0 for t in tasks)
    average = round(tracked / max(completed, 1))
    return {
        "total": total,
        "completed": completed,
        "pending": total - completed,
        "overdue": overdue,
        "completion_rate": round(completed / total * 100, 1) if total else 0.0,
        "by_priority": {p: sum(1 for t in tasks if t.priority == p) for p in TASK_PRIORITIES},
        "total_time_tracked": tracked,
        "average_time_per_task": average,
        "total_time_tracked_label": format_duration(tracked),
        "average_time_per_task_label": format_duration(average),
    }
