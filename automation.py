"""
Task automation: one-off actions and the condition/action rules stored on a task.

Rules fire on creation, on the pending -> completed transition, and when the
due-date sweep is triggered. Work done by a rule never fires further rules.

Actions only flush; the caller commits, or rolls back on ``AutomationError``.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from database import RULE_ACTIONS, Task, User, utcnow

logger = logging.getLogger(__name__)

FOLLOWUP_DELAY_HOURS = 24
MAX_DELAY_HOURS = 24 * 365


class AutomationError(Exception):
    pass


def parse_delay_hours(raw) -> float:
    """Follow-up delay from a rule parameter; 0 to one year, finite."""
    try:
        hours = float(raw)
    except (TypeError, ValueError):
        raise AutomationError(f"delay_hours must be a number, got {raw!r}")
    if not math.isfinite(hours) or not 0 <= hours <= MAX_DELAY_HOURS:
        raise AutomationError(f"delay_hours must be between 0 and {MAX_DELAY_HOURS}, got {raw!r}")
    return hours


def _delay_hours(parameters: dict) -> float:
    raw = parameters.get("delay_hours")
    if raw is None:
        return FOLLOWUP_DELAY_HOURS
    return parse_delay_hours(raw)


def create_followup(db: Session, task: Task, parameters: Optional[dict] = None,
                    now: Optional[datetime] = None) -> Task:
    parameters = parameters or {}
    now = now or utcnow()
    followup = Task(
        user_id=task.user_id,
        title=parameters.get("title") or f"Follow-up: {task.title}",
        description=f"Follow-up task for: {task.description or ''}",
        status="pending",
        priority=task.priority or "medium",
        due_date=now + timedelta(hours=_delay_hours(parameters)),
    )
    db.add(followup)
    db.flush()
    logger.info("task %s: created follow-up %s", task.id, followup.id)
    return followup


def notify_team(task: Task, parameters: Optional[dict] = None) -> str:
    # no delivery channel; the log line is the notification
    channel = (parameters or {}).get("channel", "team")
    logger.info("notify %s: task %s %r is %s", channel, task.id, task.title, task.status)
    return "Team notified"


def mark_complete(db: Session, task: Task) -> Task:
    task.status = "completed"
    db.flush()
    logger.info("task %s: marked complete", task.id)
    return task


def run_action(db: Session, task: Task, action: str, parameters: Optional[dict] = None,
               now: Optional[datetime] = None) -> Union[Task, str]:
    if action == "create_followup":
        return create_followup(db, task, parameters, now=now)
    if action == "notify_team":
        return notify_team(task, parameters)
    if action == "mark_complete":
        return mark_complete(db, task)
    raise AutomationError("Invalid automation type")


def run_rules(db: Session, task: Task, condition: str,
              now: Optional[datetime] = None) -> List[Union[Task, str]]:
    """Execute, in order, every rule on ``task`` registered for ``condition``."""
    results = []
    for rule in list(task.automation_rules):
        if rule.condition != condition or rule.action not in RULE_ACTIONS:
            continue
        logger.debug("task %s: rule %s (%s -> %s)", task.id, rule.id, condition, rule.action)
        results.append(run_action(db, task, rule.action, dict(rule.parameters or {}), now=now))
    return results


def run_due_rules(db: Session, user: User, now: Optional[datetime] = None) -> List[int]:
    """
    Fire on_due_date rules for the user's pending tasks that are past due.

    A rule fires once per due date: it remembers the due date it fired for and
    is armed again only when the task's due date changes.
    """
    now = now or utcnow()
    overdue = (
        db.query(Task)
        .filter(Task.user_id == user.id, Task.status == "pending")
        .filter(Task.due_date.isnot(None), Task.due_date <= now)
        .order_by(Task.due_date.asc())
        .all()
    )
    touched = []
    for task in overdue:
        rules = [
            r for r in task.automation_rules
            if r.condition == "on_due_date" and r.action in RULE_ACTIONS and r.fired_for_due != task.due_date
        ]
        if not rules:
            continue
        due = task.due_date
        for rule in rules:
            logger.debug("task %s: rule %s (on_due_date -> %s)", task.id, rule.id, rule.action)
            run_action(db, task, rule.action, dict(rule.parameters or {}), now=now)
            rule.fired_for_due = due
        db.flush()
        touched.append(task.id)
    if touched:
        logger.info("user %s: due-date rules ran for tasks %s", user.id, touched)
    return touched
