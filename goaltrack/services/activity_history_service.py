# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from goaltrack.models.user import User
from goaltrack.models.goal import Goal
from goaltrack.models.action_item import ActionItem
from goaltrack.models.progress import ProgressEntry
from goaltrack.models.journal import DailyJournal
from goaltrack.models.task_completion import TaskCompletion
from goaltrack.utils.errors import BadRequestError

logger = logging.getLogger(__name__)

MAX_HISTORY_DAYS = 366


class _ActivityWindow:
    """Completions, progress and journals of one user between two dates, grouped by day."""

    def __init__(self, user: User, db: Session, start: date, end: date):
        self.completions = db.query(TaskCompletion).filter(
            TaskCompletion.user_id == user.id,
            TaskCompletion.completed_date >= start,
            TaskCompletion.completed_date <= end,
        ).order_by(TaskCompletion.completed_date.desc(), TaskCompletion.id.asc()).all()

        self.progress = db.query(ProgressEntry).join(Goal, Goal.id == ProgressEntry.goal_id).filter(
            Goal.user_id == user.id,
            ProgressEntry.entry_date >= start,
            ProgressEntry.entry_date <= end,
        ).order_by(ProgressEntry.entry_date.desc(), ProgressEntry.id.asc()).all()

        self.journals = db.query(DailyJournal).filter(
            DailyJournal.user_id == user.id,
            DailyJournal.journal_date >= start,
            DailyJournal.journal_date <= end,
        ).all()

        goal_ids = {c.goal_id for c in self.completions} | {p.goal_id for p in self.progress}
        item_ids = {c.action_item_id for c in self.completions}
        self.goals = {g.id: g for g in db.query(Goal).filter(Goal.id.in_(goal_ids)).all()} if goal_ids else {}
        self.items = (
            {i.id: i for i in db.query(ActionItem).filter(ActionItem.id.in_(item_ids)).all()} if item_ids else {}
        )

        self._completions_by_day = {}
        for c in self.completions:
            self._completions_by_day.setdefault(c.completed_date, []).append(c)
        self._progress_by_day = {}
        for p in self.progress:
            self._progress_by_day.setdefault(p.entry_date, []).append(p)
        self._journal_by_day = {j.journal_date: j for j in self.journals}

    def _completion_summary(self, completion: TaskCompletion) -> dict:
        item = self.items.get(completion.action_item_id)
        goal = self.goals.get(completion.goal_id)
        return {
            "id": completion.id,
            "action_item_id": completion.action_item_id,
            "action_item_title": item.title if item else None,
            "goal_id": completion.goal_id,
            "goal_title": goal.title if goal else None,
            "status": completion.status.value,
            "note": completion.note,
            "completed_at": completion.completed_at.isoformat() if completion.completed_at else None,
        }

    def _progress_summary(self, entry: ProgressEntry) -> dict:
        goal = self.goals.get(entry.goal_id)
        percentage = 0.0
        if goal is not None and goal.target_value and goal.target_value > 0:
            percentage = round(entry.progress_value * 100 / goal.target_value, 2)
        return {
            "id": entry.id,
            "goal_id": entry.goal_id,
            "goal_title": goal.title if goal else None,
            "progress_value": entry.progress_value,
            "unit": goal.unit if goal else None,
            "percentage_of_goal": percentage,
            "note": entry.note,
            "created_at": entry.created_at.isoformat() if entry.created_at else None,
        }

    @staticmethod
    def _journal_summary(journal: Optional[DailyJournal]) -> Optional[dict]:
        if journal is None:
            return None
        return {
            "id": journal.id,
            "content": journal.content,
            "mood": journal.mood.value if journal.mood else None,
            "shield_awarded": bool(journal.shield_awarded),
            "created_at": journal.created_at.isoformat() if journal.created_at else None,
        }

    def day(self, day: date) -> dict:
        completions = self._completions_by_day.get(day, [])
        progress = self._progress_by_day.get(day, [])
        journal = self._journal_by_day.get(day)
        return {
            "date": day.isoformat(),
            "task_completions": [self._completion_summary(c) for c in completions],
            "progress_entries": [self._progress_summary(p) for p in progress],
            "journal_entry": self._journal_summary(journal),
            "has_activity": bool(completions or progress or journal),
        }


def get_activity_history(user: User, start: date, end: date, db: Session) -> dict:
    """Per-day activity from end back to start, newest first."""
    if end < start:
        raise BadRequestError("end_date must not be before start_date")
    total_days = (end - start).days + 1
    if total_days > MAX_HISTORY_DAYS:
        raise BadRequestError(f"Activity history is limited to {MAX_HISTORY_DAYS} days per request")

    window = _ActivityWindow(user, db, start, end)
    days: List[dict] = [window.day(end - timedelta(days=i)) for i in range(total_days)]

    logger.debug("Activity history for user %s: %s..%s", user.id, start, end)
    return {
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "total_days": total_days,
        "active_days": sum(1 for d in days if d["has_activity"]),
        "daily_activities": days,
        "summary": {
            "total_task_completions": len(window.completions),
            "total_progress_entries": len(window.progress),
            "total_journal_entries": len(window.journals),
        },
    }


def get_daily_activity(user: User, day: date, db: Session) -> dict:
    return _ActivityWindow(user, db, day, day).day(day)
