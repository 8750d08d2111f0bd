# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

"""
Streak tracking for three scopes: user, goal and action item.

Every scope carries two counters:

* maintained - grows on any day with qualifying activity (a completed or
  partial task, a progress entry, or for the user scope an applied shield)
  and drops to 0 on a day without it.
* perfect - grows only when the day had activity and every item expected
  that day was fully completed; a partial completion or a missed item
  resets it.

Counters are never nudged incrementally. Each write replays the scope's
history (LOOKBACK_DAYS back) in date order, so backfilled or deleted
completions fold in exactly as if they had been recorded on time. The day
still in progress only counts once it has activity; it is never a miss.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from goaltrack.models.database import commit_or_conflict
from goaltrack.models.user import User
from goaltrack.models.goal import Goal, GoalStatus
from goaltrack.models.action_item import ActionItem, CompletionStatus
from goaltrack.models.scheduled_task import ScheduledTask
from goaltrack.models.task_completion import TaskCompletion
from goaltrack.models.progress import ProgressEntry
from goaltrack.models.streak import StreakInfo, StreakShield
from goaltrack.models.journal import DailyJournal
from goaltrack.models.subscription import PurchaseType
from goaltrack.services.recurrence_calculator import dates_for_item
from goaltrack.services import entitlement_service
from goaltrack.services.query_helpers import get_owned_goal, get_owned_item
from goaltrack.utils.errors import BadRequestError, DuplicateError, UsageLimitExceededError
from goaltrack.utils.tier_logic import SHIELDS_PER_WEEK

logger = logging.getLogger(__name__)

LOOKBACK_DAYS = 366

_POSITIVE = (CompletionStatus.completed, CompletionStatus.partial)


# -------------------------------
# Pure replay
# -------------------------------

@dataclass
class DayOutcome:
    day: date
    maintained: bool
    perfect: bool
    active: bool = True  # real activity, as opposed to a shield
    perfect_open: bool = False  # today, still completable: leave the perfect counter alone


@dataclass
class StreakCounts:
    current_maintained: int = 0
    best_maintained: int = 0
    current_perfect: int = 0
    best_perfect: int = 0
    last_activity: Optional[date] = None


def replay(outcomes: Iterable[DayOutcome]) -> StreakCounts:
    counts = StreakCounts()
    for outcome in sorted(outcomes, key=lambda o: o.day):
        if outcome.maintained:
            counts.current_maintained += 1
        else:
            counts.current_maintained = 0

        if outcome.maintained and outcome.perfect:
            counts.current_perfect += 1
        elif not outcome.perfect_open:
            counts.current_perfect = 0

        if outcome.active and outcome.maintained:
            counts.last_activity = outcome.day

        counts.best_maintained = max(counts.best_maintained, counts.current_maintained)
        counts.best_perfect = max(counts.best_perfect, counts.current_perfect)
    return counts


# -------------------------------
# Activity index
# -------------------------------

class _UserActivity:
    """Everything a replay needs for one user, loaded once per recompute."""

    def __init__(self, user: User, db: Session, start: date, through: date, open_day: Optional[date]):
        self.start = start
        self.through = through
        self.open_day = open_day

        self.goals = {g.id: g for g in db.query(Goal).filter(Goal.user_id == user.id).all()}
        goal_ids = list(self.goals)

        items = []
        if goal_ids:
            items = db.query(ActionItem).filter(ActionItem.goal_id.in_(goal_ids)).all()
        self.items = {i.id: i for i in items}

        # day -> {item_id: (goal_id, status)}
        self.completions = defaultdict(dict)
        rows = db.query(TaskCompletion).filter(
            TaskCompletion.user_id == user.id,
            TaskCompletion.completed_date >= start,
            TaskCompletion.completed_date <= through,
        ).all()
        for row in rows:
            previous = self.completions[row.completed_date].get(row.action_item_id)
            if previous and previous[1] == CompletionStatus.completed:
                continue
            self.completions[row.completed_date][row.action_item_id] = (row.goal_id, row.status)

        # day -> {goal_id}
        self.progress = defaultdict(set)
        if goal_ids:
            for entry in db.query(ProgressEntry).filter(
                ProgressEntry.goal_id.in_(goal_ids),
                ProgressEntry.entry_date >= start,
                ProgressEntry.entry_date <= through,
            ).all():
                self.progress[entry.entry_date].add(entry.goal_id)

        # item_id -> {day}
        self.scheduled = defaultdict(set)
        if goal_ids:
            for task in db.query(ScheduledTask).filter(
                ScheduledTask.goal_id.in_(goal_ids),
                ScheduledTask.scheduled_date >= start,
                ScheduledTask.scheduled_date <= through,
            ).all():
                self.scheduled[task.action_item_id].add(task.scheduled_date)

        self.shields = {
            s.shield_date for s in db.query(StreakShield).filter(
                StreakShield.user_id == user.id,
                StreakShield.shield_date >= start,
                StreakShield.shield_date <= through,
            ).all()
        }

        self._expected = {}

    def expected_days(self, item: ActionItem) -> set:
        """Days the item was due. Only items of active, unarchived goals are expected."""
        if item.id in self._expected:
            return self._expected[item.id]

        days = set()
        goal = self.goals.get(item.goal_id)
        if goal is not None and goal.status == GoalStatus.active and not goal.is_archived:
            days.update(self.scheduled.get(item.id, ()))
            created = item.created_at.date() if item.created_at else self.start
            lower = max(self.start, created)
            if lower <= self.through:
                days.update(dates_for_item(item, lower, self.through))
        self._expected[item.id] = days
        return days

    def items_of(self, goal_id: int) -> List[ActionItem]:
        return [i for i in self.items.values() if i.goal_id == goal_id]

    def _outcome(self, day: date, statuses: dict, expected_ids: set, progressed: bool, shielded: bool = False):
        real = progressed or any(s in _POSITIVE for s in statuses.values())
        maintained = real or shielded
        if day == self.open_day and not maintained:
            return None
        has_partial = any(s == CompletionStatus.partial for s in statuses.values())
        perfect = (
            real
            and not has_partial
            and all(statuses.get(item_id) == CompletionStatus.completed for item_id in expected_ids)
        )
        perfect_open = day == self.open_day and not perfect and not has_partial
        return DayOutcome(day, maintained, perfect, active=real, perfect_open=perfect_open)

    def task_outcomes(self, item: ActionItem) -> List[DayOutcome]:
        done_days = {d for d, per_item in self.completions.items() if item.id in per_item}
        outcomes = []
        for day in sorted(self.expected_days(item) | done_days):
            statuses = {}
            if item.id in self.completions.get(day, {}):
                statuses[item.id] = self.completions[day][item.id][1]
            outcome = self._outcome(day, statuses, {item.id}, False)
            if outcome:
                outcomes.append(outcome)
        return outcomes

    def goal_outcomes(self, goal_id: int) -> List[DayOutcome]:
        items = self.items_of(goal_id)
        relevant = set()
        for item in items:
            relevant |= self.expected_days(item)
        relevant |= {d for d, per_item in self.completions.items()
                     if any(gid == goal_id for gid, _ in per_item.values())}
        relevant |= {d for d, goals in self.progress.items() if goal_id in goals}

        outcomes = []
        for day in sorted(relevant):
            statuses = {item_id: status for item_id, (gid, status) in self.completions.get(day, {}).items()
                        if gid == goal_id}
            expected_ids = {i.id for i in items if day in self.expected_days(i)}
            outcome = self._outcome(day, statuses, expected_ids, goal_id in self.progress.get(day, ()))
            if outcome:
                outcomes.append(outcome)
        return outcomes

    def user_outcomes(self) -> List[DayOutcome]:
        expected_by_day = defaultdict(set)
        for item in self.items.values():
            for day in self.expected_days(item):
                expected_by_day[day].add(item.id)

        outcomes = []
        day = self.start
        while day <= self.through:
            statuses = {item_id: status for item_id, (_, status) in self.completions.get(day, {}).items()}
            outcome = self._outcome(
                day, statuses, expected_by_day.get(day, set()),
                bool(self.progress.get(day)), shielded=day in self.shields,
            )
            if outcome:
                outcomes.append(outcome)
            day += timedelta(days=1)
        return outcomes


# -------------------------------
# Persistence
# -------------------------------

def _scope_query(db: Session, user_id: int, goal_id: Optional[int], action_item_id: Optional[int]):
    query = db.query(StreakInfo).filter(StreakInfo.user_id == user_id)
    query = query.filter(StreakInfo.goal_id.is_(None) if goal_id is None else StreakInfo.goal_id == goal_id)
    query = query.filter(
        StreakInfo.action_item_id.is_(None) if action_item_id is None
        else StreakInfo.action_item_id == action_item_id
    )
    return query


def _lock_or_create(db: Session, user_id: int, goal_id=None, action_item_id=None) -> StreakInfo:
    info = _scope_query(db, user_id, goal_id, action_item_id).with_for_update().first()
    if info is None:
        info = StreakInfo(
            user_id=user_id,
            goal_id=goal_id,
            action_item_id=action_item_id,
            current_maintained_streak=0,
            best_maintained_streak=0,
            current_perfect_streak=0,
            best_perfect_streak=0,
        )
        db.add(info)
        db.flush()
    return info


def _store(info: StreakInfo, counts: StreakCounts, through: date):
    info.current_maintained_streak = counts.current_maintained
    info.best_maintained_streak = max(info.best_maintained_streak or 0, counts.best_maintained, counts.current_maintained)
    info.current_perfect_streak = counts.current_perfect
    info.best_perfect_streak = max(info.best_perfect_streak or 0, counts.best_perfect, counts.current_perfect)
    info.last_activity_date = counts.last_activity
    info.last_processed_date = through


def _window(through: date) -> date:
    return through - timedelta(days=LOOKBACK_DAYS)


def recompute_streaks(
    user: User,
    db: Session,
    goal: Optional[Goal] = None,
    action_item: Optional[ActionItem] = None,
    through: Optional[date] = None,
) -> StreakInfo:
    """
    Replays the affected scopes: the item (if given), its goal (if any) and
    always the user. Flushes but does not commit; the caller's commit makes
    the triggering write and the streak update one unit.
    Returns the user-scope StreakInfo.
    """
    today = date.today()
    through = through or today
    open_day = today if through >= today else None
    activity = _UserActivity(user, db, _window(through), through, open_day)

    if action_item is not None:
        info = _lock_or_create(db, user.id, action_item.goal_id, action_item.id)
        _store(info, replay(activity.task_outcomes(action_item)), through)
        if goal is None:
            goal = activity.goals.get(action_item.goal_id)

    if goal is not None:
        info = _lock_or_create(db, user.id, goal.id)
        _store(info, replay(activity.goal_outcomes(goal.id)), through)

    user_info = _lock_or_create(db, user.id)
    _store(user_info, replay(activity.user_outcomes()), through)
    db.flush()

    logger.debug(
        "Recomputed streaks for user %s (goal=%s, item=%s): maintained=%s perfect=%s",
        user.id, goal.id if goal else None, action_item.id if action_item else None,
        user_info.current_maintained_streak, user_info.current_perfect_streak,
    )
    return user_info


def process_end_of_day(user: User, db: Session, day: date) -> StreakInfo:
    """Closes `day` for every scope of the user. Used by the nightly job."""
    today = date.today()
    open_day = today if day >= today else None
    activity = _UserActivity(user, db, _window(day), day, open_day)

    for goal in activity.goals.values():
        if goal.status != GoalStatus.active or goal.is_archived:
            continue
        for item in activity.items_of(goal.id):
            info = _lock_or_create(db, user.id, goal.id, item.id)
            _store(info, replay(activity.task_outcomes(item)), day)
        info = _lock_or_create(db, user.id, goal.id)
        _store(info, replay(activity.goal_outcomes(goal.id)), day)

    user_info = _lock_or_create(db, user.id)
    _store(user_info, replay(activity.user_outcomes()), day)
    commit_or_conflict(db)
    logger.info("End of day %s processed for user %s: maintained=%s", day, user.id, user_info.current_maintained_streak)
    return user_info


# -------------------------------
# Shields
# -------------------------------

def _week_bounds(day: date):
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def shields_used_in_week(user: User, db: Session, day: date) -> int:
    week_start, week_end = _week_bounds(day)
    return db.query(StreakShield).filter(
        StreakShield.user_id == user.id,
        StreakShield.shield_date >= week_start,
        StreakShield.shield_date <= week_end,
    ).count()


def has_real_activity(user: User, db: Session, day: date) -> bool:
    completed = db.query(TaskCompletion).filter(
        TaskCompletion.user_id == user.id,
        TaskCompletion.completed_date == day,
        TaskCompletion.status.in_(_POSITIVE),
    ).first()
    if completed:
        return True

    progressed = db.query(ProgressEntry).join(Goal, Goal.id == ProgressEntry.goal_id).filter(
        Goal.user_id == user.id,
        ProgressEntry.entry_date == day,
    ).first()
    return progressed is not None


def use_streak_shield(user: User, db: Session, day: date) -> StreakInfo:
    today = date.today()
    if day >= today:
        raise BadRequestError("Shields can only cover past days")
    if day < today - timedelta(days=LOOKBACK_DAYS):
        raise BadRequestError("That day is too far back to shield")
    if db.query(StreakShield).filter(StreakShield.user_id == user.id, StreakShield.shield_date == day).first():
        raise DuplicateError(f"A shield already covers {day.isoformat()}")
    if has_real_activity(user, db, day):
        raise BadRequestError(f"{day.isoformat()} already has activity; nothing to shield")

    used = shields_used_in_week(user, db, day)
    if used >= SHIELDS_PER_WEEK:
        raise UsageLimitExceededError("shields_per_week", used, SHIELDS_PER_WEEK)

    entitlement_service.refresh_monthly_shields(user, db)
    purchase_id = None
    if (user.streak_shields or 0) > 0:
        user.streak_shields -= 1
    else:
        try:
            purchase = entitlement_service.consume_purchase(user, db, PurchaseType.streak_shield)
        except UsageLimitExceededError:
            raise UsageLimitExceededError("streak_shields", 0, 0)
        purchase_id = purchase.id

    db.add(StreakShield(user_id=user.id, shield_date=day, purchase_id=purchase_id))
    db.flush()
    info = recompute_streaks(user, db)
    commit_or_conflict(db)
    db.refresh(info)
    logger.info("Streak shield applied for user %s on %s", user.id, day)
    return info


# -------------------------------
# Reads
# -------------------------------

def serialize_streak(info: Optional[StreakInfo], goal_id=None, action_item_id=None) -> dict:
    if info is None:
        return {
            "goal_id": goal_id,
            "action_item_id": action_item_id,
            "current_maintained_streak": 0,
            "best_maintained_streak": 0,
            "current_perfect_streak": 0,
            "best_perfect_streak": 0,
            "last_activity_date": None,
        }
    return {
        "goal_id": info.goal_id,
        "action_item_id": info.action_item_id,
        "current_maintained_streak": info.current_maintained_streak,
        "best_maintained_streak": info.best_maintained_streak,
        "current_perfect_streak": info.current_perfect_streak,
        "best_perfect_streak": info.best_perfect_streak,
        "last_activity_date": info.last_activity_date.isoformat() if info.last_activity_date else None,
    }


def get_user_streak(user: User, db: Session) -> dict:
    today = date.today()
    info = _scope_query(db, user.id, None, None).first()
    data = serialize_streak(info)

    month_start = today.replace(day=1)
    used_this_week = shields_used_in_week(user, db, today)
    purchased = entitlement_service.count_remaining(user, db, PurchaseType.streak_shield)
    held = user.streak_shields or 0

    data.update({
        "shields_held": held,
        "shields_purchased": purchased,
        "shields_used_this_week": used_this_week,
        "shields_available": (held + purchased) if used_this_week < SHIELDS_PER_WEEK else 0,
        "journal_entries_this_month": db.query(DailyJournal).filter(
            DailyJournal.user_id == user.id,
            DailyJournal.journal_date >= month_start,
            DailyJournal.journal_date <= today,
        ).count(),
    })
    return data


def get_goal_streak(user: User, goal_id: int, db: Session) -> dict:
    get_owned_goal(user, goal_id, db)
    return serialize_streak(_scope_query(db, user.id, goal_id, None).first(), goal_id=goal_id)


def get_task_streak(user: User, action_item_id: int, db: Session) -> dict:
    item = get_owned_item(user, action_item_id, db)
    info = _scope_query(db, user.id, item.goal_id, item.id).first()
    return serialize_streak(info, goal_id=item.goal_id, action_item_id=item.id)


def get_goal_streaks(user: User, goal_id: int, db: Session) -> dict:
    get_owned_goal(user, goal_id, db)
    goal_info = _scope_query(db, user.id, goal_id, None).first()
    task_infos = db.query(StreakInfo).filter(
        StreakInfo.user_id == user.id,
        StreakInfo.goal_id == goal_id,
        StreakInfo.action_item_id.isnot(None),
    ).all()
    return {
        "goal": serialize_streak(goal_info, goal_id=goal_id),
        "tasks": [serialize_streak(i) for i in task_infos],
    }


def get_summary(user: User, db: Session) -> dict:
    rows = db.query(StreakInfo).filter(StreakInfo.user_id == user.id).all()
    return {
        "user": get_user_streak(user, db),
        "goals": [serialize_streak(r) for r in rows if r.scope == "goal"],
        "tasks": [serialize_streak(r) for r in rows if r.scope == "task"],
    }


def find_streaks_at_risk(user: User, db: Session, today: Optional[date] = None) -> List[dict]:
    """Scopes with a live maintained streak and nothing logged yet today."""
    today = today or date.today()
    rows = db.query(StreakInfo).filter(
        StreakInfo.user_id == user.id,
        StreakInfo.current_maintained_streak > 0,
    ).all()
    if not rows:
        return []

    completions = db.query(TaskCompletion).filter(
        TaskCompletion.user_id == user.id,
        TaskCompletion.completed_date == today,
        TaskCompletion.status.in_(_POSITIVE),
    ).all()
    done_items = {c.action_item_id for c in completions}
    active_goals = {c.goal_id for c in completions}
    active_goals |= {
        e.goal_id for e in db.query(ProgressEntry).join(Goal, Goal.id == ProgressEntry.goal_id).filter(
            Goal.user_id == user.id, ProgressEntry.entry_date == today
        ).all()
    }

    at_risk = []
    for row in rows:
        if row.scope == "task":
            safe = row.action_item_id in done_items
        elif row.scope == "goal":
            safe = row.goal_id in active_goals
        else:
            safe = bool(active_goals) or bool(done_items)
        if not safe:
            data = serialize_streak(row)
            data["scope"] = row.scope
            at_risk.append(data)
    return at_risk
