# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from datetime import date

import pytest
from freezegun import freeze_time

from goaltrack.models.subscription import UserPurchase, PurchaseType
from goaltrack.models.task_completion import TaskCompletion
from goaltrack.schemas.action_item_schemas import TaskCompletionRequest
from goaltrack.services import streak_service, task_completion_service
from goaltrack.services.streak_service import DayOutcome, replay
from goaltrack.utils.errors import BadRequestError, DuplicateError, UsageLimitExceededError


def d(day):
    return date(2024, 1, day)


def complete(db, user, item, day, status="completed"):
    req = TaskCompletionRequest(completed_date=day, status=status)
    return task_completion_service.record_completion(user, item.id, req, db)


# ---------------------- replay ----------------------

def test_replay_counts_runs_and_keeps_best():
    outcomes = [
        DayOutcome(d(1), True, True),
        DayOutcome(d(2), True, True),
        DayOutcome(d(3), True, True),
        DayOutcome(d(4), False, False),
        DayOutcome(d(5), True, True),
        DayOutcome(d(6), True, False),
    ]
    counts = replay(outcomes)
    assert counts.current_maintained == 2
    assert counts.best_maintained == 3
    assert counts.current_perfect == 0
    assert counts.best_perfect == 3
    assert counts.last_activity == d(6)


def test_replay_sorts_by_day():
    outcomes = [DayOutcome(d(3), True, True), DayOutcome(d(1), True, True), DayOutcome(d(2), False, False)]
    assert replay(outcomes).current_maintained == 1


def test_open_day_leaves_perfect_counter_alone():
    outcomes = [
        DayOutcome(d(1), True, True),
        DayOutcome(d(2), True, True),
        DayOutcome(d(3), True, False, perfect_open=True),
    ]
    counts = replay(outcomes)
    assert counts.current_maintained == 3
    assert counts.current_perfect == 2


def test_shield_day_maintains_but_is_not_activity():
    counts = replay([DayOutcome(d(1), True, True), DayOutcome(d(2), True, False, active=False)])
    assert counts.current_maintained == 2
    assert counts.current_perfect == 0
    assert counts.last_activity == d(1)


# ---------------------- recompute ----------------------

@freeze_time("2024-01-10 12:00:00")
def test_backfilled_completions_fold_into_streaks(db, user, make_goal, make_daily_item):
    goal = make_goal(user)
    item = make_daily_item(user, goal)

    for day in (7, 8, 9):
        complete(db, user, item, d(day))

    summary = streak_service.get_user_streak(user, db)
    # today has no activity yet and is not a miss
    assert summary["current_maintained_streak"] == 3

    complete(db, user, item, d(10))
    complete(db, user, item, d(5))  # leaves a gap on the 6th
    user_streak = streak_service.get_user_streak(user, db)
    assert user_streak["current_maintained_streak"] == 4
    assert user_streak["best_maintained_streak"] == 4

    complete(db, user, item, d(6))  # closes the gap
    user_streak = streak_service.get_user_streak(user, db)
    assert user_streak["current_maintained_streak"] == 6
    assert user_streak["best_maintained_streak"] == 6
    assert user_streak["current_perfect_streak"] == 6
    assert user_streak["last_activity_date"] == "2024-01-10"

    assert streak_service.get_task_streak(user, item.id, db)["current_maintained_streak"] == 6
    assert streak_service.get_goal_streak(user, goal.id, db)["current_maintained_streak"] == 6


@freeze_time("2024-01-10 12:00:00")
def test_best_never_drops_below_current_after_delete(db, user, make_goal, make_daily_item):
    item = make_daily_item(user, make_goal(user))
    for day in (7, 8, 9, 10):
        complete(db, user, item, d(day))

    removed = db.query(TaskCompletion).filter(TaskCompletion.completed_date == d(8)).one()
    task_completion_service.delete_completion(user, item.id, removed.id, db)

    user_streak = streak_service.get_user_streak(user, db)
    assert user_streak["current_maintained_streak"] == 2
    assert user_streak["best_maintained_streak"] == 4
    assert user_streak["best_maintained_streak"] >= user_streak["current_maintained_streak"]


@freeze_time("2024-01-10 12:00:00")
def test_partial_keeps_maintained_but_breaks_perfect(db, user, make_goal, make_daily_item):
    item = make_daily_item(user, make_goal(user))
    complete(db, user, item, d(9))
    complete(db, user, item, d(10), status="partial")

    task_streak = streak_service.get_task_streak(user, item.id, db)
    assert task_streak["current_maintained_streak"] == 2
    assert task_streak["current_perfect_streak"] == 0
    assert task_streak["best_perfect_streak"] == 1


def test_missed_day_resets_at_end_of_day(db, user, make_goal, make_daily_item):
    with freeze_time("2024-01-09 12:00:00") as frozen:
        item = make_daily_item(user, make_goal(user))
        complete(db, user, item, d(9))
        assert streak_service.get_user_streak(user, db)["current_maintained_streak"] == 1

        frozen.move_to("2024-01-11 00:05:00")
        streak_service.process_end_of_day(user, db, d(10))

        user_streak = streak_service.get_user_streak(user, db)
        assert user_streak["current_maintained_streak"] == 0
        assert user_streak["best_maintained_streak"] == 1
        assert streak_service.get_task_streak(user, item.id, db)["current_maintained_streak"] == 0


def test_no_row_serializes_as_zeroes(db, user):
    data = streak_service.get_user_streak(user, db)
    assert data["current_maintained_streak"] == 0
    assert data["best_perfect_streak"] == 0
    assert data["last_activity_date"] is None


# ---------------------- shields ----------------------

@freeze_time("2024-01-10 12:00:00")
def test_shield_bridges_a_gap_using_monthly_allowance(db, user, make_goal, make_daily_item):
    item = make_daily_item(user, make_goal(user))
    complete(db, user, item, d(7))
    complete(db, user, item, d(9))
    assert streak_service.get_user_streak(user, db)["current_maintained_streak"] == 1

    info = streak_service.use_streak_shield(user, db, d(8))

    assert info.current_maintained_streak == 3
    assert info.current_perfect_streak == 1
    db.refresh(user)
    assert user.streak_shields == 0


@freeze_time("2024-01-12 12:00:00")
def test_shield_rules(db, user, make_goal, make_daily_item):
    item = make_daily_item(user, make_goal(user))
    complete(db, user, item, d(11))

    with pytest.raises(BadRequestError):
        streak_service.use_streak_shield(user, db, d(12))  # today
    with pytest.raises(BadRequestError):
        streak_service.use_streak_shield(user, db, d(11))  # has activity

    streak_service.use_streak_shield(user, db, d(10))
    with pytest.raises(DuplicateError):
        streak_service.use_streak_shield(user, db, d(10))

    purchase = UserPurchase(user_id=user.id, purchase_type=PurchaseType.streak_shield, quantity=1, quantity_remaining=1)
    db.add(purchase)
    db.commit()

    # One shield per ISO week, even with one in stock
    with pytest.raises(UsageLimitExceededError):
        streak_service.use_streak_shield(user, db, d(9))
    db.refresh(purchase)
    assert purchase.quantity_remaining == 1


@freeze_time("2024-01-10 12:00:00")
def test_purchased_shield_used_when_allowance_spent(db, user, make_goal, make_daily_item):
    make_daily_item(user, make_goal(user))
    streak_service.use_streak_shield(user, db, d(8))  # monthly allowance

    with pytest.raises(UsageLimitExceededError):
        streak_service.use_streak_shield(user, db, d(6))  # previous week, nothing left

    purchase = UserPurchase(user_id=user.id, purchase_type=PurchaseType.streak_shield, quantity=1, quantity_remaining=1)
    db.add(purchase)
    db.commit()

    streak_service.use_streak_shield(user, db, d(6))
    db.refresh(purchase)
    assert purchase.quantity_remaining == 0


# ---------------------- at risk ----------------------

@freeze_time("2024-01-10 12:00:00")
def test_streaks_at_risk_until_something_is_logged_today(db, user, make_goal, make_daily_item):
    item = make_daily_item(user, make_goal(user))
    complete(db, user, item, d(9))

    at_risk = streak_service.find_streaks_at_risk(user, db)
    assert {row["scope"] for row in at_risk} == {"user", "goal", "task"}

    complete(db, user, item, d(10))
    assert streak_service.find_streaks_at_risk(user, db) == []
