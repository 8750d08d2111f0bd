# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from datetime import date, datetime, timedelta

import pytest
from freezegun import freeze_time

from goaltrack.models.goal import Goal
from goaltrack.models.reflection import ReflectionFrequency
from goaltrack.schemas.engagement_schemas import ReflectionRequest, UpdateReflectionRequest
from goaltrack.services import reflection_service
from goaltrack.services.reflection_service import current_period, frequency_for_duration
from goaltrack.utils.errors import DuplicateError


@pytest.mark.parametrize("days, expected", [
    (10, ReflectionFrequency.daily),
    (14, ReflectionFrequency.daily),
    (15, ReflectionFrequency.every_3_days),
    (45, ReflectionFrequency.every_3_days),
    (60, ReflectionFrequency.every_3_days),
    (61, ReflectionFrequency.weekly),
    (120, ReflectionFrequency.weekly),
    (180, ReflectionFrequency.weekly),
    (181, ReflectionFrequency.bi_weekly),
    (200, ReflectionFrequency.bi_weekly),
])
def test_frequency_for_duration(days, expected):
    assert frequency_for_duration(days) == expected


def goal_of(days, start=date(2024, 1, 1)):
    return Goal(title="g", start_date=start, target_date=start + timedelta(days=days))


def test_daily_period_is_today():
    period = current_period(goal_of(10), date(2024, 1, 5))
    assert (period.start, period.end) == (date(2024, 1, 5), date(2024, 1, 5))


def test_every_three_days_period():
    period = current_period(goal_of(45), date(2024, 1, 8))
    assert period.frequency == ReflectionFrequency.every_3_days
    assert (period.start, period.end) == (date(2024, 1, 7), date(2024, 1, 9))


def test_before_start_uses_first_period():
    period = current_period(goal_of(120), date(2023, 12, 20))
    assert (period.start, period.end) == (date(2024, 1, 1), date(2024, 1, 7))


def test_last_period_is_clamped_to_target_date():
    goal = goal_of(200)
    period = current_period(goal, goal.target_date - timedelta(days=1))
    assert period.frequency == ReflectionFrequency.bi_weekly
    assert period.end == goal.target_date
    assert period.start == date(2024, 1, 1) + timedelta(days=14 * 14)


def test_period_after_target_date_stays_on_last_period():
    period = current_period(goal_of(9), date(2024, 1, 20))
    assert (period.start, period.end) == (date(2024, 1, 10), date(2024, 1, 10))

    period = current_period(goal_of(45), date(2024, 3, 1))
    assert (period.start, period.end) == (date(2024, 2, 15), date(2024, 2, 15))
    assert period.start <= period.end


def test_goal_without_dates_reflects_weekly():
    goal = Goal(title="g", created_at=datetime(2024, 1, 1, 9))
    period = current_period(goal, date(2024, 1, 10))
    assert period.frequency == ReflectionFrequency.weekly
    assert (period.start, period.end) == (date(2024, 1, 8), date(2024, 1, 14))


@freeze_time("2024-01-07 18:00:00")
def test_reflection_due_on_last_day_then_completed(db, user, make_goal):
    goal = make_goal(user, start_date=date(2024, 1, 1), target_date=date(2024, 5, 1))

    status = reflection_service.get_status(user, goal.id, db)
    assert status["frequency"] == "weekly"
    assert status["reflection_due"] is True
    assert [p["goal_id"] for p in reflection_service.get_pending(user, db)] == [goal.id]

    reflection = reflection_service.create_reflection(
        user, goal.id, ReflectionRequest(rating=4, went_well="Kept the 6am slot", will_continue=True), db
    )
    assert reflection.period_start == date(2024, 1, 1)
    assert reflection.went_well == "Kept the 6am slot"

    status = reflection_service.get_status(user, goal.id, db)
    assert status["reflection_due"] is False
    assert status["reflection_completed"] is True
    assert status["total_reflections"] == 1
    assert status["average_rating"] == 4.0
    assert reflection_service.get_pending(user, db) == []

    with pytest.raises(DuplicateError):
        reflection_service.create_reflection(user, goal.id, ReflectionRequest(rating=2), db)


@freeze_time("2024-01-03 18:00:00")
def test_update_reflection_is_partial(db, user, make_goal):
    goal = make_goal(user, start_date=date(2024, 1, 1), target_date=date(2024, 5, 1))
    reflection = reflection_service.create_reflection(user, goal.id, ReflectionRequest(rating=3, challenges="Rain"), db)

    updated = reflection_service.update_reflection(
        user, goal.id, reflection.id, UpdateReflectionRequest(rating=5), db
    )
    assert updated.rating == 5
    assert updated.challenges == "Rain"
