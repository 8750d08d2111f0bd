# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from datetime import date

import pytest
from freezegun import freeze_time

from goaltrack.models.goal import GoalStatus
from goaltrack.schemas.action_item_schemas import TaskCompletionRequest
from goaltrack.schemas.engagement_schemas import JournalRequest
from goaltrack.schemas.goal_schemas import ProgressRequest
from goaltrack.services import (
    activity_history_service,
    dashboard_service,
    goal_service,
    journal_service,
    progress_service,
    task_completion_service,
)
from goaltrack.utils.errors import BadRequestError


def d(day):
    return date(2024, 1, day)


# ---------------------- dashboard ----------------------

@freeze_time("2024-01-10 12:00:00")
def test_dashboard_lists_goal_streaks_left_open_today(db, make_user, make_goal, make_daily_item):
    user = make_user(streak_shields=2)
    goal = make_goal(user)
    item = make_daily_item(user, goal)
    task_completion_service.record_completion(user, item.id, TaskCompletionRequest(completed_date=d(9)), db)

    dashboard = dashboard_service.get_dashboard(user, db)
    assert dashboard["active_goals_count"] == 1
    assert dashboard["completed_goals_count"] == 0
    assert dashboard["unread_nudges_count"] == 0
    assert dashboard["streak_shields_available"] == 2
    assert dashboard["streaks_at_risk"] == [{
        "goal_id": goal.id,
        "goal_title": "Run a 10k",
        "current_streak": 1,
        "days_without_progress": 1,
    }]

    task_completion_service.record_completion(user, item.id, TaskCompletionRequest(), db)
    assert dashboard_service.get_dashboard(user, db)["streaks_at_risk"] == []


@freeze_time("2024-01-10 12:00:00")
def test_dashboard_skips_archived_goals(db, user, make_goal, make_daily_item):
    goal = make_goal(user)
    item = make_daily_item(user, goal)
    task_completion_service.record_completion(user, item.id, TaskCompletionRequest(completed_date=d(9)), db)
    goal_service.archive_goal(user, goal.id, db)

    dashboard = dashboard_service.get_dashboard(user, db)
    assert dashboard["active_goals_count"] == 0
    assert dashboard["streaks_at_risk"] == []


@freeze_time("2024-01-10 12:00:00")
def test_goal_stats_by_status_and_category(db, user, make_goal, make_daily_item):
    run = make_goal(user, category="fitness")
    save = make_goal(user, "Save 1000", category="finance")
    read = make_goal(user, "Read 12 books", category="education")
    item = make_daily_item(user, run)
    for day in (8, 9, 10):
        task_completion_service.record_completion(user, item.id, TaskCompletionRequest(completed_date=d(day)), db)

    goal_service.change_status(user, save.id, GoalStatus.completed, db)
    goal_service.change_status(user, read.id, GoalStatus.paused, db)

    stats = dashboard_service.get_goal_stats(user, db)
    assert stats["total_goals"] == 3
    assert stats["active_goals"] == 1
    assert stats["completed_goals"] == 1
    assert stats["paused_goals"] == 1
    assert stats["abandoned_goals"] == 0
    assert stats["completion_rate"] == 33.33
    assert stats["best_streak"] == 3
    assert stats["current_best_streak"] == 3
    assert stats["goals_by_category"] == {"fitness": 1, "finance": 1, "education": 1}


def test_goal_stats_without_goals(db, user):
    stats = dashboard_service.get_goal_stats(user, db)
    assert stats["total_goals"] == 0
    assert stats["completion_rate"] == 0.0
    assert stats["best_streak"] == 0
    assert stats["goals_by_category"] == {}


# ---------------------- activity history ----------------------

@freeze_time("2024-01-10 12:00:00")
def test_activity_history_groups_by_day_newest_first(db, user, make_goal, make_daily_item):
    goal = make_goal(user, target_value=200, unit="km")
    item = make_daily_item(user, goal)
    task_completion_service.record_completion(
        user, item.id, TaskCompletionRequest(completed_date=d(8), status="partial", note="knee"), db
    )
    task_completion_service.record_completion(user, item.id, TaskCompletionRequest(completed_date=d(10)), db)
    progress_service.add_progress(user, goal.id, ProgressRequest(progress_value=50, entry_date=d(10)), db)
    journal_service.create_entry(user, JournalRequest(content="Slow start", mood="okay", journal_date=d(9)), db)

    history = activity_history_service.get_activity_history(user, d(7), d(10), db)
    assert history["total_days"] == 4
    assert history["active_days"] == 3
    assert [day["date"] for day in history["daily_activities"]] == [
        "2024-01-10", "2024-01-09", "2024-01-08", "2024-01-07",
    ]
    assert history["summary"] == {
        "total_task_completions": 2,
        "total_progress_entries": 1,
        "total_journal_entries": 1,
    }

    latest, journal_day, partial_day, quiet_day = history["daily_activities"]
    assert latest["progress_entries"][0]["percentage_of_goal"] == 25.0
    assert latest["progress_entries"][0]["unit"] == "km"
    assert latest["task_completions"][0]["action_item_title"] == "Morning run"
    assert journal_day["journal_entry"]["content"] == "Slow start"
    assert journal_day["journal_entry"]["mood"] == "okay"
    assert partial_day["task_completions"][0]["status"] == "partial"
    assert partial_day["task_completions"][0]["note"] == "knee"
    assert quiet_day["has_activity"] is False
    assert quiet_day["journal_entry"] is None


@freeze_time("2024-01-10 12:00:00")
def test_daily_activity_only_sees_own_rows(db, user, make_user, make_goal, make_daily_item):
    other = make_user("ravi@example.com", "Ravi")
    item = make_daily_item(other, make_goal(other))
    task_completion_service.record_completion(other, item.id, TaskCompletionRequest(), db)

    mine = activity_history_service.get_daily_activity(user, d(10), db)
    assert mine["has_activity"] is False
    assert mine["task_completions"] == []

    theirs = activity_history_service.get_daily_activity(other, d(10), db)
    assert theirs["has_activity"] is True
    assert theirs["task_completions"][0]["goal_title"] == "Run a 10k"


def test_activity_history_rejects_bad_ranges(db, user):
    with pytest.raises(BadRequestError):
        activity_history_service.get_activity_history(user, d(10), d(9), db)
    with pytest.raises(BadRequestError):
        activity_history_service.get_activity_history(user, date(2023, 1, 1), date(2024, 1, 10), db)
