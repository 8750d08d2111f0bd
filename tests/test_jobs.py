# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from datetime import datetime, timedelta

from freezegun import freeze_time

from goaltrack.models.notification import NotificationLog
from goaltrack.models.subscription import SubscriptionStatus, SubscriptionTier, UserSubscription
from goaltrack.models.user import User
from goaltrack.schemas.action_item_schemas import TaskCompletionRequest
from goaltrack.services import streak_service, task_completion_service
from goaltrack.services.nudge_service import process_streak_nudges, should_nudge
from goaltrack.utils.schedulers.end_of_day_streaks import run_end_of_day_streaks
from goaltrack.utils.schedulers.notification_cleaner import delete_old_notification_logs
from goaltrack.utils.schedulers.reset_shields import reset_all_streak_shields
from goaltrack.utils.schedulers.subscription_expiry import expire_lapsed_subscriptions
from goaltrack.utils.schedulers.run_all_cleanups import run_all_cleanups


def test_should_nudge_respects_preferences():
    now = datetime(2024, 1, 10, 12)
    assert should_nudge(User(push_notifications_enabled=True, nudge_last_sent=None), now) is True
    assert should_nudge(User(push_notifications_enabled=False), now) is False
    assert should_nudge(User(push_notifications_enabled=True, nudge_frequency="low",
                             nudge_last_sent=now - timedelta(days=1)), now) is False
    assert should_nudge(User(push_notifications_enabled=True, nudge_frequency="high",
                             nudge_last_sent=now - timedelta(hours=5)), now) is True


def test_streak_nudge_written_once(db, user, make_goal, make_daily_item):
    with freeze_time("2024-01-09 18:00:00") as frozen:
        item = make_daily_item(user, make_goal(user, title="Meditate"))
        task_completion_service.record_completion(user, item.id, TaskCompletionRequest(), db)

        frozen.move_to("2024-01-10 12:30:00")
        assert process_streak_nudges() == 1
        assert process_streak_nudges() == 0

        db.expire_all()
        logs = db.query(NotificationLog).filter(NotificationLog.notification_type == "streak_at_risk").all()
        assert len(logs) == 1
        assert "Meditate" in logs[0].content
        assert db.get(User, user.id).nudge_last_sent == datetime(2024, 1, 10, 12, 30)


@freeze_time("2024-01-10 12:30:00")
def test_no_nudge_without_a_live_streak(db, user):
    assert process_streak_nudges() == 0
    assert db.query(NotificationLog).count() == 0


def test_end_of_day_job_closes_yesterday(db, user, make_goal, make_daily_item):
    with freeze_time("2024-01-09 18:00:00") as frozen:
        item = make_daily_item(user, make_goal(user))
        task_completion_service.record_completion(user, item.id, TaskCompletionRequest(), db)

        frozen.move_to("2024-01-11 00:05:00")
        assert run_end_of_day_streaks() == 1

        db.expire_all()
        data = streak_service.get_user_streak(user, db)
        assert data["current_maintained_streak"] == 0
        assert data["best_maintained_streak"] == 1


@freeze_time("2024-02-01 02:00:00")
def test_notification_retention_by_tier(db, make_user, make_premium):
    free = make_user()
    premium = make_premium(make_user(email="ravi@example.com", name="Ravi"))
    db.add_all([
        NotificationLog(user_id=free.id, content="old", timestamp=datetime(2024, 1, 20)),
        NotificationLog(user_id=free.id, content="fresh", timestamp=datetime(2024, 1, 30)),
        NotificationLog(user_id=premium.id, content="old but premium", timestamp=datetime(2024, 1, 20)),
    ])
    db.commit()

    assert delete_old_notification_logs() == 1
    remaining = sorted(log.content for log in db.query(NotificationLog).all())
    assert remaining == ["fresh", "old but premium"]

    assert run_all_cleanups() == {"Notifications": 0, "Subscriptions": 0}
    assert db.query(NotificationLog).count() == 2


@freeze_time("2024-03-01 03:00:00")
def test_monthly_shield_reset(db, make_user, make_premium):
    free = make_user()
    premium = make_premium(make_user(email="ravi@example.com", name="Ravi"))

    assert reset_all_streak_shields() == 2
    assert reset_all_streak_shields() == 0

    db.expire_all()
    assert db.get(User, free.id).streak_shields == 1
    assert db.get(User, premium.id).streak_shields == 3


@freeze_time("2024-03-10 02:00:00")
def test_lapsed_subscriptions_expire(db, make_user):
    def subscribe(email, status, period_end):
        owner = make_user(email=email)
        db.add(UserSubscription(user_id=owner.id, tier=SubscriptionTier.premium, status=status,
                                current_period_end=period_end))
        db.commit()
        return owner.id

    ended = subscribe("a@example.com", SubscriptionStatus.active, datetime(2024, 3, 1))
    renewing = subscribe("b@example.com", SubscriptionStatus.active, datetime(2024, 4, 1))
    in_grace = subscribe("c@example.com", SubscriptionStatus.past_due, datetime(2024, 3, 9))
    past_grace = subscribe("d@example.com", SubscriptionStatus.past_due, datetime(2024, 3, 5))

    assert expire_lapsed_subscriptions() == 2

    db.expire_all()
    status = {s.user_id: s.status for s in db.query(UserSubscription).all()}
    assert status[ended] == SubscriptionStatus.expired
    assert status[renewing] == SubscriptionStatus.active
    assert status[in_grace] == SubscriptionStatus.past_due
    assert status[past_grace] == SubscriptionStatus.expired
