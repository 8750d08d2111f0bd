# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from freezegun import freeze_time

from goaltrack.models.notification import NotificationLog
from goaltrack.models.subscription import PurchaseType, UserPurchase


def test_root_and_health(client):
    assert client.get("/").status_code == 200
    assert client.get("/health").json() == {"status": "ok"}
    health = client.get("/healthz").json()
    assert health["status"] == "ok"
    assert health["details"] == {"db_connection": True, "encryption": True}


def test_auth_is_required(client, user):
    assert client.get("/goals").status_code == 422
    assert client.get("/goals", headers={"Authorization": "Token abc"}).status_code == 401
    assert client.get("/goals", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401


def test_profile(client, user, auth_headers):
    resp = client.get("/users/me", headers=auth_headers(user))
    assert resp.status_code == 200
    body = resp.json()
    assert body["email"] == "asha@example.com"
    assert body["tier"] == "free"


@freeze_time("2024-01-10 08:00:00")
def test_goal_to_streak_flow(client, user, auth_headers):
    headers = auth_headers(user)

    goal = client.post("/goals", json={"title": "Run a 10k", "category": "health", "target_value": 100}, headers=headers)
    assert goal.status_code == 200, goal.text
    goal_id = goal.json()["id"]
    assert goal.json()["status"] == "active"

    milestones = client.get(f"/goals/{goal_id}/milestones", headers=headers).json()
    assert [m["percentage"] for m in milestones] == [25, 50, 75, 100]

    item = client.post(f"/goals/{goal_id}/action-items", json={
        "title": "Morning run",
        "task_type": "recurring",
        "recurrence": {"frequency": "daily"},
    }, headers=headers)
    assert item.status_code == 200, item.text
    item_id = item.json()["id"]

    schedule = client.post(
        f"/goals/{goal_id}/action-items/{item_id}/generate-schedule",
        json={"start_date": "2024-01-10", "end_date": "2024-01-16"},
        headers=headers,
    )
    assert schedule.json()["created"] == 7

    done = client.post(f"/action-items/{item_id}/completions", json={}, headers=headers)
    assert done.status_code == 200, done.text
    assert done.json()["completed_date"] == "2024-01-10"

    again = client.post(f"/action-items/{item_id}/completions", json={}, headers=headers)
    assert again.status_code == 409

    pending = client.get(f"/goals/{goal_id}/scheduled-tasks/pending", headers=headers).json()
    assert pending == []

    progress = client.post(f"/goals/{goal_id}/progress", json={"progress_value": 30}, headers=headers)
    assert progress.status_code == 200
    achieved = [m for m in client.get(f"/goals/{goal_id}/milestones", headers=headers).json() if m["achieved"]]
    assert [m["percentage"] for m in achieved] == [25]

    summary = client.get("/streaks/summary", headers=headers).json()
    assert summary["user"]["current_maintained_streak"] == 1
    assert summary["goals"][0]["current_maintained_streak"] == 1
    assert summary["tasks"][0]["action_item_id"] == item_id


def test_goals_of_other_users_are_not_found(client, user, make_user, auth_headers):
    goal_id = client.post("/goals", json={"title": "Mine"}, headers=auth_headers(user)).json()["id"]
    stranger = make_user(email="ravi@example.com", name="Ravi")

    assert client.get(f"/goals/{goal_id}", headers=auth_headers(stranger)).status_code == 404
    assert client.delete(f"/goals/{goal_id}", headers=auth_headers(stranger)).status_code == 404


def test_goal_lifecycle_and_limit(client, user, auth_headers):
    headers = auth_headers(user)
    ids = [client.post("/goals", json={"title": f"Goal {n}"}, headers=headers).json()["id"] for n in range(3)]

    blocked = client.post("/goals", json={"title": "Fourth"}, headers=headers)
    assert blocked.status_code == 402

    paused = client.post(f"/goals/{ids[0]}/pause", headers=headers).json()
    assert (paused["status"], paused["previous_status"]) == ("paused", "active")
    assert client.post(f"/goals/{ids[0]}/pause", headers=headers).status_code == 400

    assert client.post(f"/goals/{ids[1]}/complete", headers=headers).json()["status"] == "completed"
    assert client.post(f"/goals/{ids[1]}/resume", headers=headers).status_code == 400

    assert client.post("/goals", json={"title": "Fourth"}, headers=headers).status_code == 200

    assert client.delete(f"/goals/{ids[2]}", headers=headers).status_code == 200
    listed = client.get("/goals", headers=headers).json()
    assert ids[2] not in [g["id"] for g in listed]


def test_invalid_dates_rejected(client, user, auth_headers):
    resp = client.post("/goals", json={"title": "Bad dates", "start_date": "2024-02-01",
                                       "target_date": "2024-01-01"}, headers=auth_headers(user))
    assert resp.status_code == 400


def test_insights_require_premium(client, user, auth_headers, make_premium):
    headers = auth_headers(user)
    goal_id = client.post("/goals", json={"title": "Read more"}, headers=headers).json()["id"]

    blocked = client.get(f"/goals/{goal_id}/insights", headers=headers)
    assert blocked.status_code == 402
    assert "aiInsights" in blocked.json()["detail"]

    make_premium(user)
    resp = client.get(f"/goals/{goal_id}/insights", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["goal_id"] == goal_id
    assert resp.json()["completion_rate"] is None


def test_guardian_invite_accept_and_nudge(client, user, make_user, auth_headers):
    guardian = make_user(email="ravi@example.com", name="Ravi")
    owner_headers, guardian_headers = auth_headers(user), auth_headers(guardian)
    goal_id = client.post("/goals", json={"title": "Quit sugar"}, headers=owner_headers).json()["id"]

    assert client.post(f"/goals/{goal_id}/guardians", json={"guardian_email": "asha@example.com"},
                       headers=owner_headers).status_code == 400

    invite = client.post(f"/goals/{goal_id}/guardians", json={"guardian_email": "Ravi@Example.com"},
                         headers=owner_headers)
    assert invite.status_code == 200, invite.text
    assert invite.json()["status"] == "pending"

    # Nudging needs an accepted guardianship
    assert client.post(f"/goals/{goal_id}/nudges", json={}, headers=guardian_headers).status_code == 404

    invitations = client.get("/guardians/invitations", headers=guardian_headers).json()
    assert [i["goal_id"] for i in invitations] == [goal_id]
    accepted = client.post(f"/guardians/invitations/{invitations[0]['id']}/accept", headers=guardian_headers)
    assert accepted.json()["status"] == "active"

    nudge = client.post(f"/goals/{goal_id}/nudges", json={"nudge_type": "celebration"}, headers=guardian_headers)
    assert nudge.status_code == 200, nudge.text

    assert client.get("/nudges/unread-count", headers=owner_headers).json() == {"unread": 1}
    nudges = client.get(f"/goals/{goal_id}/nudges", headers=owner_headers).json()
    assert nudges[0]["nudge_type"] == "celebration"
    reacted = client.post(f"/nudges/{nudges[0]['id']}/react", json={"reaction": "🙏"}, headers=owner_headers)
    assert reacted.json()["is_read"] is True
    assert client.get("/nudges/unread-count", headers=owner_headers).json() == {"unread": 0}

    notifications = client.get("/notifications/recent", headers=owner_headers).json()
    assert {n["type"] for n in notifications} >= {"guardian_nudge", "guardian_response"}
    assert {n["goal_id"] for n in notifications} == {goal_id}

    assert len(client.get("/nudges/sent", headers=guardian_headers).json()) == 1


def test_guardian_without_nudge_permission_is_forbidden(client, user, make_user, auth_headers):
    guardian = make_user(email="ravi@example.com", name="Ravi")
    owner_headers, guardian_headers = auth_headers(user), auth_headers(guardian)
    goal_id = client.post("/goals", json={"title": "Quit sugar"}, headers=owner_headers).json()["id"]

    invite_id = client.post(f"/goals/{goal_id}/guardians", json={
        "guardian_email": "ravi@example.com", "permissions": ["view_progress"],
    }, headers=owner_headers).json()["id"]
    client.post(f"/guardians/invitations/{invite_id}/accept", headers=guardian_headers)

    assert client.post(f"/goals/{goal_id}/nudges", json={}, headers=guardian_headers).status_code == 403

    guarded = client.get("/guardians/goals", headers=guardian_headers).json()
    assert guarded[0]["goal_id"] == goal_id


def test_free_tier_allows_one_guardian(client, user, make_user, auth_headers):
    make_user(email="ravi@example.com", name="Ravi")
    make_user(email="meera@example.com", name="Meera")
    headers = auth_headers(user)
    goal_id = client.post("/goals", json={"title": "Quit sugar"}, headers=headers).json()["id"]

    assert client.post(f"/goals/{goal_id}/guardians", json={"guardian_email": "ravi@example.com"},
                       headers=headers).status_code == 200
    assert client.post(f"/goals/{goal_id}/guardians", json={"guardian_email": "ravi@example.com"},
                       headers=headers).status_code == 409
    assert client.post(f"/goals/{goal_id}/guardians", json={"guardian_email": "meera@example.com"},
                       headers=headers).status_code == 402


def test_extra_guardian_purchase_lifts_the_limit_once(client, user, make_user, auth_headers, db):
    for email in ("ravi@example.com", "meera@example.com", "kabir@example.com"):
        make_user(email=email, name=email.split("@")[0].title())
    purchase = UserPurchase(user_id=user.id, purchase_type=PurchaseType.extra_guardian, quantity=1, quantity_remaining=1)
    db.add(purchase)
    db.commit()
    headers = auth_headers(user)
    goal_id = client.post("/goals", json={"title": "Quit sugar"}, headers=headers).json()["id"]

    for email in ("ravi@example.com", "meera@example.com"):
        resp = client.post(f"/goals/{goal_id}/guardians", json={"guardian_email": email}, headers=headers)
        assert resp.status_code == 200, resp.text
    assert client.post(f"/goals/{goal_id}/guardians", json={"guardian_email": "kabir@example.com"},
                       headers=headers).status_code == 402

    db.refresh(purchase)
    assert purchase.quantity_remaining == 0
    assert client.get("/subscriptions/entitlements", headers=headers).json()["consumables"]["extra_guardian"] == 0


def test_notifications_only_touch_own_rows(client, user, make_user, auth_headers, db):
    other = make_user(email="ravi@example.com", name="Ravi")
    log = NotificationLog(user_id=other.id, notification_type="streak_at_risk", content="Keep going")
    db.add(log)
    db.commit()

    assert client.get("/notifications/recent", headers=auth_headers(user)).json() == []
    assert client.patch(f"/notifications/mark-delivered/{log.id}", headers=auth_headers(user)).status_code == 404
    assert client.patch(f"/notifications/mark-delivered/{log.id}", headers=auth_headers(other)).json() == {
        "status": "updated"
    }


def test_notification_filters_and_bulk_delivery(client, user, auth_headers, db):
    db.add_all([
        NotificationLog(user_id=user.id, notification_type="streak_at_risk", content="Streak"),
        NotificationLog(user_id=user.id, notification_type="guardian_nudge", content="Nudge"),
        NotificationLog(user_id=user.id, notification_type="guardian_nudge", content="Seen", delivered=True),
    ])
    db.commit()
    headers = auth_headers(user)

    nudges = client.get("/notifications/recent?type=guardian_nudge", headers=headers).json()
    assert sorted(n["text"] for n in nudges) == ["Nudge", "Seen"]
    pending = client.get("/notifications/recent?undelivered_only=true", headers=headers).json()
    assert sorted(n["text"] for n in pending) == ["Nudge", "Streak"]
    assert client.get("/notifications/recent?limit=0", headers=headers).status_code == 422

    assert client.post("/notifications/mark-all-delivered", headers=headers).json() == {"status": "updated", "count": 2}
    assert client.get("/notifications/recent?undelivered_only=true", headers=headers).json() == []


@freeze_time("2024-01-10 21:00:00")
def test_journal_and_shield_endpoints(client, user, auth_headers):
    headers = auth_headers(user)

    entry = client.post("/journal", json={"content": "Long day", "mood": "okay"}, headers=headers)
    assert entry.status_code == 200, entry.text
    assert entry.json()["shield_awarded"] is False
    assert client.get("/journal/date/2024-01-10", headers=headers).json()["content"] == "Long day"
    assert client.post("/journal", json={"content": "Twice"}, headers=headers).status_code == 409

    today = client.post("/streaks/shield", json={"shield_date": "2024-01-10"}, headers=headers)
    assert today.status_code == 400

    shielded = client.post("/streaks/shield", json={"shield_date": "2024-01-09"}, headers=headers)
    assert shielded.status_code == 200, shielded.text
    assert shielded.json()["current_maintained_streak"] == 1
    assert client.get("/streaks/user", headers=headers).json()["shields_used_this_week"] == 1


def test_subscription_routes(client, user, auth_headers, make_premium):
    headers = auth_headers(user)
    assert client.get("/subscriptions/current", headers=headers).json()["tier"] == "free"

    make_premium(user)
    current = client.get("/subscriptions/current", headers=headers).json()
    assert (current["tier"], current["is_premium"]) == ("premium", True)
    entitlements = client.get("/subscriptions/entitlements", headers=headers).json()
    assert entitlements["limits"]["max_active_goals"] is None
    assert client.get("/subscriptions/purchases", headers=headers).json() == []
    assert client.get("/subscriptions/purchases?purchase_type=bogus", headers=headers).status_code == 400


@freeze_time("2024-01-10 08:00:00")
def test_dashboard_and_activity_routes(client, user, auth_headers):
    headers = auth_headers(user)
    goal_id = client.post("/goals", json={"title": "Run a 10k"}, headers=headers).json()["id"]
    client.post(f"/goals/{goal_id}/progress", json={"progress_value": 5}, headers=headers)

    dashboard = client.get("/dashboard", headers=headers)
    assert dashboard.status_code == 200
    assert dashboard.json()["active_goals_count"] == 1

    stats = client.get("/dashboard/goal-stats", headers=headers).json()
    assert stats["goals_by_category"] == {"other": 1}

    history = client.get(
        "/activity/history", params={"start_date": "2024-01-09", "end_date": "2024-01-10"}, headers=headers
    ).json()
    assert history["active_days"] == 1
    assert history["summary"]["total_progress_entries"] == 1

    day = client.get("/activity/2024-01-10", headers=headers).json()
    assert day["has_activity"] is True

    backwards = client.get(
        "/activity/history", params={"start_date": "2024-01-10", "end_date": "2024-01-09"}, headers=headers
    )
    assert backwards.status_code == 400
