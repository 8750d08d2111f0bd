# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional
from sqlalchemy.orm import Session
from goaltrack.models.database import SessionLocal
from goaltrack.models.user import User
from goaltrack.models.goal import Goal
from goaltrack.models.notification import NotificationLog
from goaltrack.services.streak_service import find_streaks_at_risk

logger = logging.getLogger("scheduler")

# Minimum gap between two streak nudges, by user preference
NUDGE_INTERVALS = {
    "low": timedelta(days=3),
    "normal": timedelta(days=1),
    "high": timedelta(hours=4),
}

# -------------------------------
# Checkers
# -------------------------------

def should_nudge(user: User, now: Optional[datetime] = None) -> bool:
    now = now or datetime.utcnow()
    if not user.push_notifications_enabled:
        return False
    if not user.nudge_last_sent:
        return True
    interval = NUDGE_INTERVALS.get(user.nudge_frequency or "normal", NUDGE_INTERVALS["normal"])
    return now - user.nudge_last_sent >= interval

# -------------------------------
# Text Generator
# -------------------------------

def build_streak_nudge_text(user: User, at_risk: List[dict], db: Session) -> str:
    lines = []
    for streak in at_risk:
        days = streak["current_maintained_streak"]
        if streak["scope"] == "user":
            lines.append(f"🔥 Your {days}-day streak")
        elif streak["scope"] == "goal":
            goal = db.query(Goal).filter(Goal.id == streak["goal_id"]).first()
            title = goal.title if goal else "a goal"
            lines.append(f"🎯 *{title}* ({days} days)")
    body = "\n".join(lines) if lines else "🔥 Your streak"
    name = user.name or "there"
    return (
        f"Hi {name}, your streaks are waiting on you today 👋\n\n"
        f"{body}\n\n"
        "Log one task or a bit of progress to keep them alive!"
    )

# -------------------------------
# Main Scheduler
# -------------------------------

def notify_user_if_at_risk(user: User, db: Session, today: Optional[date] = None) -> bool:
    if not should_nudge(user):
        return False

    at_risk = find_streaks_at_risk(user, db, today)
    if not at_risk:
        return False

    text = build_streak_nudge_text(user, at_risk, db)
    db.add(NotificationLog(
        user_id=user.id,
        notification_type="streak_at_risk",
        content=text,
        delivered=False,
        timestamp=datetime.utcnow(),
    ))
    user.nudge_last_sent = datetime.utcnow()
    db.commit()
    logger.info("[STREAK NUDGE] %s streak(s) at risk for user %s", len(at_risk), user.id)
    return True


def process_streak_nudges() -> int:
    db = SessionLocal()
    sent = 0
    try:
        users = db.query(User).filter(User.is_active == True).all()
        for user in users:
            try:
                if notify_user_if_at_risk(user, db):
                    sent += 1
            except Exception as e:
                db.rollback()
                logger.error("⚠️ Streak nudge failed for user %s: %s", user.id, str(e))
        logger.info("✅ Streak nudges sent: %s", sent)
    finally:
        db.close()
    return sent
