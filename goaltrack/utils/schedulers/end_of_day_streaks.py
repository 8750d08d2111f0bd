# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from datetime import date, timedelta
from typing import Optional
from sqlalchemy.orm import Session
from goaltrack.models.database import SessionLocal
from goaltrack.models.user import User
from goaltrack.services.streak_service import process_end_of_day
from goaltrack.utils.errors import GoaltrackError

import logging

logger = logging.getLogger("scheduler")


def run_end_of_day_streaks(day: Optional[date] = None) -> int:
    """
    Closes `day` (yesterday by default) for every active user so missed days
    show up in stored streaks even when nobody logs anything.
    """
    day = day or (date.today() - timedelta(days=1))
    db: Session = SessionLocal()
    processed = 0
    try:
        users = db.query(User).filter(User.is_active == True).all()
        for user in users:
            try:
                process_end_of_day(user, db, day)
                processed += 1
            except GoaltrackError as e:
                db.rollback()
                logger.warning(f"⚠️ End of day skipped for user {user.id}: {e.detail}")
        logger.info(f"✅ End-of-day streaks processed for {processed} users ({day.isoformat()}).")
    except Exception as e:
        db.rollback()
        logger.error(f"🛑 End-of-day streak processing failed: {e}", exc_info=True)
    finally:
        db.close()
    return processed
