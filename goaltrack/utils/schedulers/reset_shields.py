# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy.orm import Session
from datetime import datetime
from goaltrack.models.database import SessionLocal
from goaltrack.models.user import User
from goaltrack.services.entitlement_service import refresh_monthly_shields

import logging

logger = logging.getLogger("scheduler")


def reset_all_streak_shields() -> int:
    """
    Tops every active user's streak shields up to their tier's monthly
    allowance. Users already refreshed this month are skipped.
    """
    db: Session = SessionLocal()
    total_reset = 0
    try:
        now = datetime.utcnow()
        users = db.query(User).filter(User.is_active == True).all()
        for user in users:
            if refresh_monthly_shields(user, db, now):
                total_reset += 1
        db.commit()
        logger.info(f"✅ Monthly streak shields refreshed for {total_reset} users.")
    except Exception as e:
        db.rollback()
        logger.error(f"🛑 Failed to refresh streak shields: {e}", exc_info=True)
    finally:
        db.close()
    return total_reset
