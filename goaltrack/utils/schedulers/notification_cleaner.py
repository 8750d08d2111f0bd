# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from goaltrack.models.database import SessionLocal
from goaltrack.models.notification import NotificationLog
from goaltrack.models.user import User
from goaltrack.services.entitlement_service import get_tier
from goaltrack.utils.tier_logic import get_user_notification_retention_days
import logging

logger = logging.getLogger("scheduler")


def delete_old_notification_logs() -> int:
    db: Session = SessionLocal()
    total_deleted = 0
    try:
        users = db.query(User).all()
        for user in users:
            tier = get_tier(user, db)
            retention_days = get_user_notification_retention_days(tier)
            cutoff = datetime.utcnow() - timedelta(days=retention_days)

            deleted_count = (
                db.query(NotificationLog)
                .filter(
                    NotificationLog.user_id == user.id,
                    NotificationLog.timestamp < cutoff
                )
                .delete(synchronize_session=False)
            )
            db.commit()
            total_deleted += deleted_count
            if deleted_count:
                logger.info(
                    f"🗑️ User {user.id} ({tier.value}) - Deleted {deleted_count} NotificationLog records older than {retention_days} days."
                )

        logger.info("✅ NotificationLog cleanup completed.")
    except Exception as e:
        db.rollback()
        logger.error(f"🛑 NotificationLog cleanup failed: {e}", exc_info=True)
    finally:
        db.close()
    return total_deleted
