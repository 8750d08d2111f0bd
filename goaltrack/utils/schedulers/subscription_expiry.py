# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from goaltrack.models.database import SessionLocal
from goaltrack.models.subscription import UserSubscription, SubscriptionStatus

import logging

logger = logging.getLogger("scheduler")

# Days a past_due subscription keeps its tier after the period ends
PAST_DUE_GRACE_DAYS = 3

_LAPSING = (
    SubscriptionStatus.active,
    SubscriptionStatus.trialing,
    SubscriptionStatus.cancelled,
    SubscriptionStatus.past_due,
)


def expire_lapsed_subscriptions() -> int:
    """
    Marks subscriptions whose paid period has ended as expired. past_due
    rows get a short grace period before they lapse.
    """
    db: Session = SessionLocal()
    expired = 0
    try:
        now = datetime.utcnow()
        rows = db.query(UserSubscription).filter(
            UserSubscription.status.in_(_LAPSING),
            UserSubscription.current_period_end.isnot(None),
            UserSubscription.current_period_end < now,
        ).all()
        for sub in rows:
            if sub.status == SubscriptionStatus.past_due and sub.current_period_end + timedelta(days=PAST_DUE_GRACE_DAYS) > now:
                continue
            logger.info(f"⌛ Subscription {sub.id} for user {sub.user_id} lapsed ({sub.status.value} -> expired)")
            sub.status = SubscriptionStatus.expired
            expired += 1
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"🛑 Subscription expiry failed: {e}", exc_info=True)
    finally:
        db.close()
    return expired
