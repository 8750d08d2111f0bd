# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import datetime
from typing import Iterable, Optional, Union

from sqlalchemy.orm import Session

from goaltrack.models.user import User
from goaltrack.models.goal import Goal, GoalStatus
from goaltrack.models.guardian import GoalGuardian, GuardianStatus
from goaltrack.models.subscription import (
    UserSubscription, UserPurchase, SubscriptionTier, SubscriptionStatus, PurchaseType
)
from goaltrack.utils.errors import SubscriptionRequiredError, UsageLimitExceededError
from goaltrack.utils.tier_logic import (
    default_feature_map,
    get_max_active_goals,
    get_max_guardians_per_goal,
    get_progress_history_days,
    get_streak_shields_per_month,
)

logger = logging.getLogger(__name__)

TIER_RANK = {
    SubscriptionTier.free: 1,
    SubscriptionTier.premium: 2,
}

_ACTIVE_STATUSES = (SubscriptionStatus.active, SubscriptionStatus.trialing)


def _as_tier(value: Union[SubscriptionTier, str, None]) -> SubscriptionTier:
    if isinstance(value, SubscriptionTier):
        return value
    if value is None:
        return SubscriptionTier.free
    return SubscriptionTier(str(value).lower())


def _as_status(value: Union[SubscriptionStatus, str, None]) -> Optional[SubscriptionStatus]:
    if value is None or isinstance(value, SubscriptionStatus):
        return value
    return SubscriptionStatus(str(value).lower())


# ------------------- Pure gate -------------------
def is_allowed(
    tier: Union[SubscriptionTier, str, None],
    status: Union[SubscriptionStatus, str, None],
    features: Optional[dict],
    required_tier: Union[SubscriptionTier, str, None] = None,
    required_features: Iterable[str] = (),
) -> bool:
    """
    Decides access without touching the database.

    Premium requirements need a premium tier with an active or trialing status.
    Every required feature must be present in `features` and true.
    """
    tier = _as_tier(tier)
    status = _as_status(status)

    if required_tier is not None:
        required_tier = _as_tier(required_tier)
        if TIER_RANK[tier] < TIER_RANK[required_tier]:
            return False
        if required_tier != SubscriptionTier.free and status not in _ACTIVE_STATUSES:
            return False

    features = features or {}
    return all(features.get(name) is True for name in required_features)


# ------------------- Lookups -------------------
def get_subscription(user: User, db: Session) -> Optional[UserSubscription]:
    return db.query(UserSubscription).filter(UserSubscription.user_id == user.id).first()


def get_tier(user: User, db: Session) -> SubscriptionTier:
    """Effective tier: premium only while the subscription is active."""
    subscription = get_subscription(user, db)
    if subscription and subscription.is_premium:
        return SubscriptionTier.premium
    return SubscriptionTier.free


def get_feature_map(user: User, db: Session) -> dict:
    subscription = get_subscription(user, db)
    is_premium = bool(subscription and subscription.is_premium)
    features = default_feature_map(is_premium)
    if subscription and subscription.features:
        features.update({k: bool(v) for k, v in subscription.features.items()})
    return features


def check_access(user: User, db: Session, required_tier=None, required_features: Iterable[str] = ()):
    subscription = get_subscription(user, db)
    tier = subscription.tier if subscription else SubscriptionTier.free
    status = subscription.status if subscription else SubscriptionStatus.active
    features = get_feature_map(user, db)
    required_features = tuple(required_features)

    if is_allowed(tier, status, features, required_tier, required_features):
        return

    missing = [name for name in required_features if features.get(name) is not True]
    feature = missing[0] if missing else "this feature"
    required = _as_tier(required_tier).value if required_tier is not None else SubscriptionTier.premium.value
    logger.warning("Subscription check failed for user %s (tier=%s, feature=%s)", user.id, tier.value, feature)
    raise SubscriptionRequiredError(feature, required)


def list_purchases(user: User, db: Session, purchase_type: Optional[PurchaseType] = None):
    query = db.query(UserPurchase).filter(UserPurchase.user_id == user.id)
    if purchase_type is not None:
        query = query.filter(UserPurchase.purchase_type == purchase_type)
    return query.order_by(UserPurchase.purchased_at.asc(), UserPurchase.id.asc()).all()


def count_remaining(user: User, db: Session, purchase_type: PurchaseType) -> int:
    return sum(p.quantity_remaining or 0 for p in list_purchases(user, db, purchase_type))


def get_entitlements(user: User, db: Session) -> dict:
    tier = get_tier(user, db)
    return {
        "tier": tier.value,
        "is_premium": tier == SubscriptionTier.premium,
        "limits": {
            "max_active_goals": get_max_active_goals(tier),
            "max_guardians_per_goal": get_max_guardians_per_goal(tier),
            "progress_history_days": get_progress_history_days(tier),
            "streak_shields_per_month": get_streak_shields_per_month(tier),
        },
        "features": get_feature_map(user, db),
        "consumables": {
            purchase_type.value: count_remaining(user, db, purchase_type)
            for purchase_type in PurchaseType
        },
        "streak_shields": user.streak_shields,
    }


# ------------------- Limits -------------------
def count_active_goals(user: User, db: Session) -> int:
    return db.query(Goal).filter(
        Goal.user_id == user.id,
        Goal.archived_at.is_(None),
        Goal.status.in_([GoalStatus.active, GoalStatus.paused]),
    ).count()


def enforce_goal_limit(user: User, db: Session):
    maximum = get_max_active_goals(get_tier(user, db))
    if maximum is None:
        return
    current = count_active_goals(user, db)
    if current >= maximum:
        logger.warning("Goal limit reached for user %s (%s/%s)", user.id, current, maximum)
        raise UsageLimitExceededError("active_goals", current, maximum)


def enforce_guardian_limit(user: User, goal_id: int, db: Session) -> Optional[UserPurchase]:
    """
    Past the tier's guardians-per-goal limit, each further invitation uses
    one extra_guardian purchase. Returns the purchase used, if any. The
    caller commits.
    """
    maximum = get_max_guardians_per_goal(get_tier(user, db))
    current = db.query(GoalGuardian).filter(
        GoalGuardian.goal_id == goal_id,
        GoalGuardian.status.in_([GuardianStatus.pending, GuardianStatus.active]),
    ).count()
    if current < maximum:
        return None
    if count_remaining(user, db, PurchaseType.extra_guardian) > 0:
        return consume_purchase(user, db, PurchaseType.extra_guardian)
    logger.warning("Guardian limit reached for goal %s (%s/%s)", goal_id, current, maximum)
    raise UsageLimitExceededError("guardians_per_goal", current, maximum)


def consume_purchase(user: User, db: Session, purchase_type: PurchaseType) -> UserPurchase:
    """
    Uses one unit from the oldest purchase that still has some left.
    The caller commits.
    """
    for purchase in list_purchases(user, db, purchase_type):
        if purchase.use_one():
            logger.info("Consumed one %s from purchase %s (user %s)", purchase_type.value, purchase.id, user.id)
            return purchase
    raise UsageLimitExceededError(purchase_type.value, 0, 0)


def refresh_monthly_shields(user: User, db: Session, now: Optional[datetime] = None) -> bool:
    """
    Tops held shields up to the tier's monthly allowance once per calendar
    month. Shields above the allowance are kept. The caller commits.
    """
    now = now or datetime.utcnow()
    last = user.last_shield_reset
    if last and (last.year, last.month) == (now.year, now.month):
        return False

    allowance = get_streak_shields_per_month(get_tier(user, db))
    user.streak_shields = max(user.streak_shields or 0, allowance)
    user.last_shield_reset = now
    return True
