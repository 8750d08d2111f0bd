# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from datetime import datetime

import pytest

from goaltrack.models.subscription import (
    UserPurchase, PurchaseType, SubscriptionTier, SubscriptionStatus
)
from goaltrack.services import entitlement_service, goal_service
from goaltrack.services.entitlement_service import is_allowed
from goaltrack.utils.errors import SubscriptionRequiredError, UsageLimitExceededError
from goaltrack.utils.tier_logic import default_feature_map


@pytest.mark.parametrize("tier, status, features, required_tier, required_features, expected", [
    ("free", "active", {}, None, (), True),
    ("free", "active", {}, "premium", (), False),
    ("premium", "active", {}, "premium", (), True),
    ("premium", "trialing", {}, "premium", (), True),
    ("premium", "past_due", {}, "premium", (), False),
    ("premium", "cancelled", {}, "premium", (), False),
    ("premium", "active", {"aiInsights": True}, "premium", ["aiInsights"], True),
    ("premium", "active", {"aiInsights": False}, "premium", ["aiInsights"], False),
    ("premium", "active", {}, "premium", ["aiInsights"], False),
    ("free", "active", {"guardianSystem": True}, "free", ["guardianSystem"], True),
])
def test_is_allowed(tier, status, features, required_tier, required_features, expected):
    assert is_allowed(tier, status, features, required_tier, required_features) is expected


def test_is_allowed_accepts_enums():
    assert is_allowed(SubscriptionTier.premium, SubscriptionStatus.active, None, SubscriptionTier.premium)


def test_default_feature_map():
    free = default_feature_map(False)
    premium = default_feature_map(True)
    assert free["guardianSystem"] is True
    assert free["aiInsights"] is False
    assert premium["aiInsights"] is True


def test_use_one_stops_at_zero():
    purchase = UserPurchase(purchase_type=PurchaseType.streak_shield, quantity=1, quantity_remaining=1)
    assert purchase.use_one() is True
    assert purchase.quantity_remaining == 0
    assert purchase.use_one() is False
    assert purchase.quantity_remaining == 0


def test_free_goal_limit_counts_only_live_goals(db, user, make_goal):
    goals = [make_goal(user, title=f"Goal {n}") for n in range(3)]

    with pytest.raises(UsageLimitExceededError):
        make_goal(user, title="One too many")

    goal_service.archive_goal(user, goals[0].id, db)
    make_goal(user, title="Fits again")

    with pytest.raises(UsageLimitExceededError):
        goal_service.unarchive_goal(user, goals[0].id, db)


def test_premium_has_no_goal_limit(db, user, make_goal, make_premium):
    make_premium(user)
    for n in range(6):
        make_goal(user, title=f"Goal {n}")
    assert entitlement_service.count_active_goals(user, db) == 6


def test_lapsed_premium_falls_back_to_free(db, user, make_premium):
    make_premium(user, status=SubscriptionStatus.past_due)
    assert entitlement_service.get_tier(user, db) == SubscriptionTier.free
    assert entitlement_service.get_feature_map(user, db)["aiInsights"] is False


def test_feature_overrides_apply_over_defaults(db, user, make_premium):
    make_premium(user, features={"aiInsights": False})
    features = entitlement_service.get_feature_map(user, db)
    assert features["aiInsights"] is False
    assert features["dataExport"] is True

    with pytest.raises(SubscriptionRequiredError):
        entitlement_service.check_access(user, db, SubscriptionTier.premium, ["aiInsights"])


def test_entitlements_summary(db, user):
    db.add(UserPurchase(user_id=user.id, purchase_type=PurchaseType.streak_shield, quantity=3, quantity_remaining=2))
    db.commit()

    data = entitlement_service.get_entitlements(user, db)
    assert data["tier"] == "free"
    assert data["limits"]["max_active_goals"] == 3
    assert data["limits"]["max_guardians_per_goal"] == 1
    assert data["consumables"]["streak_shield"] == 2


def test_consume_purchase_uses_oldest_first(db, user):
    old = UserPurchase(user_id=user.id, purchase_type=PurchaseType.streak_shield, quantity=1,
                       quantity_remaining=1, purchased_at=datetime(2024, 1, 1))
    new = UserPurchase(user_id=user.id, purchase_type=PurchaseType.streak_shield, quantity=1,
                       quantity_remaining=1, purchased_at=datetime(2024, 2, 1))
    db.add_all([new, old])
    db.commit()

    assert entitlement_service.consume_purchase(user, db, PurchaseType.streak_shield).id == old.id
    assert entitlement_service.consume_purchase(user, db, PurchaseType.streak_shield).id == new.id
    with pytest.raises(UsageLimitExceededError):
        entitlement_service.consume_purchase(user, db, PurchaseType.streak_shield)


def test_monthly_shield_refresh_runs_once_per_month(db, user, make_premium):
    make_premium(user)
    assert entitlement_service.refresh_monthly_shields(user, db, datetime(2024, 3, 1, 3)) is True
    assert user.streak_shields == 3
    user.streak_shields = 1
    assert entitlement_service.refresh_monthly_shields(user, db, datetime(2024, 3, 20)) is False
    assert user.streak_shields == 1
    assert entitlement_service.refresh_monthly_shields(user, db, datetime(2024, 4, 1)) is True
    assert user.streak_shields == 3
