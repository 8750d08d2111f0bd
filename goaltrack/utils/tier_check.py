# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from typing import Iterable, Optional
from fastapi import Depends
from sqlalchemy.orm import Session

from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.models.subscription import SubscriptionTier
from goaltrack.services.entitlement_service import check_access
from goaltrack.utils.auth_utils import get_current_user


# ------------------- Tier Access Enforcement -------------------
def require_subscription(required_tier: Optional[SubscriptionTier] = None, features: Iterable[str] = ()):
    """
    Route dependency that runs before the handler body and raises
    SubscriptionRequiredError when the caller lacks the tier or a feature.
    Resolves to the current user so handlers can use it directly.

        @router.get("/{goal_id}/insights")
        def insights(user: User = Depends(require_subscription(SubscriptionTier.premium, ["aiInsights"]))):
    """
    required_features = tuple(features)

    def dependency(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> User:
        check_access(user, db, required_tier, required_features)
        return user

    return dependency
