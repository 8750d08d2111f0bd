# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.models.subscription import SubscriptionTier, PurchaseType
from goaltrack.services import entitlement_service
from goaltrack.utils.auth_utils import get_current_user
from goaltrack.utils.errors import parse_enum

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


def _iso(value):
    return value.isoformat() if value else None


@router.get("/current")
def current_subscription(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    sub = entitlement_service.get_subscription(user, db)
    if not sub:
        # No row means the free plan
        return {
            "tier": SubscriptionTier.free.value,
            "status": "active",
            "is_premium": False,
            "provider": None,
            "current_period_start": None,
            "current_period_end": None,
            "cancelled_at": None,
        }
    return {
        "tier": sub.tier.value,
        "status": sub.status.value,
        "is_premium": sub.is_premium,
        "provider": sub.provider,
        "current_period_start": _iso(sub.current_period_start),
        "current_period_end": _iso(sub.current_period_end),
        "cancelled_at": _iso(sub.cancelled_at),
    }


@router.get("/entitlements")
def get_entitlements(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return entitlement_service.get_entitlements(user, db)


@router.get("/purchases")
def list_purchases(
    purchase_type: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    kind = parse_enum(PurchaseType, purchase_type, "purchase_type") if purchase_type else None
    return [
        {
            "id": p.id,
            "purchase_type": p.purchase_type.value,
            "quantity": p.quantity,
            "quantity_remaining": p.quantity_remaining,
            "amount_paise": p.amount_paise,
            "purchased_at": _iso(p.purchased_at),
        }
        for p in entitlement_service.list_purchases(user, db, kind)
    ]
