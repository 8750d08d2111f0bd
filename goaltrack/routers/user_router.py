# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.services.entitlement_service import get_tier
from goaltrack.utils.auth_utils import get_current_user

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me")
def get_profile(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "streak_shields": user.streak_shields,
        "tier": get_tier(user, db).value,
        "push_notifications_enabled": user.push_notifications_enabled,
        "nudge_frequency": user.nudge_frequency,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
