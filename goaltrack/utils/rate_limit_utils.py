# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import os
import logging
from fastapi import Request, HTTPException
from slowapi import Limiter
from slowapi.util import get_remote_address

from goaltrack.models.database import SessionLocal
from goaltrack.models.user import User
from goaltrack.models.subscription import SubscriptionTier
from goaltrack.utils.jwt_utils import verify_access_token, user_id_from_payload
from goaltrack.utils.tier_logic import get_rate_limit
from goaltrack.services.entitlement_service import get_tier

logger = logging.getLogger(__name__)

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

TIER_RATES = {
    SubscriptionTier.free.value: get_rate_limit(SubscriptionTier.free),
    SubscriptionTier.premium.value: get_rate_limit(SubscriptionTier.premium),
}


def get_rate_limit_key(request: Request) -> str:
    """
    Bucket key of the form "<tier>:<caller>". Authenticated callers are keyed
    by user id, everyone else by remote address on the free rate.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return f"{SubscriptionTier.free.value}:{get_remote_address(request)}"

    try:
        payload = verify_access_token(auth_header.split(" ")[1])
        user_id = user_id_from_payload(payload)
    except HTTPException:
        return f"{SubscriptionTier.free.value}:{get_remote_address(request)}"

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            return f"{SubscriptionTier.free.value}:{get_remote_address(request)}"
        tier = get_tier(user, db)
    finally:
        db.close()

    return f"{tier.value}:{user_id}"


def get_tier_limit(key: str) -> str:
    tier = key.split(":", 1)[0]
    return TIER_RATES.get(tier, TIER_RATES[SubscriptionTier.free.value])


limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=[TIER_RATES[SubscriptionTier.premium.value]],
    enabled=RATE_LIMIT_ENABLED,
)
