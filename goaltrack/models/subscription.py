# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, DateTime, Enum, JSON, ForeignKey
from datetime import datetime
from goaltrack.models.database import Base
import enum


class SubscriptionTier(enum.Enum):
    free = "free"
    premium = "premium"


class SubscriptionStatus(enum.Enum):
    active = "active"
    trialing = "trialing"
    past_due = "past_due"
    cancelled = "cancelled"
    expired = "expired"


class PurchaseType(enum.Enum):
    streak_shield = "streak_shield"
    extra_guardian = "extra_guardian"


class UserSubscription(Base):
    __tablename__ = "user_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True, index=True)

    tier = Column(Enum(SubscriptionTier), default=SubscriptionTier.free, nullable=False)
    status = Column(Enum(SubscriptionStatus), default=SubscriptionStatus.active, nullable=False)

    # Explicit feature overrides; missing keys fall back to the tier defaults
    features = Column(JSON, nullable=True)

    provider = Column(String, nullable=True)              # e.g. "razorpay", "stripe"
    provider_subscription_id = Column(String, nullable=True)

    current_period_start = Column(DateTime, nullable=True)
    current_period_end = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_active(self) -> bool:
        return self.status in (SubscriptionStatus.active, SubscriptionStatus.trialing)

    @property
    def is_premium(self) -> bool:
        return self.tier == SubscriptionTier.premium and self.is_active


class UserPurchase(Base):
    __tablename__ = "user_purchases"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    purchase_type = Column(Enum(PurchaseType), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    quantity_remaining = Column(Integer, default=1, nullable=False)

    provider_payment_id = Column(String, nullable=True)
    amount_paise = Column(Integer, nullable=True)

    purchased_at = Column(DateTime, default=datetime.utcnow)

    def has_remaining(self) -> bool:
        return (self.quantity_remaining or 0) > 0

    def use_one(self) -> bool:
        """Decrement by one; stays at 0 when nothing is left."""
        if not self.has_remaining():
            return False
        self.quantity_remaining -= 1
        return True
