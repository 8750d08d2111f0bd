# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, Boolean, Date, DateTime, Enum, ForeignKey, UniqueConstraint
from datetime import datetime
from goaltrack.models.database import Base
from goaltrack.utils.encryption import EncryptedTypeHybrid  # 🔐
import enum


class ReflectionFrequency(enum.Enum):
    daily = "daily"
    every_3_days = "every_3_days"
    weekly = "weekly"
    bi_weekly = "bi_weekly"

    @property
    def days(self) -> int:
        return {"daily": 1, "every_3_days": 3, "weekly": 7, "bi_weekly": 14}[self.value]


class GoalReflection(Base):
    __tablename__ = "goal_reflections"

    id = Column(Integer, primary_key=True, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    frequency = Column(Enum(ReflectionFrequency), nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)

    rating = Column(Integer, nullable=False)  # 1-5
    went_well = Column(EncryptedTypeHybrid, nullable=True)     # 🔐
    challenges = Column(EncryptedTypeHybrid, nullable=True)    # 🔐
    adjustments = Column(EncryptedTypeHybrid, nullable=True)   # 🔐
    mood_note = Column(EncryptedTypeHybrid, nullable=True)     # 🔐
    will_continue = Column(Boolean, nullable=True)
    motivation_level = Column(Integer, nullable=True)  # 1-10

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("goal_id", "period_start", name="uq_goal_reflection_period"),
    )
