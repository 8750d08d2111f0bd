# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, UniqueConstraint
from datetime import datetime
from goaltrack.models.database import Base


class StreakInfo(Base):
    """
    Streak counters for one scope:
    user (goal_id and action_item_id null), goal (action_item_id null) or task.
    """
    __tablename__ = "streak_info"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id"), nullable=True, index=True)
    action_item_id = Column(Integer, ForeignKey("action_items.id"), nullable=True, index=True)

    current_maintained_streak = Column(Integer, default=0, nullable=False)
    best_maintained_streak = Column(Integer, default=0, nullable=False)
    current_perfect_streak = Column(Integer, default=0, nullable=False)
    best_perfect_streak = Column(Integer, default=0, nullable=False)

    last_activity_date = Column(Date, nullable=True)
    last_processed_date = Column(Date, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    @property
    def scope(self) -> str:
        if self.action_item_id is not None:
            return "task"
        if self.goal_id is not None:
            return "goal"
        return "user"


class StreakShield(Base):
    """A shield explicitly applied to cover a missed day."""
    __tablename__ = "streak_shields"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    shield_date = Column(Date, nullable=False)
    purchase_id = Column(Integer, ForeignKey("user_purchases.id"), nullable=True)  # null = allowance
    used_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (UniqueConstraint("user_id", "shield_date", name="uq_user_shield_date"),)
