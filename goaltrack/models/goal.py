# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Float, Enum, ForeignKey
from datetime import datetime
from goaltrack.models.database import Base
import enum


class GoalStatus(enum.Enum):
    active = "active"
    paused = "paused"
    completed = "completed"
    abandoned = "abandoned"


class GoalCategory(enum.Enum):
    health = "health"
    fitness = "fitness"
    finance = "finance"
    career = "career"
    education = "education"
    relationships = "relationships"
    personal_growth = "personal_growth"
    hobbies = "hobbies"
    other = "other"


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(Enum(GoalCategory), default=GoalCategory.other, nullable=False)
    motivation = Column(Text, nullable=True)

    target_value = Column(Float, nullable=True)
    unit = Column(String, nullable=True)
    current_progress = Column(Float, default=0.0, nullable=False)

    start_date = Column(Date, nullable=True)
    target_date = Column(Date, nullable=True)

    status = Column(Enum(GoalStatus), default=GoalStatus.active, nullable=False)
    previous_status = Column(Enum(GoalStatus), nullable=True)
    archived_at = Column(Date, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def __repr__(self):
        return f"<Goal id={self.id} status={self.status.value} progress={self.current_progress}>"
