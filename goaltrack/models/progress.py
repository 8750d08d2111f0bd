# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, Float, Boolean, Date, DateTime, ForeignKey, UniqueConstraint
from datetime import datetime, date
from goaltrack.models.database import Base


class ProgressEntry(Base):
    __tablename__ = "progress_entries"

    id = Column(Integer, primary_key=True, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id"), nullable=False, index=True)
    progress_value = Column(Float, nullable=False)
    note = Column(String, nullable=True)
    entry_date = Column(Date, default=date.today, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Milestone(Base):
    __tablename__ = "milestones"

    id = Column(Integer, primary_key=True, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id"), nullable=False, index=True)
    percentage = Column(Integer, nullable=False)  # 1–100
    description = Column(String, nullable=True)
    achieved = Column(Boolean, default=False)
    achieved_at = Column(DateTime, nullable=True)

    __table_args__ = (UniqueConstraint("goal_id", "percentage", name="uq_goal_milestone_percentage"),)
