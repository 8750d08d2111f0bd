# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, Date, DateTime, Enum, ForeignKey
from datetime import datetime
from goaltrack.models.database import Base
from goaltrack.models.action_item import CompletionStatus


class TaskCompletion(Base):
    """
    Immutable record that an action item was done on a date.
    One per (item, date); the completion service checks before insert.
    """
    __tablename__ = "task_completions"

    id = Column(Integer, primary_key=True, index=True)
    action_item_id = Column(Integer, ForeignKey("action_items.id"), nullable=False, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    schedule_slot_id = Column(Integer, ForeignKey("task_schedule_slots.id"), nullable=True)

    completed_date = Column(Date, nullable=False, index=True)
    status = Column(Enum(CompletionStatus), default=CompletionStatus.completed, nullable=False)
    note = Column(String(500), nullable=True)
    completed_at = Column(DateTime, default=datetime.utcnow)
