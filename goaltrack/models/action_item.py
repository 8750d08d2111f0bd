# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, Text, Boolean, Date, DateTime, Enum, JSON, ForeignKey
from datetime import datetime
from goaltrack.models.database import Base
from goaltrack.schemas.action_item_schemas import TaskRecurrence, FrequencyGoal, ReminderOverride
import enum


class TaskType(enum.Enum):
    one_time = "one_time"
    recurring = "recurring"
    frequency_based = "frequency_based"


class TaskPriority(enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class CompletionStatus(enum.Enum):
    pending = "pending"
    completed = "completed"
    partial = "partial"
    missed = "missed"
    rescheduled = "rescheduled"


class ActionItem(Base):
    __tablename__ = "action_items"

    id = Column(Integer, primary_key=True, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(String(500), nullable=True)
    task_type = Column(Enum(TaskType), default=TaskType.one_time, nullable=False)
    priority = Column(Enum(TaskPriority), default=TaskPriority.medium, nullable=False)
    target_date = Column(Date, nullable=True)
    order_index = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    # Nested records, one JSON document each
    recurrence = Column(JSON, nullable=True)
    frequency_goal = Column(JSON, nullable=True)
    reminder_override = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def recurrence_config(self):
        return TaskRecurrence.model_validate(self.recurrence) if self.recurrence else None

    @property
    def frequency_goal_config(self):
        return FrequencyGoal.model_validate(self.frequency_goal) if self.frequency_goal else None

    @property
    def reminder_override_config(self):
        return ReminderOverride.model_validate(self.reminder_override) if self.reminder_override else None

    @property
    def anchor_date(self):
        """Date interval recurrences step from."""
        config = self.recurrence_config
        if config and config.starts_on:
            return config.starts_on
        if self.created_at:
            return self.created_at.date()
        return None

    def __repr__(self):
        return f"<ActionItem id={self.id} goal={self.goal_id} type={self.task_type.value}>"
