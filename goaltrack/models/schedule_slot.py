# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, Date, DateTime, Enum, ForeignKey
from datetime import datetime
from goaltrack.models.database import Base
import enum


class ScheduleSlotCreationType(enum.Enum):
    manual = "manual"
    suggested = "suggested"
    rescheduled = "rescheduled"


class RescheduleReason(enum.Enum):
    conflict = "conflict"
    preference = "preference"
    missed = "missed"
    energy = "energy"
    other = "other"


class TaskScheduleSlot(Base):
    __tablename__ = "task_schedule_slots"

    id = Column(Integer, primary_key=True, index=True)
    action_item_id = Column(Integer, ForeignKey("action_items.id"), nullable=False, index=True)

    slot_index = Column(Integer, nullable=False)          # hour-of-day bucket, 0-23
    specific_time = Column(String(5), nullable=True)      # "HH:MM"
    created_via = Column(Enum(ScheduleSlotCreationType), default=ScheduleSlotCreationType.manual)

    effective_from = Column(Date, nullable=False)
    effective_until = Column(Date, nullable=True)         # null = open

    rescheduled_from_slot_id = Column(Integer, ForeignKey("task_schedule_slots.id"), nullable=True)
    reschedule_reason = Column(Enum(RescheduleReason), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    def is_active_on(self, day) -> bool:
        if self.effective_from > day:
            return False
        return self.effective_until is None or day <= self.effective_until

    @property
    def is_open(self) -> bool:
        return self.effective_until is None
