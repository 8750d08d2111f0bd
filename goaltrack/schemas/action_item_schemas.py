# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date


class TaskRecurrence(BaseModel):
    """
    Repeating schedule stored as JSON on the action item.

    days_of_week uses 0=Sunday .. 6=Saturday.
    """
    enabled: bool = True
    frequency: str = "daily"  # daily / weekly / monthly / yearly
    interval: int = Field(1, ge=1, le=365)
    days_of_week: Optional[List[int]] = None
    starts_on: Optional[date] = None
    ends_at: Optional[date] = None

    @field_validator("frequency")
    @classmethod
    def check_frequency(cls, v: str) -> str:
        v = v.lower()
        if v not in ("daily", "weekly", "monthly", "yearly"):
            raise ValueError("frequency must be one of daily, weekly, monthly, yearly")
        return v

    @field_validator("days_of_week")
    @classmethod
    def check_days(cls, v):
        if v is None:
            return v
        if any(d < 0 or d > 6 for d in v):
            raise ValueError("days_of_week values must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(v))


class FrequencyGoal(BaseModel):
    """N times per week/month, optionally pinned to fixed weekdays (0=Sunday)."""
    count: int = Field(..., ge=1, le=31)
    period: str = "week"  # week / month
    fixed_days: Optional[List[int]] = None

    @field_validator("period")
    @classmethod
    def check_period(cls, v: str) -> str:
        v = v.lower()
        if v not in ("week", "month"):
            raise ValueError("period must be week or month")
        return v

    @field_validator("fixed_days")
    @classmethod
    def check_fixed_days(cls, v):
        if v is None:
            return v
        if any(d < 0 or d > 6 for d in v):
            raise ValueError("fixed_days values must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(v))


class ReminderOverride(BaseModel):
    enabled: bool = True
    time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    minutes_before: Optional[int] = Field(None, ge=0, le=1440)


class ActionItemRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=500)
    task_type: str = "one_time"
    priority: str = "medium"
    target_date: Optional[date] = None
    order_index: Optional[int] = None
    recurrence: Optional[TaskRecurrence] = None
    frequency_goal: Optional[FrequencyGoal] = None
    reminder_override: Optional[ReminderOverride] = None
    notes: Optional[str] = Field(None, max_length=1000)


class UpdateActionItemRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=500)
    priority: Optional[str] = None
    target_date: Optional[date] = None
    order_index: Optional[int] = None
    recurrence: Optional[TaskRecurrence] = None
    frequency_goal: Optional[FrequencyGoal] = None
    reminder_override: Optional[ReminderOverride] = None
    notes: Optional[str] = Field(None, max_length=1000)


class GenerateScheduleRequest(BaseModel):
    start_date: date
    end_date: date


class ScheduledTaskRequest(BaseModel):
    task_id: int
    scheduled_date: date


class BulkScheduledTaskRequest(BaseModel):
    dates: List[date]


class TaskCompletionRequest(BaseModel):
    completed_date: Optional[date] = None   # defaults to today; past dates backfill
    status: str = "completed"               # completed / partial
    note: Optional[str] = Field(None, max_length=500)
    schedule_slot_id: Optional[int] = None


class ScheduleSlotRequest(BaseModel):
    slot_index: int = Field(..., ge=0, le=23)
    specific_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    created_via: str = "manual"
    effective_from: Optional[date] = None


class RescheduleSlotRequest(BaseModel):
    slot_index: int = Field(..., ge=0, le=23)
    specific_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    reason: str = "preference"
    effective_from: Optional[date] = None
