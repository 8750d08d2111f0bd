# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from pydantic import BaseModel, Field
from typing import Optional
from datetime import date


class GoalRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: str = "other"
    motivation: Optional[str] = None
    target_value: Optional[float] = Field(None, gt=0)
    unit: Optional[str] = None
    start_date: Optional[date] = None
    target_date: Optional[date] = None


class UpdateGoalRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    motivation: Optional[str] = None
    target_value: Optional[float] = Field(None, gt=0)
    unit: Optional[str] = None
    start_date: Optional[date] = None
    target_date: Optional[date] = None


class ProgressRequest(BaseModel):
    progress_value: float = Field(..., gt=0)
    note: Optional[str] = Field(None, max_length=500)
    entry_date: Optional[date] = None  # backfill; defaults to today


class MilestoneRequest(BaseModel):
    percentage: int = Field(..., ge=1, le=100)
    description: Optional[str] = Field(None, max_length=255)


class ObstacleRequest(BaseModel):
    obstacle: str = Field(..., min_length=1, max_length=1000)
    solution: Optional[str] = Field(None, max_length=1000)
    entry_date: Optional[date] = None


class UpdateObstacleRequest(BaseModel):
    obstacle: Optional[str] = Field(None, min_length=1, max_length=1000)
    solution: Optional[str] = Field(None, max_length=1000)
    resolved: Optional[bool] = None
