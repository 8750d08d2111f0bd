# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date


class ReflectionRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    went_well: Optional[str] = Field(None, max_length=2000)
    challenges: Optional[str] = Field(None, max_length=2000)
    adjustments: Optional[str] = Field(None, max_length=2000)
    mood_note: Optional[str] = Field(None, max_length=500)
    will_continue: Optional[bool] = None
    motivation_level: Optional[int] = Field(None, ge=1, le=10)


class UpdateReflectionRequest(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    went_well: Optional[str] = Field(None, max_length=2000)
    challenges: Optional[str] = Field(None, max_length=2000)
    adjustments: Optional[str] = Field(None, max_length=2000)
    mood_note: Optional[str] = Field(None, max_length=500)
    will_continue: Optional[bool] = None
    motivation_level: Optional[int] = Field(None, ge=1, le=10)


class JournalRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    mood: Optional[str] = None
    journal_date: Optional[date] = None


class UpdateJournalRequest(BaseModel):
    content: Optional[str] = Field(None, min_length=1, max_length=5000)
    mood: Optional[str] = None


class GuardianInviteRequest(BaseModel):
    guardian_email: str
    permissions: Optional[List[str]] = None
    invite_message: Optional[str] = Field(None, max_length=500)


class NudgeRequest(BaseModel):
    nudge_type: str = "encouragement"
    message: Optional[str] = Field(None, max_length=500)


class NudgeReactionRequest(BaseModel):
    reaction: str = Field(..., min_length=1, max_length=16)


class StreakShieldRequest(BaseModel):
    shield_date: date
