# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, JSON, ForeignKey, UniqueConstraint
from datetime import datetime
from goaltrack.models.database import Base
from goaltrack.utils.encryption import EncryptedTypeHybrid  # 🔐
import enum


class GuardianStatus(enum.Enum):
    pending = "pending"
    active = "active"
    declined = "declined"
    revoked = "revoked"


class GuardianPermission(enum.Enum):
    view_progress = "view_progress"
    view_streaks = "view_streaks"
    view_reflections = "view_reflections"
    send_nudge = "send_nudge"


class NudgeType(enum.Enum):
    encouragement = "encouragement"
    reminder = "reminder"
    celebration = "celebration"
    check_in = "check_in"


DEFAULT_GUARDIAN_PERMISSIONS = [
    GuardianPermission.view_progress.value,
    GuardianPermission.view_streaks.value,
    GuardianPermission.send_nudge.value,
]


class GoalGuardian(Base):
    __tablename__ = "goal_guardians"

    id = Column(Integer, primary_key=True, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id"), nullable=False, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    guardian_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(Enum(GuardianStatus), default=GuardianStatus.pending, nullable=False)
    permissions = Column(JSON, nullable=False, default=lambda: list(DEFAULT_GUARDIAN_PERMISSIONS))
    invite_message = Column(String(500), nullable=True)

    invited_at = Column(DateTime, default=datetime.utcnow)
    responded_at = Column(DateTime, nullable=True)
    revoked_at = Column(DateTime, nullable=True)

    __table_args__ = (UniqueConstraint("goal_id", "guardian_id", name="uq_goal_guardian"),)

    def has_permission(self, permission: GuardianPermission) -> bool:
        return permission.value in (self.permissions or [])


class GuardianNudge(Base):
    __tablename__ = "guardian_nudges"

    id = Column(Integer, primary_key=True, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id"), nullable=False, index=True)
    guardian_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    nudge_type = Column(Enum(NudgeType), default=NudgeType.encouragement, nullable=False)
    message = Column(EncryptedTypeHybrid, nullable=True)  # 🔐

    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)
    reaction = Column(String(16), nullable=True)

    sent_at = Column(DateTime, default=datetime.utcnow)
