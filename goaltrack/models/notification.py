# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Index
from datetime import datetime
from goaltrack.models.database import Base
from goaltrack.utils.encryption import EncryptedTypeHybrid  # 🔐 Encryption utils


class NotificationLog(Base):
    """Outbox row a push dispatcher picks up; `delivered` flips once sent."""

    __tablename__ = "notification_logs"
    __table_args__ = (Index("ix_notification_logs_user_time", "user_id", "timestamp"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    goal_id = Column(Integer, ForeignKey("goals.id", ondelete="SET NULL"), nullable=True)
    notification_type = Column(String, default="generic")  # streak_at_risk, guardian_invite, guardian_response, guardian_nudge

    content = Column(EncryptedTypeHybrid, nullable=True)  # 🔐 Encrypted transparently

    delivered = Column(Boolean, default=False)
    timestamp = Column(DateTime, default=datetime.utcnow)
