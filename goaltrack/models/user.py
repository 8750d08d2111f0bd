# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, DateTime, Boolean
from datetime import datetime
from goaltrack.models.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, default="")
    email = Column(String, unique=True, index=True, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # ✅ Streak shields currently held (monthly allowance + journal awards)
    streak_shields = Column(Integer, default=0, nullable=False)
    last_shield_reset = Column(DateTime, nullable=True)

    # ✅ Nudges
    push_notifications_enabled = Column(Boolean, default=True)
    nudge_frequency = Column(String, default="normal")  # low / normal / high
    nudge_last_sent = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<User id={self.id} email={self.email} shields={self.streak_shields}>"
