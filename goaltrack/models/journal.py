# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, Date, DateTime, Enum, ForeignKey, UniqueConstraint
from datetime import datetime
from goaltrack.models.database import Base
from goaltrack.utils.encryption import EncryptedTypeHybrid  # 🔐 Encryption utils
import enum


class Mood(enum.Enum):
    great = "great"
    good = "good"
    okay = "okay"
    low = "low"
    bad = "bad"


class DailyJournal(Base):
    __tablename__ = "daily_journals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    journal_date = Column(Date, nullable=False, index=True)

    content = Column(EncryptedTypeHybrid, nullable=False)  # 🔐 Encrypted transparently
    mood = Column(Enum(Mood), nullable=True)
    shield_awarded = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (UniqueConstraint("user_id", "journal_date", name="uq_user_journal_date"),)
