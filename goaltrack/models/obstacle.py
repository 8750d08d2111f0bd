# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, Boolean, Date, DateTime, ForeignKey
from datetime import datetime, date
from goaltrack.models.database import Base
from goaltrack.utils.encryption import EncryptedTypeHybrid  # 🔐


class ObstacleEntry(Base):
    __tablename__ = "obstacle_entries"

    id = Column(Integer, primary_key=True, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id"), nullable=False, index=True)
    entry_date = Column(Date, default=date.today, nullable=False)

    obstacle = Column(EncryptedTypeHybrid, nullable=False)   # 🔐
    solution = Column(EncryptedTypeHybrid, nullable=True)    # 🔐
    resolved = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
