# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from datetime import date
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.services import activity_history_service
from goaltrack.utils.auth_utils import get_current_user

router = APIRouter(prefix="/activity", tags=["Activity"])


@router.get("/history")
def get_history(
    start_date: date,
    end_date: date,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return activity_history_service.get_activity_history(user, start_date, end_date, db)


@router.get("/{day}")
def get_daily_activity(day: date, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return activity_history_service.get_daily_activity(user, day, db)
