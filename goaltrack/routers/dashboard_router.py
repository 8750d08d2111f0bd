# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.services import dashboard_service
from goaltrack.utils.auth_utils import get_current_user

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("")
def get_dashboard(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return dashboard_service.get_dashboard(user, db)


@router.get("/goal-stats")
def get_goal_stats(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return dashboard_service.get_goal_stats(user, db)
