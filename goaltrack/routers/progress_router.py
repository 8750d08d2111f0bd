# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.schemas.goal_schemas import (
    ProgressRequest, MilestoneRequest, ObstacleRequest, UpdateObstacleRequest
)
from goaltrack.services import progress_service, obstacle_service
from goaltrack.utils.auth_utils import get_current_user

router = APIRouter(prefix="/goals/{goal_id}", tags=["Progress"])


# ---------------------- PROGRESS ----------------------
@router.post("/progress")
def add_progress(
    goal_id: int,
    payload: ProgressRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entry = progress_service.add_progress(user, goal_id, payload, db)
    return progress_service.serialize_progress(entry)


@router.get("/progress")
def list_progress(
    goal_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entries = progress_service.list_progress(user, goal_id, db, start_date=start_date, end_date=end_date)
    return [progress_service.serialize_progress(e) for e in entries]


@router.delete("/progress/{entry_id}")
def delete_progress(goal_id: int, entry_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    progress_service.delete_progress(user, goal_id, entry_id, db)
    return {"status": "deleted"}


# ---------------------- MILESTONES ----------------------
@router.post("/milestones")
def add_milestone(
    goal_id: int,
    payload: MilestoneRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return progress_service.serialize_milestone(progress_service.add_milestone(user, goal_id, payload, db))


@router.get("/milestones")
def list_milestones(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [progress_service.serialize_milestone(m) for m in progress_service.list_milestones(user, goal_id, db)]


# ---------------------- OBSTACLES ----------------------
@router.post("/obstacles")
def create_obstacle(
    goal_id: int,
    payload: ObstacleRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return obstacle_service.serialize_obstacle(obstacle_service.create_obstacle(user, goal_id, payload, db))


@router.get("/obstacles")
def list_obstacles(
    goal_id: int,
    resolved: Optional[bool] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entries = obstacle_service.list_obstacles(user, goal_id, db, resolved=resolved)
    return [obstacle_service.serialize_obstacle(e) for e in entries]


@router.patch("/obstacles/{entry_id}")
def update_obstacle(
    goal_id: int,
    entry_id: int,
    payload: UpdateObstacleRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entry = obstacle_service.update_obstacle(user, goal_id, entry_id, payload, db)
    return obstacle_service.serialize_obstacle(entry)


@router.delete("/obstacles/{entry_id}")
def delete_obstacle(goal_id: int, entry_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    obstacle_service.delete_obstacle(user, goal_id, entry_id, db)
    return {"status": "deleted"}
