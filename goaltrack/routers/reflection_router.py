# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.schemas.engagement_schemas import ReflectionRequest, UpdateReflectionRequest
from goaltrack.services import reflection_service
from goaltrack.services.reflection_service import serialize_reflection
from goaltrack.utils.auth_utils import get_current_user

router = APIRouter(tags=["Reflections"])


@router.get("/reflections/pending")
def get_pending(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return reflection_service.get_pending(user, db)


@router.get("/goals/{goal_id}/reflections/status")
def get_status(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return reflection_service.get_status(user, goal_id, db)


@router.post("/goals/{goal_id}/reflections")
def create_reflection(
    goal_id: int,
    payload: ReflectionRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return serialize_reflection(reflection_service.create_reflection(user, goal_id, payload, db))


@router.get("/goals/{goal_id}/reflections")
def get_history(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [serialize_reflection(r) for r in reflection_service.get_history(user, goal_id, db)]


@router.get("/goals/{goal_id}/reflections/{reflection_id}")
def get_reflection(
    goal_id: int,
    reflection_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return serialize_reflection(reflection_service.get_reflection(user, goal_id, reflection_id, db))


@router.patch("/goals/{goal_id}/reflections/{reflection_id}")
def update_reflection(
    goal_id: int,
    reflection_id: int,
    payload: UpdateReflectionRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    reflection = reflection_service.update_reflection(user, goal_id, reflection_id, payload, db)
    return serialize_reflection(reflection)
