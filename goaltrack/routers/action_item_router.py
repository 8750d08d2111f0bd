# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.schemas.action_item_schemas import (
    ActionItemRequest, UpdateActionItemRequest, GenerateScheduleRequest
)
from goaltrack.services import action_item_service
from goaltrack.services.scheduled_task_service import serialize_scheduled_task
from goaltrack.utils.auth_utils import get_current_user

router = APIRouter(prefix="/goals/{goal_id}/action-items", tags=["Action Items"])


@router.post("")
def create_item(
    goal_id: int,
    payload: ActionItemRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return action_item_service.serialize_item(action_item_service.create_item(user, goal_id, payload, db))


@router.get("")
def list_items(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [action_item_service.serialize_item(i) for i in action_item_service.list_items(user, goal_id, db)]


@router.get("/{item_id}")
def get_item(goal_id: int, item_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return action_item_service.serialize_item(action_item_service.get_item(user, goal_id, item_id, db))


@router.patch("/{item_id}")
def update_item(
    goal_id: int,
    item_id: int,
    payload: UpdateActionItemRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = action_item_service.update_item(user, goal_id, item_id, payload, db)
    return action_item_service.serialize_item(item)


@router.delete("/{item_id}")
def delete_item(goal_id: int, item_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    action_item_service.delete_item(user, goal_id, item_id, db)
    return {"status": "deleted"}


@router.post("/{item_id}/complete")
def complete_item(goal_id: int, item_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return action_item_service.serialize_item(action_item_service.complete_item(user, goal_id, item_id, db))


@router.post("/{item_id}/generate-schedule")
def generate_schedule(
    goal_id: int,
    item_id: int,
    payload: GenerateScheduleRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    created = action_item_service.generate_schedule(
        user, goal_id, item_id, payload.start_date, payload.end_date, db
    )
    return {
        "created": len(created),
        "scheduled_tasks": [serialize_scheduled_task(t) for t in created],
    }
