# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.schemas.action_item_schemas import ScheduledTaskRequest, BulkScheduledTaskRequest
from goaltrack.services import scheduled_task_service
from goaltrack.services.scheduled_task_service import serialize_scheduled_task
from goaltrack.utils.auth_utils import get_current_user

router = APIRouter(tags=["Scheduled Tasks"])


@router.post("/goals/{goal_id}/scheduled-tasks")
def create_scheduled_task(
    goal_id: int,
    payload: ScheduledTaskRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    task = scheduled_task_service.create_scheduled_task(user, goal_id, payload.task_id, payload.scheduled_date, db)
    return serialize_scheduled_task(task)


@router.post("/goals/{goal_id}/action-items/{item_id}/scheduled-tasks/bulk")
def bulk_create(
    goal_id: int,
    item_id: int,
    payload: BulkScheduledTaskRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    created = scheduled_task_service.bulk_create(user, goal_id, item_id, payload.dates, db)
    return {"created": len(created), "scheduled_tasks": [serialize_scheduled_task(t) for t in created]}


@router.get("/goals/{goal_id}/scheduled-tasks")
def list_for_goal(
    goal_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tasks = scheduled_task_service.list_for_goal(user, goal_id, db, start=start_date, end=end_date)
    return [serialize_scheduled_task(t) for t in tasks]


@router.get("/goals/{goal_id}/scheduled-tasks/pending")
def list_pending(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [serialize_scheduled_task(t) for t in scheduled_task_service.list_pending(user, goal_id, db)]


@router.get("/goals/{goal_id}/action-items/{item_id}/scheduled-tasks")
def list_for_item(goal_id: int, item_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [serialize_scheduled_task(t) for t in scheduled_task_service.list_for_item(user, goal_id, item_id, db)]


@router.post("/scheduled-tasks/{scheduled_task_id}/complete")
def mark_completed(scheduled_task_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return serialize_scheduled_task(scheduled_task_service.mark_completed(user, scheduled_task_id, db))


@router.post("/scheduled-tasks/{scheduled_task_id}/incomplete")
def mark_incomplete(scheduled_task_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return serialize_scheduled_task(scheduled_task_service.mark_incomplete(user, scheduled_task_id, db))


@router.delete("/scheduled-tasks/{scheduled_task_id}")
def delete_scheduled_task(scheduled_task_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    scheduled_task_service.delete_scheduled_task(user, scheduled_task_id, db)
    return {"status": "deleted"}
