# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.schemas.action_item_schemas import TaskCompletionRequest
from goaltrack.services import task_completion_service
from goaltrack.services.task_completion_service import serialize_completion
from goaltrack.utils.auth_utils import get_current_user
from goaltrack.utils.rate_limit_utils import limiter, get_tier_limit

router = APIRouter(prefix="/action-items/{action_item_id}/completions", tags=["Task Completions"])


@router.post("")
@limiter.limit(get_tier_limit)
def record_completion(
    request: Request,
    action_item_id: int,
    payload: TaskCompletionRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    completion = task_completion_service.record_completion(user, action_item_id, payload, db)
    return serialize_completion(completion)


@router.get("")
def get_history(action_item_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [serialize_completion(c) for c in task_completion_service.get_history(user, action_item_id, db)]


@router.get("/range")
def get_by_range(
    action_item_id: int,
    start_date: date,
    end_date: date,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = task_completion_service.get_by_range(user, action_item_id, start_date, end_date, db)
    return [serialize_completion(c) for c in rows]


@router.get("/count")
def count_completions(
    action_item_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    total = task_completion_service.count_completions(user, action_item_id, db, start=start_date, end=end_date)
    return {"action_item_id": action_item_id, "count": total}


@router.delete("/{completion_id}")
def delete_completion(
    action_item_id: int,
    completion_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    task_completion_service.delete_completion(user, action_item_id, completion_id, db)
    return {"status": "deleted"}
