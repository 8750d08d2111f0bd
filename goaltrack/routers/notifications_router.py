# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from goaltrack.models.database import get_db
from goaltrack.models.notification import NotificationLog
from goaltrack.models.user import User
from goaltrack.utils.auth_utils import get_current_user
from goaltrack.utils.errors import NotFoundError

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def serialize_notification(log: NotificationLog) -> dict:
    return {
        "id": log.id,
        "type": log.notification_type,
        "goal_id": log.goal_id,
        "text": log.content,  # Already decrypted automatically
        "delivered": bool(log.delivered),
        "timestamp": log.timestamp.isoformat(),
    }


@router.get("/recent")
def get_recent_notifications(
    notification_type: Optional[str] = Query(None, alias="type"),
    undelivered_only: bool = False,
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = db.query(NotificationLog).filter(NotificationLog.user_id == user.id)
    if notification_type:
        query = query.filter(NotificationLog.notification_type == notification_type)
    if undelivered_only:
        query = query.filter(NotificationLog.delivered == False)

    logs = query.order_by(NotificationLog.timestamp.desc(), NotificationLog.id.desc()).limit(limit).all()
    return [serialize_notification(log) for log in logs]


@router.patch("/mark-delivered/{notification_id}")
def mark_as_delivered(
    notification_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    log = db.query(NotificationLog).filter(
        NotificationLog.id == notification_id,
        NotificationLog.user_id == user.id,
    ).first()
    if not log:
        raise NotFoundError("Notification not found")
    log.delivered = True
    db.commit()
    return {"status": "updated"}


@router.post("/mark-all-delivered")
def mark_all_delivered(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    updated = (
        db.query(NotificationLog)
        .filter(NotificationLog.user_id == user.id, NotificationLog.delivered == False)
        .update({NotificationLog.delivered: True}, synchronize_session=False)
    )
    db.commit()
    return {"status": "updated", "count": updated}
