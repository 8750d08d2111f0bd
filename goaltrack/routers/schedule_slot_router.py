# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.schemas.action_item_schemas import ScheduleSlotRequest, RescheduleSlotRequest
from goaltrack.services import schedule_slot_service
from goaltrack.services.schedule_slot_service import serialize_slot
from goaltrack.utils.auth_utils import get_current_user

router = APIRouter(tags=["Schedule Slots"])


@router.post("/action-items/{action_item_id}/slots")
def create_slot(
    action_item_id: int,
    payload: ScheduleSlotRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return serialize_slot(schedule_slot_service.create_slot(user, action_item_id, payload, db))


@router.get("/action-items/{action_item_id}/slots")
def list_slots(action_item_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [serialize_slot(s) for s in schedule_slot_service.list_slots(user, action_item_id, db)]


@router.get("/action-items/{action_item_id}/slots/active")
def list_active_slots(
    action_item_id: int,
    day: Optional[date] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    slots = schedule_slot_service.list_active_slots(user, action_item_id, day or date.today(), db)
    return [serialize_slot(s) for s in slots]


@router.get("/action-items/{action_item_id}/slots/resolve")
def resolve_slot(
    action_item_id: int,
    day: Optional[date] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return serialize_slot(schedule_slot_service.resolve(user, action_item_id, day or date.today(), db))


@router.post("/slots/{slot_id}/reschedule")
def reschedule_slot(
    slot_id: int,
    payload: RescheduleSlotRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return serialize_slot(schedule_slot_service.reschedule(user, slot_id, payload, db))


@router.delete("/slots/{slot_id}")
def delete_slot(slot_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return serialize_slot(schedule_slot_service.delete_slot(user, slot_id, db))


@router.get("/slots/{slot_id}/history")
def slot_history(slot_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [serialize_slot(s) for s in schedule_slot_service.slot_history(user, slot_id, db)]
