# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from datetime import date
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.schemas.engagement_schemas import JournalRequest, UpdateJournalRequest
from goaltrack.services import journal_service
from goaltrack.services.journal_service import serialize_journal
from goaltrack.utils.auth_utils import get_current_user
from goaltrack.utils.rate_limit_utils import limiter, get_tier_limit

router = APIRouter(prefix="/journal", tags=["Journal"])


@router.post("")
@limiter.limit(get_tier_limit)
def create_entry(
    request: Request,
    payload: JournalRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    journal, awarded = journal_service.create_entry(user, payload, db)
    data = serialize_journal(journal)
    data["shield_awarded"] = awarded
    data["streak_shields"] = user.streak_shields
    return data


@router.get("/history")
def get_history(limit: int = 30, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [serialize_journal(j) for j in journal_service.get_history(user, db, limit=limit)]


@router.get("/range")
def get_range(
    start_date: date,
    end_date: date,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [serialize_journal(j) for j in journal_service.get_range(user, start_date, end_date, db)]


@router.get("/date/{day}")
def get_by_date(day: date, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return serialize_journal(journal_service.get_by_date(user, day, db))


@router.get("/{journal_id}")
def get_entry(journal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return serialize_journal(journal_service.get_entry(user, journal_id, db))


@router.patch("/{journal_id}")
def update_entry(
    journal_id: int,
    payload: UpdateJournalRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return serialize_journal(journal_service.update_entry(user, journal_id, payload, db))


@router.delete("/{journal_id}")
def delete_entry(journal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    journal_service.delete_entry(user, journal_id, db)
    return {"status": "deleted"}
