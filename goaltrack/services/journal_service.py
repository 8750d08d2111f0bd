# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import date, timedelta
from typing import List

from sqlalchemy.orm import Session

from goaltrack.models.user import User
from goaltrack.models.journal import DailyJournal, Mood
from goaltrack.schemas.engagement_schemas import JournalRequest, UpdateJournalRequest
from goaltrack.utils.errors import BadRequestError, DuplicateError, NotFoundError, parse_enum
from goaltrack.utils.tier_logic import CONSECUTIVE_JOURNAL_DAYS_FOR_SHIELD, MAX_HELD_STREAK_SHIELDS

logger = logging.getLogger(__name__)


def consecutive_days_ending(user: User, day: date, db: Session) -> int:
    """How many journal days in a row end on `day` (inclusive)."""
    window_start = day - timedelta(days=CONSECUTIVE_JOURNAL_DAYS_FOR_SHIELD * 8)
    written = {
        row.journal_date for row in db.query(DailyJournal.journal_date).filter(
            DailyJournal.user_id == user.id,
            DailyJournal.journal_date >= window_start,
            DailyJournal.journal_date <= day,
        ).all()
    }
    count = 0
    current = day
    while current in written:
        count += 1
        current -= timedelta(days=1)
    return count


def _maybe_award_shield(user: User, journal: DailyJournal, db: Session) -> bool:
    run = consecutive_days_ending(user, journal.journal_date, db)
    if run == 0 or run % CONSECUTIVE_JOURNAL_DAYS_FOR_SHIELD != 0:
        return False
    if (user.streak_shields or 0) >= MAX_HELD_STREAK_SHIELDS:
        logger.info("Journal run of %s for user %s, but shield cap reached", run, user.id)
        return False
    user.streak_shields = (user.streak_shields or 0) + 1
    journal.shield_awarded = 1
    logger.info("🛡️ Streak shield awarded to user %s after %s journal days", user.id, run)
    return True


def create_entry(user: User, req: JournalRequest, db: Session):
    day = req.journal_date or date.today()
    if day > date.today():
        raise BadRequestError("Journal entries cannot be written for a future date")
    if db.query(DailyJournal).filter(DailyJournal.user_id == user.id, DailyJournal.journal_date == day).first():
        raise DuplicateError(f"A journal entry already exists for {day.isoformat()}")

    journal = DailyJournal(
        user_id=user.id,
        journal_date=day,
        content=req.content,
        mood=parse_enum(Mood, req.mood, "mood") if req.mood else None,
        shield_awarded=0,
    )
    db.add(journal)
    db.flush()

    awarded = _maybe_award_shield(user, journal, db)
    db.commit()
    db.refresh(journal)
    logger.info("Journal %s written by user %s for %s", journal.id, user.id, day)
    return journal, awarded


def get_entry(user: User, journal_id: int, db: Session) -> DailyJournal:
    journal = db.query(DailyJournal).filter(DailyJournal.id == journal_id, DailyJournal.user_id == user.id).first()
    if not journal:
        raise NotFoundError("Journal entry not found")
    return journal


def get_by_date(user: User, day: date, db: Session) -> DailyJournal:
    journal = db.query(DailyJournal).filter(DailyJournal.user_id == user.id, DailyJournal.journal_date == day).first()
    if not journal:
        raise NotFoundError(f"No journal entry for {day.isoformat()}")
    return journal


def get_history(user: User, db: Session, limit: int = 30) -> List[DailyJournal]:
    return (
        db.query(DailyJournal)
        .filter(DailyJournal.user_id == user.id)
        .order_by(DailyJournal.journal_date.desc())
        .limit(limit)
        .all()
    )


def get_range(user: User, start: date, end: date, db: Session) -> List[DailyJournal]:
    if end < start:
        raise BadRequestError("end_date must not be before start_date")
    return (
        db.query(DailyJournal)
        .filter(
            DailyJournal.user_id == user.id,
            DailyJournal.journal_date >= start,
            DailyJournal.journal_date <= end,
        )
        .order_by(DailyJournal.journal_date.asc())
        .all()
    )


def update_entry(user: User, journal_id: int, req: UpdateJournalRequest, db: Session) -> DailyJournal:
    journal = get_entry(user, journal_id, db)
    changes = req.model_dump(exclude_unset=True)
    if changes.get("content") is not None:
        journal.content = changes["content"]
    if "mood" in changes:
        journal.mood = parse_enum(Mood, changes["mood"], "mood") if changes["mood"] else None
    db.commit()
    db.refresh(journal)
    return journal


def delete_entry(user: User, journal_id: int, db: Session):
    journal = get_entry(user, journal_id, db)
    db.delete(journal)
    db.commit()
    logger.info("Journal %s deleted", journal_id)


def serialize_journal(journal: DailyJournal) -> dict:
    return {
        "id": journal.id,
        "journal_date": journal.journal_date.isoformat(),
        "content": journal.content,  # Already decrypted automatically
        "mood": journal.mood.value if journal.mood else None,
        "shield_awarded": bool(journal.shield_awarded),
        "created_at": journal.created_at.isoformat() if journal.created_at else None,
    }
