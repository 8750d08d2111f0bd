# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from goaltrack.models.user import User
from goaltrack.models.goal import Goal
from goaltrack.models.guardian import (
    GoalGuardian, GuardianNudge, GuardianStatus, GuardianPermission, NudgeType, DEFAULT_GUARDIAN_PERMISSIONS
)
from goaltrack.models.notification import NotificationLog
from goaltrack.models.streak import StreakInfo
from goaltrack.schemas.engagement_schemas import GuardianInviteRequest, NudgeRequest
from goaltrack.services import entitlement_service
from goaltrack.services.query_helpers import get_owned_goal
from goaltrack.utils.errors import BadRequestError, DuplicateError, ForbiddenError, NotFoundError, parse_enum

logger = logging.getLogger(__name__)

_LIVE = (GuardianStatus.pending, GuardianStatus.active)

DEFAULT_NUDGE_TEXT = {
    NudgeType.encouragement: "You've got this! Keep going 💪",
    NudgeType.reminder: "Friendly reminder to work on your goal today ⏰",
    NudgeType.celebration: "Amazing progress, congratulations! 🎉",
    NudgeType.check_in: "Just checking in. How is your goal going? 👋",
}


def _notify(user_id: int, notification_type: str, content: str, db: Session, goal_id: Optional[int] = None):
    db.add(NotificationLog(
        user_id=user_id,
        notification_type=notification_type,
        goal_id=goal_id,
        content=content,
        delivered=False,
        timestamp=datetime.utcnow(),
    ))


# -------------------------------
# Guardianship lifecycle
# -------------------------------

def invite_guardian(user: User, goal_id: int, req: GuardianInviteRequest, db: Session) -> GoalGuardian:
    goal = get_owned_goal(user, goal_id, db)
    guardian = db.query(User).filter(User.email == req.guardian_email.strip().lower()).first()
    if not guardian or not guardian.is_active:
        raise NotFoundError("No user with that email")
    if guardian.id == user.id:
        raise BadRequestError("You cannot be your own guardian")

    if req.permissions is None:
        permissions = list(DEFAULT_GUARDIAN_PERMISSIONS)
    else:
        permissions = sorted({parse_enum(GuardianPermission, p, "permission").value for p in req.permissions})

    existing = db.query(GoalGuardian).filter(
        GoalGuardian.goal_id == goal.id,
        GoalGuardian.guardian_id == guardian.id,
    ).first()
    if existing and existing.status in _LIVE:
        raise DuplicateError("This user is already a guardian of the goal")

    entitlement_service.enforce_guardian_limit(user, goal.id, db)

    if existing:
        # Re-invite after a decline or revoke
        row = existing
        row.status = GuardianStatus.pending
        row.permissions = permissions
        row.invite_message = req.invite_message
        row.invited_at = datetime.utcnow()
        row.responded_at = None
        row.revoked_at = None
    else:
        row = GoalGuardian(
            goal_id=goal.id,
            owner_id=user.id,
            guardian_id=guardian.id,
            status=GuardianStatus.pending,
            permissions=permissions,
            invite_message=req.invite_message,
        )
        db.add(row)

    _notify(guardian.id, "guardian_invite", f"{user.name or user.email} invited you to guard '{goal.title}'", db, goal_id=goal.id)
    db.commit()
    db.refresh(row)
    logger.info("User %s invited guardian %s on goal %s", user.id, guardian.id, goal.id)
    return row


def _invitation_for(user: User, guardianship_id: int, db: Session) -> GoalGuardian:
    row = db.query(GoalGuardian).filter(
        GoalGuardian.id == guardianship_id,
        GoalGuardian.guardian_id == user.id,
    ).first()
    if not row:
        raise NotFoundError("Invitation not found")
    return row


def respond_to_invitation(user: User, guardianship_id: int, accept: bool, db: Session) -> GoalGuardian:
    row = _invitation_for(user, guardianship_id, db)
    if row.status != GuardianStatus.pending:
        raise BadRequestError(f"Invitation is {row.status.value}, not pending")

    row.status = GuardianStatus.active if accept else GuardianStatus.declined
    row.responded_at = datetime.utcnow()
    verb = "accepted" if accept else "declined"
    _notify(row.owner_id, "guardian_response", f"{user.name or user.email} {verb} your guardian invitation", db, goal_id=row.goal_id)
    db.commit()
    db.refresh(row)
    logger.info("Guardian %s %s invitation %s", user.id, verb, row.id)
    return row


def revoke_guardian(user: User, goal_id: int, guardianship_id: int, db: Session) -> GoalGuardian:
    goal = get_owned_goal(user, goal_id, db)
    row = db.query(GoalGuardian).filter(
        GoalGuardian.id == guardianship_id,
        GoalGuardian.goal_id == goal.id,
    ).first()
    if not row:
        raise NotFoundError("Guardian not found")
    if row.status not in _LIVE:
        raise BadRequestError(f"Guardian is already {row.status.value}")

    row.status = GuardianStatus.revoked
    row.revoked_at = datetime.utcnow()
    db.commit()
    db.refresh(row)
    logger.info("Guardian %s revoked from goal %s", row.guardian_id, goal.id)
    return row


def list_guardians(user: User, goal_id: int, db: Session) -> List[GoalGuardian]:
    goal = get_owned_goal(user, goal_id, db)
    return (
        db.query(GoalGuardian)
        .filter(GoalGuardian.goal_id == goal.id)
        .order_by(GoalGuardian.invited_at.desc())
        .all()
    )


def list_invitations(user: User, db: Session) -> List[GoalGuardian]:
    return db.query(GoalGuardian).filter(
        GoalGuardian.guardian_id == user.id,
        GoalGuardian.status == GuardianStatus.pending,
    ).all()


def list_guarded_goals(user: User, db: Session) -> List[dict]:
    rows = db.query(GoalGuardian, Goal).join(Goal, Goal.id == GoalGuardian.goal_id).filter(
        GoalGuardian.guardian_id == user.id,
        GoalGuardian.status == GuardianStatus.active,
    ).all()

    goals = []
    for guardianship, goal in rows:
        entry = {
            "guardianship_id": guardianship.id,
            "goal_id": goal.id,
            "goal_title": goal.title,
            "owner_id": goal.user_id,
            "permissions": guardianship.permissions,
        }
        if guardianship.has_permission(GuardianPermission.view_progress):
            entry["current_progress"] = goal.current_progress
            entry["target_value"] = goal.target_value
            entry["status"] = goal.status.value
        if guardianship.has_permission(GuardianPermission.view_streaks):
            info = db.query(StreakInfo).filter(
                StreakInfo.user_id == goal.user_id,
                StreakInfo.goal_id == goal.id,
                StreakInfo.action_item_id.is_(None),
            ).first()
            entry["current_streak"] = info.current_maintained_streak if info else 0
        goals.append(entry)
    return goals


# -------------------------------
# Nudges
# -------------------------------

def send_nudge(user: User, goal_id: int, req: NudgeRequest, db: Session) -> GuardianNudge:
    guardianship = db.query(GoalGuardian).filter(
        GoalGuardian.goal_id == goal_id,
        GoalGuardian.guardian_id == user.id,
        GoalGuardian.status == GuardianStatus.active,
    ).first()
    if not guardianship:
        raise NotFoundError("You are not an active guardian of this goal")
    if not guardianship.has_permission(GuardianPermission.send_nudge):
        raise ForbiddenError("You do not have permission to send nudges for this goal")

    nudge_type = parse_enum(NudgeType, req.nudge_type, "nudge_type")
    message = req.message or DEFAULT_NUDGE_TEXT[nudge_type]

    nudge = GuardianNudge(
        goal_id=goal_id,
        guardian_id=user.id,
        recipient_id=guardianship.owner_id,
        nudge_type=nudge_type,
        message=message,
    )
    db.add(nudge)
    _notify(guardianship.owner_id, "guardian_nudge", message, db, goal_id=goal_id)
    db.commit()
    db.refresh(nudge)
    logger.info("Nudge %s (%s) sent by %s on goal %s", nudge.id, nudge_type.value, user.id, goal_id)
    return nudge


def list_nudges_for_goal(user: User, goal_id: int, db: Session) -> List[GuardianNudge]:
    goal = get_owned_goal(user, goal_id, db)
    return (
        db.query(GuardianNudge)
        .filter(GuardianNudge.goal_id == goal.id, GuardianNudge.recipient_id == user.id)
        .order_by(GuardianNudge.sent_at.desc(), GuardianNudge.id.desc())
        .all()
    )


def count_unread(user: User, db: Session, goal_id: Optional[int] = None) -> int:
    query = db.query(GuardianNudge).filter(GuardianNudge.recipient_id == user.id, GuardianNudge.is_read.is_(False))
    if goal_id is not None:
        query = query.filter(GuardianNudge.goal_id == goal_id)
    return query.count()


def _received_nudge(user: User, nudge_id: int, db: Session) -> GuardianNudge:
    nudge = db.query(GuardianNudge).filter(GuardianNudge.id == nudge_id, GuardianNudge.recipient_id == user.id).first()
    if not nudge:
        raise NotFoundError("Nudge not found")
    return nudge


def mark_read(user: User, nudge_id: int, db: Session) -> GuardianNudge:
    nudge = _received_nudge(user, nudge_id, db)
    if not nudge.is_read:
        nudge.is_read = True
        nudge.read_at = datetime.utcnow()
        db.commit()
        db.refresh(nudge)
    return nudge


def react_to_nudge(user: User, nudge_id: int, reaction: str, db: Session) -> GuardianNudge:
    nudge = _received_nudge(user, nudge_id, db)
    nudge.reaction = reaction
    if not nudge.is_read:
        nudge.is_read = True
        nudge.read_at = datetime.utcnow()
    db.commit()
    db.refresh(nudge)
    return nudge


def list_sent_nudges(user: User, db: Session) -> List[GuardianNudge]:
    return (
        db.query(GuardianNudge)
        .filter(GuardianNudge.guardian_id == user.id)
        .order_by(GuardianNudge.sent_at.desc(), GuardianNudge.id.desc())
        .all()
    )


def serialize_guardian(row: GoalGuardian) -> dict:
    return {
        "id": row.id,
        "goal_id": row.goal_id,
        "owner_id": row.owner_id,
        "guardian_id": row.guardian_id,
        "status": row.status.value,
        "permissions": row.permissions,
        "invite_message": row.invite_message,
        "invited_at": row.invited_at.isoformat() if row.invited_at else None,
        "responded_at": row.responded_at.isoformat() if row.responded_at else None,
    }


def serialize_nudge(nudge: GuardianNudge) -> dict:
    return {
        "id": nudge.id,
        "goal_id": nudge.goal_id,
        "guardian_id": nudge.guardian_id,
        "recipient_id": nudge.recipient_id,
        "nudge_type": nudge.nudge_type.value,
        "message": nudge.message,
        "is_read": bool(nudge.is_read),
        "reaction": nudge.reaction,
        "sent_at": nudge.sent_at.isoformat() if nudge.sent_at else None,
    }
