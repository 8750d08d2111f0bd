# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from typing import Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.schemas.engagement_schemas import GuardianInviteRequest, NudgeRequest, NudgeReactionRequest
from goaltrack.services import guardian_service
from goaltrack.services.guardian_service import serialize_guardian, serialize_nudge
from goaltrack.utils.auth_utils import get_current_user
from goaltrack.utils.rate_limit_utils import limiter, get_tier_limit

router = APIRouter(tags=["Guardians"])


# ---------------------- OWNER SIDE ----------------------
@router.post("/goals/{goal_id}/guardians")
def invite_guardian(
    goal_id: int,
    payload: GuardianInviteRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return serialize_guardian(guardian_service.invite_guardian(user, goal_id, payload, db))


@router.get("/goals/{goal_id}/guardians")
def list_guardians(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [serialize_guardian(g) for g in guardian_service.list_guardians(user, goal_id, db)]


@router.delete("/goals/{goal_id}/guardians/{guardianship_id}")
def revoke_guardian(
    goal_id: int,
    guardianship_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return serialize_guardian(guardian_service.revoke_guardian(user, goal_id, guardianship_id, db))


@router.get("/goals/{goal_id}/nudges")
def list_nudges_for_goal(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [serialize_nudge(n) for n in guardian_service.list_nudges_for_goal(user, goal_id, db)]


@router.get("/nudges/unread-count")
def unread_count(
    goal_id: Optional[int] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"unread": guardian_service.count_unread(user, db, goal_id=goal_id)}


@router.post("/nudges/{nudge_id}/read")
def mark_read(nudge_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return serialize_nudge(guardian_service.mark_read(user, nudge_id, db))


@router.post("/nudges/{nudge_id}/react")
def react_to_nudge(
    nudge_id: int,
    payload: NudgeReactionRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return serialize_nudge(guardian_service.react_to_nudge(user, nudge_id, payload.reaction, db))


# ---------------------- GUARDIAN SIDE ----------------------
@router.get("/guardians/invitations")
def list_invitations(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [serialize_guardian(g) for g in guardian_service.list_invitations(user, db)]


@router.post("/guardians/invitations/{guardianship_id}/accept")
def accept_invitation(guardianship_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return serialize_guardian(guardian_service.respond_to_invitation(user, guardianship_id, True, db))


@router.post("/guardians/invitations/{guardianship_id}/decline")
def decline_invitation(guardianship_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return serialize_guardian(guardian_service.respond_to_invitation(user, guardianship_id, False, db))


@router.get("/guardians/goals")
def list_guarded_goals(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return guardian_service.list_guarded_goals(user, db)


@router.post("/goals/{goal_id}/nudges")
@limiter.limit(get_tier_limit)
def send_nudge(
    request: Request,
    goal_id: int,
    payload: NudgeRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return serialize_nudge(guardian_service.send_nudge(user, goal_id, payload, db))


@router.get("/nudges/sent")
def list_sent_nudges(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [serialize_nudge(n) for n in guardian_service.list_sent_nudges(user, db)]
