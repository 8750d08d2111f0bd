# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import date
from sqlalchemy.orm import Session

from goaltrack.models.user import User
from goaltrack.models.obstacle import ObstacleEntry
from goaltrack.schemas.goal_schemas import ObstacleRequest, UpdateObstacleRequest
from goaltrack.services.query_helpers import get_owned_goal
from goaltrack.utils.errors import NotFoundError

logger = logging.getLogger(__name__)


def _get_entry(user: User, goal_id: int, entry_id: int, db: Session) -> ObstacleEntry:
    goal = get_owned_goal(user, goal_id, db)
    entry = db.query(ObstacleEntry).filter(ObstacleEntry.id == entry_id, ObstacleEntry.goal_id == goal.id).first()
    if not entry:
        raise NotFoundError("Obstacle entry not found")
    return entry


def create_obstacle(user: User, goal_id: int, req: ObstacleRequest, db: Session) -> ObstacleEntry:
    goal = get_owned_goal(user, goal_id, db)
    entry = ObstacleEntry(
        goal_id=goal.id,
        entry_date=req.entry_date or date.today(),
        obstacle=req.obstacle,
        solution=req.solution,
        resolved=False,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info("Obstacle %s logged on goal %s", entry.id, goal.id)
    return entry


def list_obstacles(user: User, goal_id: int, db: Session, resolved=None):
    goal = get_owned_goal(user, goal_id, db)
    query = db.query(ObstacleEntry).filter(ObstacleEntry.goal_id == goal.id)
    if resolved is not None:
        query = query.filter(ObstacleEntry.resolved == resolved)
    return query.order_by(ObstacleEntry.entry_date.desc(), ObstacleEntry.id.desc()).all()


def update_obstacle(user: User, goal_id: int, entry_id: int, req: UpdateObstacleRequest, db: Session) -> ObstacleEntry:
    entry = _get_entry(user, goal_id, entry_id, db)
    for field, value in req.model_dump(exclude_unset=True).items():
        if value is None and field in ("obstacle", "resolved"):
            continue
        setattr(entry, field, value)
    db.commit()
    db.refresh(entry)
    return entry


def delete_obstacle(user: User, goal_id: int, entry_id: int, db: Session):
    entry = _get_entry(user, goal_id, entry_id, db)
    db.delete(entry)
    db.commit()
    logger.info("Obstacle %s deleted", entry_id)


def serialize_obstacle(entry: ObstacleEntry) -> dict:
    return {
        "id": entry.id,
        "goal_id": entry.goal_id,
        "entry_date": entry.entry_date.isoformat(),
        "obstacle": entry.obstacle,  # Already decrypted automatically
        "solution": entry.solution,
        "resolved": bool(entry.resolved),
    }
