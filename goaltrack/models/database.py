# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import os
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm.exc import StaleDataError
from goaltrack.utils.errors import ConcurrentUpdateError

# ✅ Only load .env in local/dev
if os.environ.get("ENV") != "production":
    from dotenv import load_dotenv
    load_dotenv()

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./goaltrack.db")


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory databases must share one connection across sessions
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return kwargs

    return {
        "pool_size": 10,        # Keep 10 connections open
        "max_overflow": 20,     # Allow 20 extra if under load
        "pool_recycle": 1800,   # Recycle every 30 mins
        "pool_pre_ping": True,  # Validate before using connection
    }


engine = create_engine(SQLALCHEMY_DATABASE_URL, **_engine_kwargs(SQLALCHEMY_DATABASE_URL))

# ✅ Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ✅ Base model
Base = declarative_base()


def get_db():
    """
    Request-scoped session. Anything not committed by the service layer is
    rolled back, so a failed operation never leaves partial writes behind.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def commit_or_conflict(db):
    """
    Commit, translating a lost optimistic-lock race on versioned rows
    (StreakInfo) into ConcurrentUpdateError.
    """
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning("Concurrent streak update detected; transaction rolled back")
        raise ConcurrentUpdateError("Streak was updated concurrently, please retry")
