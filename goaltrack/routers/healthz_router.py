# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


import logging
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session
from goaltrack.models.database import get_db
from goaltrack.utils import encryption

router = APIRouter(tags=["Infra"])
logger = logging.getLogger(__name__)

_PROBE = "goaltrack-healthz"


@router.get("/healthz")
def health_check(db: Session = Depends(get_db)):
    checks = {"db_connection": False, "encryption": False}
    errors = {}

    try:
        db.execute(text("SELECT 1"))
        checks["db_connection"] = True
    except Exception as e:
        errors["db_connection"] = str(e)

    try:
        checks["encryption"] = encryption.decrypt(encryption.encrypt(_PROBE)) == _PROBE
    except ValueError as e:
        errors["encryption"] = str(e)

    if errors:
        logger.error(f"🛑 Health check failed: {errors}")
    passed = sum(checks.values())
    status = "ok" if passed == len(checks) else ("partial" if passed else "error")
    return {"status": status, "details": checks, "errors": errors}
