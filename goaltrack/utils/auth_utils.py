# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from fastapi import HTTPException, Header, Depends
from sqlalchemy.orm import Session
from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.utils.jwt_utils import verify_access_token, user_id_from_payload


# ✅ Bearer header -> verified claims
def require_token(authorization: str = Header(...)) -> dict:
    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token:
        raise HTTPException(status_code=401, detail="Invalid authorization format")
    return verify_access_token(token)


# ✅ Resolves the caller; every service receives this user explicitly
def get_current_user(
    claims: dict = Depends(require_token),
    db: Session = Depends(get_db),
) -> User:
    user = db.query(User).filter(User.id == user_id_from_payload(claims)).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user
