# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import os
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from fastapi import HTTPException, status

if os.getenv("ENV") != "production":
    from dotenv import load_dotenv
    load_dotenv()

SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not SECRET_KEY:
    raise RuntimeError("JWT_SECRET_KEY environment variable is not set.")

ALGORITHM = "HS256"
TOKEN_ISSUER = "goaltrack"
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "30"))


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    claims = dict(data)
    issued = datetime.utcnow()
    claims.update({
        "iat": issued,
        "exp": issued + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS)),
        "iss": TOKEN_ISSUER,
    })
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def create_user_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    return create_access_token({"sub": str(user_id)}, expires_delta)


def verify_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], issuer=TOKEN_ISSUER)
    except JWTError:
        raise _unauthorized("Invalid or expired token")


def user_id_from_payload(payload: dict) -> int:
    """`sub` carries the user id as a string."""
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token subject")
