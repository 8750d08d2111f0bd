# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import os

# Must be set before any goaltrack module is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["FERNET_SECRET"] = "ZmDfcTF7_60GrrY167zsiPd67pEvs0aGOv2oasOM1Pg="
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient

from goaltrack.main import app
from goaltrack.models.database import Base, engine, SessionLocal
from goaltrack.models.user import User
from goaltrack.models.subscription import UserSubscription, SubscriptionTier, SubscriptionStatus
from goaltrack.schemas.goal_schemas import GoalRequest
from goaltrack.schemas.action_item_schemas import ActionItemRequest, TaskRecurrence
from goaltrack.services import goal_service, action_item_service
from goaltrack.utils.jwt_utils import create_user_token


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make(email="asha@example.com", name="Asha", **fields):
        user = User(email=email, name=name, **fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def make_premium(db):
    def _upgrade(user, status=SubscriptionStatus.active, features=None):
        db.add(UserSubscription(user_id=user.id, tier=SubscriptionTier.premium, status=status, features=features))
        db.commit()
        return user
    return _upgrade


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_user_token(user.id)}"}
    return _headers


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_goal(db):
    def _make(user, title="Run a 10k", **fields):
        return goal_service.create_goal(user, GoalRequest(title=title, **fields), db)
    return _make


@pytest.fixture
def make_daily_item(db):
    def _make(user, goal, title="Morning run", **recurrence):
        req = ActionItemRequest(
            title=title,
            task_type="recurring",
            recurrence=TaskRecurrence(frequency="daily", **recurrence),
        )
        return action_item_service.create_item(user, goal.id, req, db)
    return _make
