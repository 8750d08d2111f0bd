# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

"""
Typed business errors. Services raise these; main.py translates them into
JSON responses so the HTTP status lives in one place.
"""


class GoaltrackError(Exception):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(GoaltrackError):
    status_code = 404


class DuplicateError(GoaltrackError):
    status_code = 409


class UnauthorizedError(GoaltrackError):
    status_code = 401


class ForbiddenError(GoaltrackError):
    status_code = 403


class BadRequestError(GoaltrackError):
    status_code = 400


class SubscriptionRequiredError(GoaltrackError):
    status_code = 402

    def __init__(self, feature: str, required_tier: str = "premium"):
        super().__init__(f"'{feature}' requires a {required_tier} subscription")
        self.feature = feature
        self.required_tier = required_tier


class UsageLimitExceededError(GoaltrackError):
    status_code = 402

    def __init__(self, limit_name: str, current: int, maximum: int):
        super().__init__(f"Limit reached for {limit_name}: {current}/{maximum}")
        self.limit_name = limit_name
        self.current = current
        self.maximum = maximum


class UpstreamPaymentError(GoaltrackError):
    status_code = 502


class ConcurrentUpdateError(GoaltrackError):
    status_code = 409


def parse_enum(enum_cls, value, field: str):
    """Coerce a request string into enum_cls or raise BadRequestError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise BadRequestError(f"Invalid {field} '{value}'. Allowed: {allowed}")
