# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from typing import Optional
from goaltrack.models.subscription import SubscriptionTier


# Features every tier gets
BASE_FEATURES = ("weeklyReflections", "basicAchievements", "guardianSystem")

# Features unlocked by premium
PREMIUM_FEATURES = (
    "unlimitedGoals",
    "multipleGuardians",
    "unlimitedHistory",
    "createTemplates",
    "aiInsights",
    "dataExport",
    "prioritySupport",
)

MAX_HELD_STREAK_SHIELDS = 2
CONSECUTIVE_JOURNAL_DAYS_FOR_SHIELD = 7
SHIELDS_PER_WEEK = 1


def default_feature_map(is_premium: bool) -> dict:
    features = {name: is_premium for name in PREMIUM_FEATURES}
    features.update({name: True for name in BASE_FEATURES})
    return features


def get_max_active_goals(tier: SubscriptionTier) -> Optional[int]:
    """
    Returns how many non-archived, unfinished goals a user may hold.
    None means unlimited.
    """
    if tier == SubscriptionTier.premium:
        return None
    return 3


def get_max_guardians_per_goal(tier: SubscriptionTier) -> int:
    if tier == SubscriptionTier.premium:
        return 5
    return 1


def get_progress_history_days(tier: SubscriptionTier) -> Optional[int]:
    """
    Returns how far back progress history is visible. None means unlimited.
    """
    if tier == SubscriptionTier.premium:
        return None
    return 30


def get_streak_shields_per_month(tier: SubscriptionTier) -> int:
    if tier == SubscriptionTier.premium:
        return 3
    return 1


def get_user_notification_retention_days(tier: SubscriptionTier) -> int:
    """
    Returns how many days to keep NotificationLog entries.
    """
    if tier == SubscriptionTier.premium:
        return 30
    return 7


def get_rate_limit(tier: SubscriptionTier) -> str:
    if tier == SubscriptionTier.premium:
        return "240/minute"
    return "60/minute"
