# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from .user import User
from .goal import Goal, GoalStatus, GoalCategory
from .progress import ProgressEntry, Milestone
from .obstacle import ObstacleEntry
from .action_item import ActionItem, TaskType, TaskPriority, CompletionStatus
from .scheduled_task import ScheduledTask
from .task_completion import TaskCompletion
from .schedule_slot import TaskScheduleSlot, ScheduleSlotCreationType, RescheduleReason
from .streak import StreakInfo, StreakShield
from .reflection import GoalReflection, ReflectionFrequency
from .journal import DailyJournal, Mood
from .guardian import GoalGuardian, GuardianNudge, GuardianStatus, GuardianPermission, NudgeType
from .subscription import UserSubscription, UserPurchase, SubscriptionTier, SubscriptionStatus, PurchaseType
from .notification import NotificationLog
