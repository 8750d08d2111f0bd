# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from fastapi import FastAPI, Request
from contextlib import asynccontextmanager
from apscheduler.schedulers.background import BackgroundScheduler

import os
import logging

from goaltrack.models import database
from goaltrack.models import *  # registers all models

from goaltrack.routers import goal_router, progress_router, action_item_router
from goaltrack.routers import scheduled_task_router, task_completion_router, schedule_slot_router
from goaltrack.routers import streak_router, reflection_router, journal_router
from goaltrack.routers import guardian_router, subscription_router
from goaltrack.routers import notifications_router, user_router, healthz_router
from goaltrack.routers import dashboard_router, activity_router

from goaltrack.services.nudge_service import process_streak_nudges
from goaltrack.utils.schedulers.run_all_cleanups import run_all_cleanups
from goaltrack.utils.schedulers.reset_shields import reset_all_streak_shields
from goaltrack.utils.schedulers.end_of_day_streaks import run_end_of_day_streaks

from pytz import timezone  # ✅ use this for cron triggers

from goaltrack.utils.errors import GoaltrackError, UpstreamPaymentError
from goaltrack.utils.rate_limit_utils import limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from fastapi.responses import JSONResponse


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"
SCHEDULER_TIMEZONE = timezone(os.getenv("SCHEDULER_TIMEZONE", "UTC"))

# Create DB tables in one go
database.Base.metadata.create_all(bind=database.engine)

# Scheduler setup
scheduler = BackgroundScheduler(job_defaults={"misfire_grace_time": 60})

@asynccontextmanager
async def lifespan(app: FastAPI):
    if not SCHEDULER_ENABLED:
        logger.info("Scheduler disabled")
        yield
        return

    # 🌙 Close yesterday's streaks at 00:05
    scheduler.add_job(run_end_of_day_streaks, "cron", hour=0, minute=5, timezone=SCHEDULER_TIMEZONE)

    # 🔥 Streak-at-risk nudges every 2 hours
    scheduler.add_job(process_streak_nudges, trigger="cron", hour="*/2", minute=30, timezone=SCHEDULER_TIMEZONE)

    # 🕛 Clean every day at 2 AM
    scheduler.add_job(run_all_cleanups, "cron", hour=2, minute=0, timezone=SCHEDULER_TIMEZONE)

    # 🛡️ Monthly shield allowance on the 1st at 3 AM
    scheduler.add_job(reset_all_streak_shields, "cron", day=1, hour=3, minute=0, timezone=SCHEDULER_TIMEZONE)

    scheduler.start()
    yield
    scheduler.shutdown()

# Create FastAPI app with lifespan
app = FastAPI(
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    title="Goaltrack API",
    description="Goals, schedules, streaks and accountability backend",
    version="1.0"
)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# Include routers
app.include_router(user_router.router)
app.include_router(goal_router.router)
app.include_router(progress_router.router)
app.include_router(action_item_router.router)
app.include_router(scheduled_task_router.router)
app.include_router(task_completion_router.router)
app.include_router(schedule_slot_router.router)
app.include_router(streak_router.router)
app.include_router(reflection_router.router)
app.include_router(journal_router.router)
app.include_router(guardian_router.router)
app.include_router(subscription_router.router)
app.include_router(notifications_router.router)
app.include_router(dashboard_router.router)
app.include_router(activity_router.router)
app.include_router(healthz_router.router)


# ---------------------- ADDING EXCEPTION HANDLER ----------------------
@app.exception_handler(GoaltrackError)
async def goaltrack_error_handler(request: Request, exc: GoaltrackError):
    if isinstance(exc, UpstreamPaymentError):
        logger.error(f"🛑 {request.method} {request.url.path}: {exc.detail}")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )

@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request, exc):
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests. Please slow down."}
    )

@app.get("/")
def read_root():
    return {"message": "Welcome to Goaltrack - your goal companion backend Live. "
                       "Copyright (c) 2025 Shiladitya Mallick "
                       "This file is part of the Goaltrack - Your Goal Companion project. "
                       "Licensed under the MIT License - see the LICENSE file for details."}

@app.get("/health", tags=["Infra"])
def health_check():
    return {"status": "ok"}
