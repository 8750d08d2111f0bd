# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
import time

from goaltrack.utils.schedulers.notification_cleaner import delete_old_notification_logs
from goaltrack.utils.schedulers.subscription_expiry import expire_lapsed_subscriptions


logger = logging.getLogger("scheduler")

CLEANUP_TASKS = [
    ("Notifications", delete_old_notification_logs),
    ("Subscriptions", expire_lapsed_subscriptions),
]


def run_all_cleanups() -> dict:
    """Runs every nightly cleanup; one failing task does not stop the rest."""
    logger.info("🧹 Starting nightly cleanups...")
    results = {}

    for name, func in CLEANUP_TASKS:
        start = time.time()
        try:
            results[name] = func()
            logger.info(f"✅ {name}: {results[name]} rows in {round(time.time() - start, 2)} sec.")
        except Exception as e:
            results[name] = None
            logger.error(f"🛑 {name} cleanup failed: {e}", exc_info=True)

    logger.info("🎉 Nightly cleanups finished.")
    return results
