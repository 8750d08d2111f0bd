# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

"""
Local schema reset: drops and recreates every goaltrack table.

    python reset_db.py --yes              # drop + create
    python reset_db.py --yes --create-only
    python reset_db.py                    # list the tables that would be touched

Refuses to run when ENV=production.
"""

import argparse
import logging
import os
import sys

from goaltrack.models import database
from goaltrack.models import *  # registers all models

logger = logging.getLogger("goaltrack.reset_db")


def reset_database(engine, drop: bool = True) -> list:
    if os.getenv("ENV") == "production":
        raise RuntimeError("Refusing to reset the database with ENV=production")

    tables = sorted(database.Base.metadata.tables)
    if drop:
        logger.warning("⚠️ Dropping %d tables on %s", len(tables), engine.url.render_as_string(hide_password=True))
        database.Base.metadata.drop_all(bind=engine)
    database.Base.metadata.create_all(bind=engine)
    logger.info("✅ Created tables: %s", ", ".join(tables))
    return tables


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Drop and recreate the goaltrack schema.")
    parser.add_argument("--yes", action="store_true", help="actually touch the database")
    parser.add_argument("--create-only", action="store_true", help="create missing tables without dropping")
    args = parser.parse_args(argv)

    if not args.yes:
        for name in sorted(database.Base.metadata.tables):
            print(name)
        print("Dry run. Pass --yes to reset these tables.")
        return 0

    try:
        reset_database(database.engine, drop=not args.create_only)
    except RuntimeError as exc:
        logger.error("🛑 %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    sys.exit(main())
