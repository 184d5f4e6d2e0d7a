import argparse
import logging
import time

from simpligest.config import get_settings
from simpligest.core.logging import setup_logging
from simpligest.core.scheduler import build_scheduler
from simpligest.database import Base, engine, ensure_sqlite_schema
from simpligest.models import import_all_models
from simpligest.services.notification_service import run_daily_summary

logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Run the WhatsApp daily summary scheduler.")
    parser.add_argument(
        "--run-once",
        action="store_true",
        help="Check the daily summary once and exit.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    settings = get_settings()

    if not settings.SCHEDULER_ENABLED:
        logger.info("Scheduler disabled by SCHEDULER_ENABLED.")
        return

    import_all_models()
    Base.metadata.create_all(bind=engine)
    ensure_sqlite_schema()

    if args.run_once:
        result = run_daily_summary()
        logger.info("Daily summary: %s", result["status"])
        return

    scheduler = build_scheduler(settings)
    scheduler.start()
    try:
        while True:
            time.sleep(3600)
    except KeyboardInterrupt:
        scheduler.stop()


if __name__ == "__main__":
    main()
