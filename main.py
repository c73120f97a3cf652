import argparse
import time
import schedule
import logging

from config.app_config import COMPLETION_CHECK_INTERVAL_MINUTES
from core.logging_config import setup_logging
from database.config import SessionLocal
from services.campaign_lifecycle import CampaignLifecycle

logger = logging.getLogger("completion_worker")


def run_completion_cycle():
    """Complete and settle every published campaign past its end date."""
    logger.info("Starting campaign completion cycle...")
    db = SessionLocal()
    try:
        completed = CampaignLifecycle(db).complete_expired()
        logger.info(f"Cycle complete. {len(completed)} campaign(s) completed: {completed}")
        return completed
    finally:
        db.close()


def _scheduled_cycle():
    # A failed cycle is retried on the next tick
    try:
        run_completion_cycle()
    except Exception:
        logger.exception("Completion cycle failed")


def start_scheduler(interval_minutes: int):
    logger.info(f"Starting completion scheduler (every {interval_minutes} minutes)...")
    # Run once immediately
    _scheduled_cycle()

    schedule.every(interval_minutes).minutes.do(_scheduled_cycle)

    while True:
        schedule.run_pending()
        time.sleep(60)


def main():
    parser = argparse.ArgumentParser(description="Crowdfunding completion worker")
    parser.add_argument("--mode", choices=["once", "schedule"], default="schedule", help="Run once or schedule")
    parser.add_argument("--interval", type=int, default=COMPLETION_CHECK_INTERVAL_MINUTES, help="Minutes between cycles")
    args = parser.parse_args()

    setup_logging()

    if args.mode == "schedule":
        start_scheduler(args.interval)
    else:
        run_completion_cycle()


if __name__ == "__main__":
    main()
