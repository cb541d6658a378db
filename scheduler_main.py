"""
Entry point for the scheduled map version check.

Usage:
    python scheduler_main.py            # daemon, checks daily at the configured time
    python scheduler_main.py --once     # single check, exit code 1 on failure
    python scheduler_main.py --test     # checks every few minutes
"""

import asyncio
import sys

from crawler.database import MapVersionStores, MongoKVManager
from crawler.version_fetcher import MapVersionFetcher
from scheduler.alerting import EmailNotifier
from scheduler.change_detector import MapVersionChecker
from scheduler.models import NotificationConfig, SchedulerConfig
from scheduler.scheduler_service import SchedulerService
from utilities.config import MapVersionConfig, load_config
from utilities.logger import get_logger, setup_logging


def build_scheduler_service(config: MapVersionConfig) -> SchedulerService:
    """Wire the scheduler service and its collaborators from configuration."""
    db_manager = MongoKVManager(
        connection_url=config.mongodb_url,
        database_name=config.mongodb_database
    )

    fetcher = MapVersionFetcher(
        url=config.web_page_url,
        timeout=config.request_timeout,
        headers=config.get_headers()
    )
    notifier = EmailNotifier(NotificationConfig(
        api_url=config.resend_api_url,
        api_key=config.resend_api_key,
        sender=config.email_sender,
        recipient=config.notify_email
    ))
    scheduler_config = SchedulerConfig(
        schedule_hour=config.schedule_hour,
        schedule_minute=config.schedule_minute,
        timezone=config.timezone
    )

    stores = MapVersionStores.from_manager(
        db_manager,
        versions_collection=config.versions_collection,
        changes_collection=config.changes_collection
    )
    checker = MapVersionChecker(stores.versions, stores.changes, fetcher, notifier)
    return SchedulerService(scheduler_config, db_manager, checker)


def parse_mode(argv) -> dict:
    if len(argv) <= 1:
        return {"test_mode": False, "run_once": False}
    if argv[1] == "--once":
        return {"test_mode": False, "run_once": True}
    if argv[1] == "--test":
        return {"test_mode": True, "run_once": False}
    raise SystemExit(f"Unknown argument: {argv[1]}\nUsage: python scheduler_main.py [--once|--test]")


async def main(argv=None) -> int:
    """Start the scheduler; returns the process exit code."""
    mode = parse_mode(argv if argv is not None else sys.argv)
    config = load_config()

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger = get_logger(__name__)

    service = build_scheduler_service(config)
    if not mode["run_once"]:
        service.setup_signal_handlers()

    try:
        await service.start(**mode)
    except Exception as e:
        logger.error("Map version check failed", error=str(e), error_type=type(e).__name__)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
