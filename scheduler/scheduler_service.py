"""
Scheduler service for the daily map version check.

This module provides:
- Daily scheduling with APScheduler
- A run-once mode for external cron triggers
- Job failure reporting through scheduler event listeners
"""

import asyncio
import signal
import sys
from typing import Optional

import structlog
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from crawler.database import MongoKVManager
from scheduler.change_detector import MapVersionChecker
from scheduler.models import CheckResult, SchedulerConfig

logger = structlog.get_logger(__name__)

CHECK_JOB_ID = "daily_map_version_check"


class SchedulerService:
    """Runs the map version check on a daily schedule."""

    def __init__(
        self,
        config: SchedulerConfig,
        db_manager: MongoKVManager,
        checker: MapVersionChecker,
    ):
        """
        Initialize scheduler service.

        Args:
            config: Scheduler configuration
            db_manager: Database manager, connected on start
            checker: The map version checker to run
        """
        self.config = config
        self.db_manager = db_manager
        self.checker = checker
        self.scheduler = AsyncIOScheduler(timezone=config.timezone)
        self.logger = logger.bind(component="scheduler_service")

        self._setup_scheduler_listeners()

    def setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, shutting down gracefully...")
            self.stop()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def _setup_scheduler_listeners(self) -> None:
        """Setup scheduler event listeners."""
        def job_executed_listener(event):
            result: Optional[CheckResult] = event.retval
            self.logger.info(
                "Job executed successfully",
                job_id=event.job_id,
                outcome=result.outcome.value if result else None
            )

        def job_error_listener(event):
            self.logger.error(
                "Job execution failed",
                job_id=event.job_id,
                error=str(event.exception)
            )

        self.scheduler.add_listener(job_executed_listener, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(job_error_listener, EVENT_JOB_ERROR)

    async def start(self, test_mode: bool = False, run_once: bool = False) -> Optional[CheckResult]:
        """
        Start the scheduler service.

        In run-once mode a single check is executed and its result returned;
        any failure propagates to the caller.
        """
        await self.db_manager.connect()

        try:
            if run_once:
                self.logger.info("Running map version check once")
                return await self.run_check_job()

            health = await self.db_manager.health_check()
            self.logger.info("Database health checked", database_status=health.get("status"))

            if test_mode:
                self._add_test_scheduled_jobs()
            else:
                self._add_scheduled_jobs()

            self.scheduler.start()
            self.logger.info(
                "Scheduler service started",
                timezone=self.config.timezone,
                schedule_hour=self.config.schedule_hour,
                schedule_minute=self.config.schedule_minute,
                test_mode=test_mode,
                jobs=self.get_scheduler_status()["jobs"]
            )

            try:
                while True:
                    await asyncio.sleep(1)
            except KeyboardInterrupt:
                self.logger.info("Received keyboard interrupt, shutting down...")
                self.stop()
            return None
        finally:
            await self.db_manager.disconnect()

    def stop(self) -> None:
        """Stop the scheduler service."""
        self.logger.info("Stopping scheduler service")
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self.logger.info("Scheduler service stopped")

    def _add_scheduled_jobs(self) -> None:
        self.scheduler.add_job(
            func=self.run_check_job,
            trigger=CronTrigger(
                hour=self.config.schedule_hour,
                minute=self.config.schedule_minute,
                timezone=self.config.timezone
            ),
            id=CHECK_JOB_ID,
            name="Daily Map Version Check",
            max_instances=1,
            replace_existing=True
        )
        self.logger.info(
            "Added daily map version check job",
            hour=self.config.schedule_hour,
            minute=self.config.schedule_minute,
            timezone=self.config.timezone
        )

    def _add_test_scheduled_jobs(self) -> None:
        self.scheduler.add_job(
            func=self.run_check_job,
            trigger="interval",
            minutes=self.config.test_interval_minutes,
            id=f"test_{CHECK_JOB_ID}",
            name="Test Map Version Check",
            max_instances=1,
            replace_existing=True
        )
        self.logger.info(
            "Added test map version check job",
            interval_minutes=self.config.test_interval_minutes
        )

    async def run_check_job(self) -> CheckResult:
        """Run one check. Exceptions propagate so the run is recorded as failed."""
        self.logger.info("Starting map version check job")
        result = await self.checker.run_check()
        self.logger.info(
            "Map version check job completed",
            outcome=result.outcome.value,
            latest_version=result.latest_version,
            previous_version=result.previous_version
        )
        return result

    def get_scheduler_status(self) -> dict:
        """Describe the scheduler and its next run times."""
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run_time": next_run.isoformat() if next_run else None,
            })
        return {
            "running": self.scheduler.running,
            "timezone": self.config.timezone,
            "jobs": jobs,
        }
