"""
Map version change detection.

One call to ``MapVersionChecker.run_check`` reads the last known version,
fetches the published one, stores it under today's date and records and
announces a change when the two differ. Failures to fetch or store are
reported by email (when possible) and re-raised so the caller sees the run
as failed.
"""

from datetime import datetime
from typing import Callable, Optional

import structlog

from crawler.database import ChangeLogStore, VersionStore
from crawler.models import VersionChange
from crawler.version_fetcher import MapVersionFetcher
from scheduler.alerting import EmailNotifier
from scheduler.models import CheckOutcome, CheckResult
from utilities.dates import epoch_millis, get_today_date, utc_now

logger = structlog.get_logger(__name__)


class MapVersionChecker:
    """Fetch, compare, persist and notify, once per invocation."""

    def __init__(
        self,
        version_store: VersionStore,
        change_log: ChangeLogStore,
        fetcher: MapVersionFetcher,
        notifier: EmailNotifier,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the checker.

        Args:
            version_store: Date -> version store
            change_log: Change record store
            fetcher: Source of the published map version
            notifier: Email notifier for changes and errors
            clock: Returns the current UTC time
        """
        self.version_store = version_store
        self.change_log = change_log
        self.fetcher = fetcher
        self.notifier = notifier
        self.clock = clock
        self.logger = logger.bind(component="map_version_checker")

    async def run_check(self) -> CheckResult:
        now = self.clock()
        today = get_today_date(now)

        previous_version = await self._read_previous_version(today)

        try:
            latest_version = await self.fetcher.fetch_map_version()
        except Exception as e:
            self.logger.error("Failed to fetch map version", error=str(e))
            if previous_version:
                await self._report_error("Error occurred while checking map version.", e)
            raise

        try:
            await self.version_store.put(today, latest_version)
        except Exception as e:
            self.logger.error("Failed to save map version", date=today, error=str(e))
            await self._report_error("Error occurred while saving map version.", e)
            raise

        if not previous_version:
            self.logger.info(
                f"First time checking map version, latest version is {latest_version}",
                latest_version=latest_version
            )
            return CheckResult(
                outcome=CheckOutcome.FIRST_CHECK,
                checked_date=today,
                latest_version=latest_version,
            )

        if previous_version == latest_version:
            self.logger.info(
                f"Latest map version is the same as in previous check ({latest_version})",
                latest_version=latest_version
            )
            return CheckResult(
                outcome=CheckOutcome.UNCHANGED,
                checked_date=today,
                latest_version=latest_version,
                previous_version=previous_version,
            )

        message = f"Map version changed from {previous_version} to {latest_version}"
        self.logger.info(message, previous_version=previous_version, latest_version=latest_version)

        change = VersionChange(
            created_at=epoch_millis(now),
            from_version=previous_version,
            to_version=latest_version,
        )
        await self.change_log.record_change(today, change)
        await self.notifier.notify_change(message)

        return CheckResult(
            outcome=CheckOutcome.CHANGED,
            checked_date=today,
            latest_version=latest_version,
            previous_version=previous_version,
            change=change,
        )

    async def _read_previous_version(self, today: str) -> Optional[str]:
        """Last known version, or None when unknown or unreadable."""
        try:
            latest = await self.version_store.get_latest_version(today)
        except Exception as e:
            self.logger.error("Error occurred while checking previous map version.", error=str(e))
            return None
        return latest.version if latest else None

    async def _report_error(self, message: str, exception: Exception) -> None:
        # The original failure is what gets re-raised; a failed report is only logged.
        try:
            await self.notifier.report_error(message, exception)
        except Exception as e:
            self.logger.error("Failed to send error report", error=str(e))
