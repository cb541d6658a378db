"""
Test cases for the scheduler service, its models and the entry point wiring.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import ValidationError

from crawler.database import MongoKVManager
from scheduler.change_detector import MapVersionChecker
from scheduler.models import CheckOutcome, CheckResult, NotificationConfig, SchedulerConfig
from scheduler.scheduler_service import CHECK_JOB_ID, SchedulerService
from utilities.exceptions import FetchError


class TestSchedulerConfig:
    """Test cases for SchedulerConfig model."""

    def test_defaults(self):
        config = SchedulerConfig()

        assert config.schedule_hour == 12
        assert config.schedule_minute == 0
        assert config.timezone == "UTC"

    def test_invalid_schedule_hour(self):
        with pytest.raises(ValidationError):
            SchedulerConfig(schedule_hour=24)

        with pytest.raises(ValidationError):
            SchedulerConfig(schedule_hour=-1)

    def test_invalid_schedule_minute(self):
        with pytest.raises(ValidationError):
            SchedulerConfig(schedule_minute=60)


class TestNotificationConfig:
    """Test cases for NotificationConfig model."""

    def test_defaults(self):
        config = NotificationConfig()

        assert config.api_url == "https://api.resend.com/emails"
        assert "noreply@" in config.sender

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            NotificationConfig(timeout=0)


class TestSchedulerService:
    """Test cases for SchedulerService."""

    @pytest.fixture
    def mock_db_manager(self):
        manager = AsyncMock(spec=MongoKVManager)
        manager.connect = AsyncMock()
        manager.disconnect = AsyncMock()
        manager.health_check = AsyncMock(return_value={"status": "healthy"})
        return manager

    @pytest.fixture
    def mock_checker(self):
        checker = AsyncMock(spec=MapVersionChecker)
        checker.run_check.return_value = CheckResult(
            outcome=CheckOutcome.UNCHANGED,
            checked_date="2024-11-19",
            latest_version="2024",
            previous_version="2024"
        )
        return checker

    @pytest.fixture
    def scheduler_service(self, mock_db_manager, mock_checker):
        return SchedulerService(
            SchedulerConfig(schedule_hour=12, schedule_minute=5),
            mock_db_manager,
            mock_checker
        )

    @pytest.mark.asyncio
    async def test_run_once_returns_result(self, scheduler_service, mock_db_manager, mock_checker):
        result = await scheduler_service.start(run_once=True)

        assert result.outcome == CheckOutcome.UNCHANGED
        mock_db_manager.connect.assert_awaited_once()
        mock_db_manager.disconnect.assert_awaited_once()
        mock_checker.run_check.assert_awaited_once()
        mock_db_manager.health_check.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_run_once_failure_propagates(self, scheduler_service, mock_db_manager, mock_checker):
        mock_checker.run_check.side_effect = FetchError("status 500")

        with pytest.raises(FetchError):
            await scheduler_service.start(run_once=True)

        mock_db_manager.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_scheduler_daemon_mode(self, scheduler_service, mock_db_manager):
        with patch.object(scheduler_service, "_add_scheduled_jobs") as mock_add_jobs:
            with patch.object(scheduler_service.scheduler, "start") as mock_start:
                with patch("asyncio.sleep", side_effect=KeyboardInterrupt()):
                    await scheduler_service.start()

        mock_add_jobs.assert_called_once()
        mock_start.assert_called_once()
        mock_db_manager.health_check.assert_awaited_once()
        mock_db_manager.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_scheduler_test_mode(self, scheduler_service):
        with patch.object(scheduler_service, "_add_test_scheduled_jobs") as mock_add_test_jobs:
            with patch.object(scheduler_service.scheduler, "start") as mock_start:
                with patch("asyncio.sleep", side_effect=KeyboardInterrupt()):
                    await scheduler_service.start(test_mode=True)

        mock_add_test_jobs.assert_called_once()
        mock_start.assert_called_once()

    @pytest.mark.asyncio
    async def test_start_scheduler_database_error(self, scheduler_service, mock_db_manager, mock_checker):
        mock_db_manager.connect.side_effect = Exception("Database connection failed")

        with pytest.raises(Exception) as exc_info:
            await scheduler_service.start(run_once=True)

        assert "Database connection failed" in str(exc_info.value)
        mock_checker.run_check.assert_not_called()

    def test_daily_job_registered(self, scheduler_service):
        scheduler_service._add_scheduled_jobs()

        job = scheduler_service.scheduler.get_job(CHECK_JOB_ID)
        assert job is not None
        assert job.max_instances == 1
        assert "hour='12'" in str(job.trigger)
        assert "minute='5'" in str(job.trigger)

    def test_test_job_registered(self, scheduler_service):
        scheduler_service._add_test_scheduled_jobs()

        assert scheduler_service.scheduler.get_job(f"test_{CHECK_JOB_ID}") is not None

    def test_get_scheduler_status(self, scheduler_service):
        scheduler_service._add_scheduled_jobs()

        status = scheduler_service.get_scheduler_status()

        assert status["running"] is False
        assert status["timezone"] == "UTC"
        assert [job["id"] for job in status["jobs"]] == [CHECK_JOB_ID]

    def test_stop_when_not_running(self, scheduler_service):
        scheduler_service.stop()

    @pytest.mark.asyncio
    async def test_run_check_job_delegates(self, scheduler_service, mock_checker):
        result = await scheduler_service.run_check_job()

        assert result.latest_version == "2024"
        mock_checker.run_check.assert_awaited_once()


class TestSchedulerMain:
    """Test cases for the scheduler entry point."""

    def test_parse_mode(self):
        from scheduler_main import parse_mode

        assert parse_mode(["scheduler_main.py"]) == {"test_mode": False, "run_once": False}
        assert parse_mode(["scheduler_main.py", "--once"]) == {"test_mode": False, "run_once": True}
        assert parse_mode(["scheduler_main.py", "--test"]) == {"test_mode": True, "run_once": False}

        with pytest.raises(SystemExit):
            parse_mode(["scheduler_main.py", "--bogus"])

    def test_build_scheduler_service(self):
        from scheduler_main import build_scheduler_service
        from utilities.config import MapVersionConfig

        config = MapVersionConfig(
            web_page_url="https://example.com/maps",
            notify_email="maps@example.com",
            schedule_hour=6
        )

        service = build_scheduler_service(config)

        assert service.config.schedule_hour == 6
        assert service.checker.fetcher.url == "https://example.com/maps"
        assert service.checker.notifier.config.recipient == "maps@example.com"
        assert service.checker.version_store.namespace.name == config.versions_collection

    @pytest.mark.asyncio
    async def test_main_returns_error_code_on_failure(self):
        import scheduler_main

        service = MagicMock()
        service.start = AsyncMock(side_effect=FetchError("status 500"))

        with patch.object(scheduler_main, "setup_logging"):
            with patch.object(scheduler_main, "build_scheduler_service", return_value=service):
                exit_code = await scheduler_main.main(["scheduler_main.py", "--once"])

        assert exit_code == 1
        service.start.assert_awaited_once_with(test_mode=False, run_once=True)

    @pytest.mark.asyncio
    async def test_main_returns_zero_on_success(self):
        import scheduler_main

        service = MagicMock()
        service.start = AsyncMock(return_value=None)

        with patch.object(scheduler_main, "setup_logging"):
            with patch.object(scheduler_main, "build_scheduler_service", return_value=service):
                exit_code = await scheduler_main.main(["scheduler_main.py", "--once"])

        assert exit_code == 0
