from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

import repeat_cron
from config import AppConfig
from sync_service import SyncResult

NY = ZoneInfo("America/New_York")


class FakeOrchestrator:
    def __init__(self):
        self.days = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True

    def run(self, today=None, dry_run=False):
        self.days.append(today)
        return SyncResult(day=today)


@pytest.fixture
def orchestrator(monkeypatch):
    fake = FakeOrchestrator()
    monkeypatch.setattr(repeat_cron, "build_orchestrator", lambda config: fake)
    monkeypatch.setattr(repeat_cron, "_last_fired", None)
    return fake


def test_runs_when_cron_matches(orchestrator):
    config = AppConfig(sync_cron="0 2 * * *", user_timezone="America/New_York")
    result = repeat_cron.run_due_sync(datetime(2024, 3, 8, 2, 0, 10, tzinfo=NY), config)
    assert result is not None
    assert orchestrator.days == [date(2024, 3, 8)]


def test_skips_when_cron_does_not_match(orchestrator):
    config = AppConfig(sync_cron="0 2 * * *")
    assert repeat_cron.run_due_sync(datetime(2024, 3, 8, 3, 0, tzinfo=NY), config) is None
    assert orchestrator.days == []


def test_fires_once_per_matching_minute(orchestrator):
    config = AppConfig(sync_cron="0 2 * * *")
    repeat_cron.run_due_sync(datetime(2024, 3, 8, 2, 0, 5, tzinfo=NY), config)
    repeat_cron.run_due_sync(datetime(2024, 3, 8, 2, 0, 35, tzinfo=NY), config)
    repeat_cron.run_due_sync(datetime(2024, 3, 9, 2, 0, 5, tzinfo=NY), config)
    assert orchestrator.days == [date(2024, 3, 8), date(2024, 3, 9)]


def test_missing_store_settings_logged_not_raised(monkeypatch):
    monkeypatch.setattr(repeat_cron, "_last_fired", None)
    config = AppConfig(sync_cron="* * * * *")
    assert repeat_cron.run_due_sync(datetime(2024, 3, 8, 2, 0, tzinfo=NY), config) is None


def test_orchestrator_closed_after_cron_run(orchestrator):
    config = AppConfig(sync_cron="0 2 * * *")
    repeat_cron.run_due_sync(datetime(2024, 3, 8, 2, 0, tzinfo=NY), config)
    assert orchestrator.closed is True
