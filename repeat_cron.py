"""
Scheduled daily sync: create due repeat-task instances on the configured cron.
Uses cron notation (5-field: min hour day month weekday) in user_timezone.
Start the scheduler from the main process (run.py).
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime
from zoneinfo import ZoneInfo

from croniter import croniter

from config import AppConfig, ConfigError
from config import load as load_config
from sync_service import SyncResult, build_orchestrator

logger = logging.getLogger(__name__)

_TICK_SECONDS = 30

_scheduler_thread: threading.Thread | None = None
_stop_event: threading.Event | None = None
# Minute (in user_timezone) of the last fired run; a cron match fires once per minute
_last_fired: str | None = None


def run_due_sync(now: datetime, config: AppConfig) -> SyncResult | None:
    """Run one sync cycle if `now` matches config.sync_cron and this minute has not fired yet."""
    global _last_fired
    if not croniter.match(config.sync_cron, now):
        return None
    minute_key = now.strftime("%Y-%m-%dT%H:%M")
    if _last_fired == minute_key:
        return None
    _last_fired = minute_key
    try:
        orchestrator = build_orchestrator(config)
    except ConfigError as e:
        logger.warning("Repeat sync skipped: %s", e)
        return None
    with orchestrator:
        result = orchestrator.run(today=now.date())
    logger.info(
        "Repeat sync (cron) %s: %d due, %d created, %d failed",
        result.day.isoformat(), result.due, result.created, result.failed,
    )
    return result


def _tick() -> None:
    config = load_config()
    now = datetime.now(ZoneInfo(config.user_timezone))
    run_due_sync(now, config)


def _scheduler_loop() -> None:
    """Check the cron every few seconds and run the sync when it matches."""
    while _stop_event and not _stop_event.is_set():
        try:
            _tick()
        except Exception as e:
            logger.warning("Repeat cron tick failed: %s", e)
        if _stop_event:
            _stop_event.wait(timeout=_TICK_SECONDS)


def start_repeat_cron_scheduler() -> None:
    """Start the background thread that runs the daily sync. Idempotent."""
    global _scheduler_thread, _stop_event
    if _scheduler_thread is not None and _scheduler_thread.is_alive():
        return
    _stop_event = threading.Event()
    _scheduler_thread = threading.Thread(target=_scheduler_loop, daemon=True, name="repeat-cron")
    _scheduler_thread.start()
    logger.info("Repeat cron scheduler started")


def stop_repeat_cron_scheduler() -> None:
    """Signal the scheduler thread to stop."""
    global _stop_event
    if _stop_event:
        _stop_event.set()
