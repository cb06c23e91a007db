"""
Daily sync: fetch repeat templates, decide which are due today, and create their instances.
All store I/O and logging happen here; the evaluation itself is pipeline.run (side-effect free).
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Protocol

from pydantic import BaseModel, Field

import pipeline
from config import AppConfig
from date_utils import Clock, SystemClock
from instance_builder import InstanceRecord
from notion_client import NotionClient
from record_store import NotionRecordStore
from recurrence import Decision, TemplateRecord

logger = logging.getLogger("sync_service")


class RecordStore(Protocol):
    def query_templates(self) -> list[TemplateRecord] | None: ...

    def create_instance(self, properties: dict) -> bool: ...


class SyncResult(BaseModel):
    day: date
    templates: int = 0
    due: int = 0
    created: int = 0
    failed: int = 0
    skipped: int = 0
    dry_run: bool = False
    instances: list[str | None] = Field(default_factory=list, description="Template ids of the instances created (or due, on a dry run)")


class SyncOrchestrator:
    """One cycle = query, evaluate, create. Creations run in parallel and never abort each other."""

    def __init__(self, store: RecordStore, clock: Clock, config: AppConfig):
        self.store = store
        self.clock = clock
        self.config = config

    def close(self) -> None:
        """Release the store's HTTP connections. Stores without a close() hold none."""
        close = getattr(self.store, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "SyncOrchestrator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _submit(self, instance: InstanceRecord) -> bool:
        try:
            ok = self.store.create_instance(instance.properties)
        except Exception:
            logger.exception("Creating instance from template %s raised", instance.source_template_id)
            return False
        if not ok:
            logger.warning("Instance from template %s was not created", instance.source_template_id)
        return ok

    def run(self, today: date | None = None, dry_run: bool = False) -> SyncResult:
        today = today or self.clock.today()
        templates = self.store.query_templates() or []
        evaluations = pipeline.evaluate_all(templates, today)
        skipped = 0
        for e in evaluations:
            logger.debug("Template %s: %s", e.template.record_id, e.decision.value)
            if e.decision is Decision.MISSING_CREATED_AT:
                logger.warning("Template %s has no creation date; skipped", e.template.record_id)
            if e.decision in (Decision.NO_FREQUENCY, Decision.MISSING_CREATED_AT):
                skipped += 1
        instances = pipeline.run(
            templates,
            today,
            self.config.properties,
            self.config.read_only_property_types,
        )
        result = SyncResult(
            day=today,
            templates=len(templates),
            due=len(instances),
            skipped=skipped,
            dry_run=dry_run,
        )
        logger.info("Sync %s: %d templates, %d due, %d skipped", today.isoformat(), len(templates), len(instances), skipped)
        if dry_run:
            result.instances = [i.source_template_id for i in instances]
            return result
        if not instances:
            return result

        workers = min(self.config.create_concurrency, len(instances))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="repeat-create") as pool:
            outcomes = list(pool.map(self._submit, instances))
        for instance, ok in zip(instances, outcomes):
            if ok:
                result.created += 1
                result.instances.append(instance.source_template_id)
            else:
                result.failed += 1
        logger.info("Sync %s: created %d, failed %d", today.isoformat(), result.created, result.failed)
        return result


def build_orchestrator(config: AppConfig, clock: Clock | None = None) -> SyncOrchestrator:
    """
    Wire a Notion-backed orchestrator from config. Raises ConfigError if token/database id are missing.
    The orchestrator owns an HTTP client: use it as a context manager (or call close()).
    """
    config.require_store_settings()
    client = NotionClient(
        config.notion_token,
        base_url=config.notion_base_url,
        version=config.notion_version,
        timeout=config.request_timeout,
    )
    store = NotionRecordStore(client, config)
    return SyncOrchestrator(store, clock or SystemClock(config.user_timezone), config)
