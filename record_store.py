"""
Record store adapter: reads repeat templates from the Notion database and creates instance pages.
Store failures are recovered here (logged, empty result / False) so a cycle never crashes on I/O.
"""
from __future__ import annotations

import logging
from typing import Any

from config import AppConfig, PropertyNames
from date_utils import local_date, parse_timestamp
from notion_client import NotionClient, NotionError
from recurrence import Frequency, TemplateRecord, Weekday

logger = logging.getLogger("record_store")


class TemplateDataError(ValueError):
    """A flagged template page is missing data the evaluator needs (e.g. its creation timestamp)."""


def _prop(properties: dict[str, Any], name: str) -> dict[str, Any]:
    value = properties.get(name)
    return value if isinstance(value, dict) else {}


def _created_at(prop: dict[str, Any], tz_name: str):
    # created_time property, or a plain date property holding the anchor
    raw = prop.get("created_time")
    if raw is None:
        raw = (prop.get("date") or {}).get("start")
    try:
        parsed = parse_timestamp(raw)
    except ValueError as e:
        raise TemplateDataError(f"Unparseable creation timestamp {raw!r}") from e
    return local_date(parsed, tz_name) if parsed is not None else None


def _select_name(prop: dict[str, Any]) -> str | None:
    option = prop.get("select")
    return option.get("name") if isinstance(option, dict) else None


def _multi_select_names(prop: dict[str, Any]) -> list[str]:
    return [o.get("name", "") for o in prop.get("multi_select") or [] if isinstance(o, dict)]


def _month_days(names: list[str]) -> frozenset[int]:
    out: set[int] = set()
    for name in names:
        try:
            n = int(str(name).strip())
        except ValueError:
            continue
        if 1 <= n <= 31:
            out.add(n)
    return frozenset(out)


def template_from_page(page: dict[str, Any], names: PropertyNames, tz_name: str = "UTC") -> TemplateRecord:
    """Build a TemplateRecord from a Notion page object. Raises TemplateDataError for a flagged page with no creation date."""
    properties = page.get("properties") or {}
    is_template = bool(_prop(properties, names.repeat_template).get("checkbox"))
    created_at = _created_at(_prop(properties, names.created_at), tz_name)
    if is_template and created_at is None:
        raise TemplateDataError(f"Template {page.get('id')} has no '{names.created_at}' value")
    weekdays = (Weekday.parse(n) for n in _multi_select_names(_prop(properties, names.weekly_days)))
    return TemplateRecord(
        record_id=page.get("id"),
        created_at=created_at,
        frequency=Frequency.parse(_select_name(_prop(properties, names.frequency))),
        repeat_every=_prop(properties, names.repeat_every).get("number"),
        weekly_days=frozenset(d for d in weekdays if d is not None),
        monthly_dates=_month_days(_multi_select_names(_prop(properties, names.monthly_dates))),
        is_repeat_template=is_template,
        properties=properties,
    )


class NotionRecordStore:
    """Templates and instances live in the same Notion database."""

    def __init__(self, client: NotionClient, config: AppConfig):
        self.client = client
        self.database_id = config.notion_database_id
        self.names = config.properties
        self.tz_name = config.user_timezone

    def close(self) -> None:
        self.client.close()

    def template_filter(self) -> dict[str, Any]:
        return {"property": self.names.repeat_template, "checkbox": {"equals": True}}

    def query_templates(self) -> list[TemplateRecord]:
        """All pages flagged as repeat templates. Empty on store failure; bad pages are logged and skipped."""
        try:
            pages = self.client.query_database(self.database_id, filter=self.template_filter())
        except NotionError as e:
            logger.warning("Template query failed: %s", e)
            return []
        templates: list[TemplateRecord] = []
        for page in pages:
            try:
                templates.append(template_from_page(page, self.names, self.tz_name))
            except (TemplateDataError, ValueError) as e:
                logger.warning("Skipping template %s: %s", page.get("id"), e)
        return templates

    def create_instance(self, properties: dict[str, Any]) -> bool:
        """Create one instance page. Returns False (and logs) on failure."""
        try:
            page = self.client.create_page(self.database_id, properties)
        except NotionError as e:
            logger.warning("Instance creation failed: %s", e)
            return False
        logger.info("Entry added: %s", page.get("id"))
        return True
