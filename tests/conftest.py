"""Shared fixtures: isolate config from the developer's config.json and environment."""
from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

import pytest

from recurrence import Frequency, TemplateRecord, Weekday


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "config.json"
    monkeypatch.setenv("REPEATER_CONFIG", str(path))
    monkeypatch.delenv("NOTION_KEY", raising=False)
    monkeypatch.delenv("NOTION_DATABASE_ID", raising=False)
    return path


def make_template(
    created_at: date | None = date(2024, 1, 1),
    frequency: Frequency | None = Frequency.DAILY,
    repeat_every: int | None = 1,
    weekly_days: set[Weekday] | None = None,
    monthly_dates: set[int] | None = None,
    properties: dict[str, Any] | None = None,
    record_id: str = "tmpl-1",
) -> TemplateRecord:
    return TemplateRecord(
        record_id=record_id,
        created_at=created_at,
        frequency=frequency,
        repeat_every=repeat_every,
        weekly_days=frozenset(weekly_days or ()),
        monthly_dates=frozenset(monthly_dates or ()),
        properties=properties or {},
    )


def notion_page(
    page_id: str = "page-1",
    created_time: str | None = "2024-03-01T15:00:00.000Z",
    frequency: str | None = "Weekly",
    repeat_every: int | None = 1,
    weekly_days: list[str] | None = None,
    monthly_dates: list[str] | None = None,
    is_template: bool = True,
) -> dict[str, Any]:
    """A Notion page object shaped like a databases.query result."""
    props: dict[str, Any] = {
        "Name": {"id": "title", "type": "title", "title": [{"type": "text", "text": {"content": "Water plants"}}]},
        "Is Repeat Template": {"id": "a1", "type": "checkbox", "checkbox": is_template},
        "Repeat Frequency": {"id": "a2", "type": "select", "select": {"id": "s1", "name": frequency} if frequency else None},
        "Repeat Every": {"id": "a3", "type": "number", "number": repeat_every},
        "Repeat Days (Weekly)": {"id": "a4", "type": "multi_select", "multi_select": [{"id": f"w{i}", "name": n} for i, n in enumerate(weekly_days or [])]},
        "Repeat Dates (Monthly)": {"id": "a5", "type": "multi_select", "multi_select": [{"id": f"m{i}", "name": n} for i, n in enumerate(monthly_dates or [])]},
        "Status": {"id": "a6", "type": "status", "status": {"name": "Not started"}},
        "Created": {"id": "a7", "type": "created_time", "created_time": created_time},
    }
    if created_time is not None:
        props["Created At"] = {"id": "a8", "type": "created_time", "created_time": created_time}
    return {"object": "page", "id": page_id, "properties": props}
