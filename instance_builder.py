"""Turn a due template into the properties payload of a new page."""
from __future__ import annotations

import copy
from collections.abc import Iterable
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from config import READ_ONLY_PROPERTY_TYPES, PropertyNames
from recurrence import TemplateRecord

# Keys that identify an existing page or property rather than describe a new one
IDENTITY_KEYS = frozenset({"id", "type"})


class InstanceRecord(BaseModel):
    """Payload for creating one task instance. source_template_id is for logging only and is never submitted."""

    model_config = ConfigDict(frozen=True)

    properties: dict[str, Any] = Field(default_factory=dict)
    source_template_id: str | None = None


def _strip_identity(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: copy.deepcopy(v) for k, v in value.items() if k not in IDENTITY_KEYS}
    return copy.deepcopy(value)


def to_instance(
    template: TemplateRecord,
    today: date,
    names: PropertyNames | None = None,
    read_only_types: Iterable[str] = READ_ONLY_PROPERTY_TYPES,
) -> InstanceRecord:
    """
    Build the instance payload for template on today. The output is constructed from scratch:
    - template-only properties (created at, created, repeat-template marker, status) are left out;
    - properties whose type the store computes itself are left out;
    - id/type keys are dropped both at the top level and inside each property value;
    - Repeating is set to true and Do to today's date (no time component).
    """
    names = names or PropertyNames()
    denied = set(names.template_only()) | IDENTITY_KEYS
    read_only = frozenset(read_only_types)
    properties: dict[str, Any] = {}
    for key, value in template.properties.items():
        if key in denied:
            continue
        if isinstance(value, dict) and value.get("type") in read_only:
            continue
        properties[key] = _strip_identity(value)
    properties[names.repeating] = {"checkbox": True}
    properties[names.do_date] = {"date": {"start": today.isoformat()}}
    return InstanceRecord(properties=properties, source_template_id=template.record_id)
