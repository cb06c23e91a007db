"""Evaluate a batch of templates for one day and build the instances that are due."""
from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from pydantic import BaseModel, ConfigDict

from config import READ_ONLY_PROPERTY_TYPES, PropertyNames
from instance_builder import InstanceRecord, to_instance
from recurrence import Decision, TemplateRecord, evaluate


class Evaluation(BaseModel):
    model_config = ConfigDict(frozen=True)

    template: TemplateRecord
    decision: Decision


def evaluate_all(templates: Iterable[TemplateRecord] | None, today: date) -> list[Evaluation]:
    """Decision for every template, in input order. None is treated as no templates."""
    return [Evaluation(template=t, decision=evaluate(t, today)) for t in templates or []]


def run(
    templates: Iterable[TemplateRecord] | None,
    today: date,
    names: PropertyNames | None = None,
    read_only_types: Iterable[str] = READ_ONLY_PROPERTY_TYPES,
) -> list[InstanceRecord]:
    """Instances for the templates due on today, in input order."""
    read_only = tuple(read_only_types)
    return [
        to_instance(e.template, today, names, read_only)
        for e in evaluate_all(templates, today)
        if e.decision is Decision.DUE
    ]
