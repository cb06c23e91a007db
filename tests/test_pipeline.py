from datetime import date

import pipeline
from conftest import make_template
from recurrence import Decision, Frequency


def test_empty_and_none_inputs():
    assert pipeline.run([], date(2024, 3, 8)) == []
    assert pipeline.run(None, date(2024, 3, 8)) == []
    assert pipeline.evaluate_all(None, date(2024, 3, 8)) == []


def test_filters_non_due_and_preserves_order():
    today = date(2024, 3, 8)  # Friday
    templates = [
        make_template(record_id="a", created_at=date(2024, 3, 1), frequency=Frequency.WEEKLY),
        make_template(record_id="b", created_at=date(2024, 3, 2), frequency=Frequency.WEEKLY),
        make_template(record_id="c", frequency=None),
        make_template(record_id="d", created_at=date(2024, 3, 6), frequency=Frequency.DAILY, repeat_every=2),
        make_template(record_id="e", created_at=date(2024, 2, 8), frequency=Frequency.MONTHLY),
    ]
    out = pipeline.run(templates, today)
    assert [i.source_template_id for i in out] == ["a", "d", "e"]
    assert all(i.properties["Do"] == {"date": {"start": "2024-03-08"}} for i in out)


def test_weekly_scenario_output():
    t = make_template(
        record_id="friday",
        created_at=date(2024, 3, 1),
        frequency=Frequency.WEEKLY,
        properties={"Name": {"title": []}},
    )
    [inst] = pipeline.run([t], date(2024, 3, 8))
    assert inst.properties["Do"] == {"date": {"start": "2024-03-08"}}
    assert inst.properties["Repeating"] == {"checkbox": True}


def test_evaluate_all_reports_each_decision():
    today = date(2024, 1, 5)
    templates = [
        make_template(record_id="due", created_at=date(2024, 1, 1), repeat_every=2),
        make_template(record_id="not", created_at=date(2024, 1, 2), repeat_every=2),
        make_template(record_id="none", frequency=None),
        make_template(record_id="nodate", created_at=None),
    ]
    decisions = [(e.template.record_id, e.decision) for e in pipeline.evaluate_all(templates, today)]
    assert decisions == [
        ("due", Decision.DUE),
        ("not", Decision.NOT_DUE),
        ("none", Decision.NO_FREQUENCY),
        ("nodate", Decision.MISSING_CREATED_AT),
    ]
