import json
from datetime import datetime
from fractions import Fraction

import pytest

from studienplan_export.export import (
    build_event,
    export_classes,
    export_ics,
    export_json,
)
from studienplan_export.extract import extract_from_html
from studienplan_export.models import Clazz, ScheduleElement

FS151 = Clazz("FS151", "BSc", "FST", "ABB2015")


@pytest.fixture
def store(plan_html, small_legend_settings):
    return extract_from_html(html_content=plan_html, settings=small_legend_settings)


def test_export_ics(tmp_path, store):
    written = export_ics(store, tmp_path / "ical")

    names = sorted(p.name for p in written)
    assert names == [
        "ABB2015-FS151-BSc-FST.unified.ics",
        "ABB2015-FS152-BA-FIS.unified.ics",
        "ABB2015.unified.ics",
    ]

    content = (tmp_path / "ical" / "ABB2015-FS151-BSc-FST.unified.ics").read_text(encoding="utf-8")

    # Verify standard ICS elements
    assert "BEGIN:VCALENDAR" in content
    assert "BEGIN:VEVENT" in content
    assert "END:VCALENDAR" in content

    # Timed entry in plan timezone, default duration of 3 hours
    assert "DTSTART;TZID=Europe/Berlin:20160307T080000" in content
    assert "DTEND;TZID=Europe/Berlin:20160307T110000" in content

    # Full-week entry as all-day event over the week
    assert "DTSTART;VALUE=DATE:20160314" in content
    assert "DTEND;VALUE=DATE:20160321" in content
    assert "LOCATION:24" in content

    # Subgroup and session number in the summary
    assert "SUMMARY:DuA 1 [2]" in content

    # Unified: cohort events included
    assert "SUMMARY:Info zu Praxis" in content

    assert "@studienplan-export" in content


def test_export_ics_not_unified(tmp_path, store):
    written = export_ics(store, tmp_path, unified=False)
    assert all(p.name.endswith(".ics") and ".unified." not in p.name for p in written)
    content = (tmp_path / "ABB2015-FS151-BSc-FST.ics").read_text(encoding="utf-8")
    assert "Info zu Praxis" not in content


def test_event_uid_is_stable():
    element = ScheduleElement("Mathe", FS151, start=datetime(2016, 3, 7, 8, 0))
    first = build_event(element)
    second = build_event(ScheduleElement("Mathe", FS151, start=datetime(2016, 3, 7, 8, 0)))
    assert first["uid"] == second["uid"]
    other = build_event(ScheduleElement("Mathe", FS151.with_subgroup("2"), start=datetime(2016, 3, 7, 8, 0)))
    assert other["uid"] != first["uid"]


def test_event_duration_and_timezone():
    element = ScheduleElement(
        "KL-Mathe", FS151, start=datetime(2016, 7, 4, 9, 0), duration=Fraction(3, 2), lecturer="Böhm"
    )
    event = build_event(element, tz_name="UTC")
    assert event.decoded("dtstart").hour == 9
    assert event.decoded("dtend").hour == 10
    assert event.decoded("dtend").minute == 30
    assert "Lecturer: Böhm" in str(event["description"])


def test_event_without_date():
    assert build_event(ScheduleElement.full_week_entry("ATIW", FS151)) is None


def test_export_json(tmp_path, store):
    out_path = tmp_path / "data.json"
    export_json(store, out_path)

    dump = json.loads(out_path.read_text(encoding="utf-8"))
    assert dump["json_data_version"] == "1.01"
    assert "generated" in dump
    fs151 = dump["data"]["ABB2015-FS151-BSc-FST"]
    assert len(fs151) == 4
    mathe = next(e for e in fs151 if e["title"] == "Mathe")
    assert mathe["start"] == "2016-03-07T08:00:00"
    assert mathe["lecturer"] == "Böhm"
    assert [e["title"] for e in dump["data"]["ABB2015"]] == ["Info zu Praxis"]


def test_export_json_pretty(tmp_path, store):
    out_path = tmp_path / "data.json"
    export_json(store, out_path, pretty=True)
    assert "\n  " in out_path.read_text(encoding="utf-8")


def test_export_classes(tmp_path, store):
    out_path = tmp_path / "classes.json"
    export_classes(store, out_path, ical_dir="ical", unified=True)

    dump = json.loads(out_path.read_text(encoding="utf-8"))
    assert dump["ical_dir"] == "ical"
    assert dump["unified"] is True
    assert set(dump["data"]) == {"ABB2015-FS151-BSc-FST", "ABB2015-FS152-BA-FIS"}
    fs151 = dump["data"]["ABB2015-FS151-BSc-FST"]
    assert fs151["name"] == "ABB2015 FS151+BSc (FST)"
    assert fs151["class"]["name"] == "FS151"
    assert fs151["parents"] == ["ABB2015"]
