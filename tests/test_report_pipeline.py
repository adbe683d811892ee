"""Tests for the daily care report pipeline."""

import csv
import io
from datetime import datetime, timezone

import pytest

from carelog.reports.dag import PipelineError
from carelog.reports.pipeline import CSV_COLUMNS, build_patient_report, report_to_csv, round_half_up

PATIENT = {"id": "p-1", "full_name": "Maria Silva", "bed": "12B"}


def at(day, hour):
    return datetime(2024, 5, day, hour, 0, tzinfo=timezone.utc)


EVENTS = [
    {"type": "meal", "occurred_at": at(1, 8), "consumption_percentage": 50},
    {"type": "meal", "occurred_at": at(1, 12), "consumption_percentage": 100},
    {"type": "drink", "occurred_at": at(1, 9), "volume_ml": 200},
    {"type": "drink", "occurred_at": at(1, 15), "volume_ml": 150},
    {"type": "med", "occurred_at": at(1, 10)},
    {"type": "bathroom", "occurred_at": at(1, 11), "volume_ml": 300},
    {"type": "bathroom", "occurred_at": at(1, 18)},
    {"type": "drain", "occurred_at": at(1, 7), "volume_ml": 120},
    {"type": "humor", "occurred_at": at(1, 20), "humor_scale": 3},
    {"type": "humor", "occurred_at": at(1, 21), "humor_scale": 5},
    {"type": "vital_signs", "occurred_at": at(1, 6), "systolic_bp": 120, "diastolic_bp": 80, "temperature": 36.5},
    {"type": "vital_signs", "occurred_at": at(1, 14), "systolic_bp": 130, "heart_rate": 90, "temperature": 37.0},
    {"type": "note", "occurred_at": at(3, 9)},
]


@pytest.fixture
def report():
    return build_patient_report(PATIENT, EVENTS)


def test_days_are_sorted_and_only_days_with_events(report):
    assert [d["date"] for d in report["days"]] == ["2024-05-01", "2024-05-03"]
    assert report["period"] == {"start": "2024-05-01", "end": "2024-05-03"}
    assert report["patient"] == PATIENT


def test_daily_totals(report):
    day = report["days"][0]
    assert day["meal_percent"] == 75
    assert day["meal_count"] == 2
    assert day["liquids_ml"] == 350
    assert day["medication_count"] == 1
    assert day["bathroom_count"] == 2
    assert day["urine_ml"] == 300
    assert day["drains_ml"] == 120
    assert day["humor_score"] == 4
    assert day["humor_count"] == 2
    assert day["event_count"] == 12


def test_vitals_are_averaged_per_measure(report):
    vitals = report["days"][0]["vitals"]
    assert vitals["count"] == 2
    assert vitals["systolic_bp"] == 125
    assert vitals["diastolic_bp"] == 80
    assert vitals["heart_rate"] == 90
    assert vitals["temperature"] == 36.8
    assert vitals["oxygen_saturation"] is None


def test_series_skip_days_without_data(report):
    series = report["series"]
    assert [p["date"] for p in series["meals"]] == ["2024-05-01"]
    assert series["liquids"] == [{"date": "2024-05-01", "liquids_ml": 350}]
    assert len(series["vitals"]) == 1
    assert report["days"][1]["event_count"] == 1


def test_summary(report):
    assert report["summary"]["total_events"] == 13
    assert report["summary"]["days_monitored"] == 2
    assert report["summary"]["events_per_day"] == 7
    assert report["summary"]["last_care_at"].startswith("2024-05-03T09:00:00")


def test_naive_datetimes_are_read_as_utc():
    events = [{"type": "med", "occurred_at": datetime(2024, 5, 2, 23, 30)}]
    report = build_patient_report(PATIENT, events)
    assert report["days"][0]["date"] == "2024-05-02"


def test_empty_report():
    report = build_patient_report(PATIENT, [])
    assert report["days"] == []
    assert report["summary"]["events_per_day"] == 0
    assert report["summary"]["last_care_at"] is None
    assert report["period"] == {"start": None, "end": None}


def test_bad_event_raises_pipeline_error():
    with pytest.raises(PipelineError):
        build_patient_report(PATIENT, [{"type": "drink", "occurred_at": "not a datetime"}])


def test_csv_export(report):
    rows = list(csv.DictReader(io.StringIO(report_to_csv(report))))
    assert list(rows[0].keys()) == CSV_COLUMNS
    assert rows[0]["date"] == "2024-05-01"
    assert rows[0]["liquids_ml"] == "350.0"
    assert rows[0]["vitals_count"] == "2"
    assert rows[0]["systolic_bp"] == "125"
    assert rows[1]["systolic_bp"] == ""


def test_averages_round_halves_up():
    events = [
        {"type": "meal", "occurred_at": at(4, 8), "consumption_percentage": 50},
        {"type": "meal", "occurred_at": at(4, 12), "consumption_percentage": 75},
        {"type": "humor", "occurred_at": at(4, 9), "humor_scale": 2},
        {"type": "humor", "occurred_at": at(4, 10), "humor_scale": 3},
        {"type": "vital_signs", "occurred_at": at(4, 6), "heart_rate": 71, "temperature": 36.2},
        {"type": "vital_signs", "occurred_at": at(4, 14), "heart_rate": 72, "temperature": 36.3},
    ]
    day = build_patient_report(PATIENT, events)["days"][0]
    assert day["meal_percent"] == 63
    assert day["humor_score"] == 3
    assert day["vitals"]["heart_rate"] == 72
    assert day["vitals"]["temperature"] == 36.3


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(6.5) == 7
    assert round_half_up(6.49) == 6
    assert round_half_up(36.25, 1) == 36.3
    assert round_half_up(36.24, 1) == 36.2
