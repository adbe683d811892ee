"""
Patient care report: daily aggregation of the care-event log for charts and
export.

    extract -> bucket_daily -> average -> series
                                       -> summary

Days are calendar days in UTC.
"""

from __future__ import annotations

import csv
import io
import logging
import math
from collections import defaultdict
from datetime import date, datetime
from typing import Any

from carelog.models.database import as_utc
from carelog.reports.dag import DAG

logger = logging.getLogger(__name__)

VITAL_MEASURES = (
    "systolic_bp",
    "diastolic_bp",
    "heart_rate",
    "temperature",
    "oxygen_saturation",
    "respiratory_rate",
)

EVENT_FIELDS = (
    "id",
    "type",
    "occurred_at",
    "volume_ml",
    "consumption_percentage",
    "humor_scale",
    *VITAL_MEASURES,
)

CSV_COLUMNS = [
    "date",
    "meal_percent",
    "meal_count",
    "medication_count",
    "bathroom_count",
    "liquids_ml",
    "drains_ml",
    "urine_ml",
    "humor_score",
    "humor_count",
    "vitals_count",
    *VITAL_MEASURES,
]


def round_half_up(value: float, digits: int = 0) -> float | int:
    """Halves round up (62.5 -> 63, 36.25 -> 36.3); the built-in round() goes to even."""
    if digits == 0:
        return math.floor(value + 0.5)
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def event_to_dict(event: Any) -> dict[str, Any]:
    """Accept a CareEvent row or a mapping and keep only what reports read."""
    if isinstance(event, dict):
        return {f: event.get(f) for f in EVENT_FIELDS}
    return {f: getattr(event, f, None) for f in EVENT_FIELDS}


def _empty_day() -> dict[str, Any]:
    return {
        "meal_percent_total": 0,
        "meal_count": 0,
        "medication_count": 0,
        "bathroom_count": 0,
        "liquids_ml": 0.0,
        "drains_ml": 0.0,
        "urine_ml": 0.0,
        "humor_total": 0,
        "humor_count": 0,
        "event_count": 0,
        "vital_totals": {m: 0.0 for m in VITAL_MEASURES},
        "vital_counts": {m: 0 for m in VITAL_MEASURES},
        "vitals_count": 0,
    }


# ---------------------------------------------------------------------------
# Pipeline steps
# ---------------------------------------------------------------------------


def extract(context: dict[str, Any]) -> dict[str, Any]:
    events = [event_to_dict(e) for e in context.get("events", [])]
    events = [e for e in events if e["occurred_at"] is not None]
    for e in events:
        e["occurred_at"] = as_utc(e["occurred_at"])
    events.sort(key=lambda e: e["occurred_at"])
    return {"events": events, "event_count": len(events)}


def bucket_daily(context: dict[str, Any]) -> dict[str, Any]:
    buckets: dict[date, dict[str, Any]] = defaultdict(_empty_day)

    for event in context["events"]:
        day = buckets[event["occurred_at"].date()]
        day["event_count"] += 1
        kind = event["type"]
        volume = event.get("volume_ml") or 0

        if kind == "meal":
            if event.get("consumption_percentage"):
                day["meal_percent_total"] += event["consumption_percentage"]
                day["meal_count"] += 1
        elif kind == "med":
            day["medication_count"] += 1
        elif kind == "drink":
            day["liquids_ml"] += volume
        elif kind == "drain":
            day["drains_ml"] += volume
        elif kind == "bathroom":
            day["bathroom_count"] += 1
            day["urine_ml"] += volume
        elif kind == "humor":
            if event.get("humor_scale"):
                day["humor_total"] += event["humor_scale"]
                day["humor_count"] += 1
        elif kind == "vital_signs":
            day["vitals_count"] += 1
            for measure in VITAL_MEASURES:
                if event.get(measure) is not None:
                    day["vital_totals"][measure] += event[measure]
                    day["vital_counts"][measure] += 1

    return {"buckets": dict(buckets)}


def average(context: dict[str, Any]) -> dict[str, Any]:
    days = []
    for day_date in sorted(context["buckets"]):
        raw = context["buckets"][day_date]
        vitals: dict[str, Any] = {"count": raw["vitals_count"]}
        for measure in VITAL_MEASURES:
            n = raw["vital_counts"][measure]
            if not n:
                vitals[measure] = None
            elif measure == "temperature":
                vitals[measure] = round_half_up(raw["vital_totals"][measure] / n, 1)
            else:
                vitals[measure] = round_half_up(raw["vital_totals"][measure] / n)

        days.append(
            {
                "date": day_date.isoformat(),
                "meal_percent": round_half_up(raw["meal_percent_total"] / raw["meal_count"]) if raw["meal_count"] else 0,
                "meal_count": raw["meal_count"],
                "medication_count": raw["medication_count"],
                "bathroom_count": raw["bathroom_count"],
                "liquids_ml": raw["liquids_ml"],
                "drains_ml": raw["drains_ml"],
                "urine_ml": raw["urine_ml"],
                "humor_score": round_half_up(raw["humor_total"] / raw["humor_count"]) if raw["humor_count"] else 0,
                "humor_count": raw["humor_count"],
                "event_count": raw["event_count"],
                "vitals": vitals,
            }
        )
    return {"days": days}


def series(context: dict[str, Any]) -> dict[str, Any]:
    """Chart series; each one keeps only the days that have data for it."""
    days = context["days"]
    return {
        "series": {
            "meals": [{"date": d["date"], "meal_percent": d["meal_percent"]} for d in days if d["meal_count"] > 0],
            "liquids": [{"date": d["date"], "liquids_ml": d["liquids_ml"]} for d in days if d["liquids_ml"] > 0],
            "drains": [{"date": d["date"], "drains_ml": d["drains_ml"]} for d in days if d["drains_ml"] > 0],
            "urine": [{"date": d["date"], "urine_ml": d["urine_ml"]} for d in days if d["urine_ml"] > 0],
            "humor": [{"date": d["date"], "humor_score": d["humor_score"]} for d in days if d["humor_score"] > 0],
            "vitals": [{"date": d["date"], **d["vitals"]} for d in days if d["vitals"]["count"] > 0],
        }
    }


def summary(context: dict[str, Any]) -> dict[str, Any]:
    days, events = context["days"], context["events"]
    last: datetime | None = events[-1]["occurred_at"] if events else None
    return {
        "summary": {
            "total_events": len(events),
            "days_monitored": len(days),
            "events_per_day": round_half_up(len(events) / len(days)) if days else 0,
            "last_care_at": last.isoformat() if last else None,
        },
        "period": {
            "start": days[0]["date"] if days else None,
            "end": days[-1]["date"] if days else None,
        },
    }


# ---------------------------------------------------------------------------
# Pipeline factory and entry points
# ---------------------------------------------------------------------------


def build_report_pipeline() -> DAG:
    dag = DAG("patient_report")
    dag.add_step("extract", extract)
    dag.add_step("bucket_daily", bucket_daily, depends_on=["extract"])
    dag.add_step("average", average, depends_on=["bucket_daily"])
    dag.add_step("series", series, depends_on=["average"])
    dag.add_step("summary", summary, depends_on=["average"])
    return dag


def build_patient_report(patient: dict[str, Any], events: list[Any]) -> dict[str, Any]:
    """Run the report pipeline for one patient; raises PipelineError on failure."""
    dag = build_report_pipeline()
    dag.run({"events": events})
    dag.raise_for_status()

    logger.info(
        "Report for patient %s: %d events over %d days",
        patient.get("id"),
        dag.output_of("extract")["event_count"],
        len(dag.output_of("average")["days"]),
    )
    return {
        "patient": patient,
        "period": dag.output_of("summary")["period"],
        "summary": dag.output_of("summary")["summary"],
        "days": dag.output_of("average")["days"],
        "series": dag.output_of("series")["series"],
    }


def report_to_csv(report: dict[str, Any]) -> str:
    """One row per day; vital columns hold the daily averages."""
    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=CSV_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    for day in report["days"]:
        row = {k: v for k, v in day.items() if k != "vitals"}
        row["vitals_count"] = day["vitals"]["count"]
        for measure in VITAL_MEASURES:
            value = day["vitals"][measure]
            row[measure] = "" if value is None else value
        writer.writerow(row)
    return out.getvalue()
