"""
Care-event forms: validation and normalisation into ``care_events`` rows.

Each bedside form (liquids, food, medication, drain, bathroom, vitals, humor)
is checked against its JSON schema, then against the rules a schema cannot
express, then folded into the column layout of ``CareEvent``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from carelog.models.database import as_utc, utcnow
from carelog.schemas.care_forms import CARE_FORM_SCHEMAS
from carelog.services.errors import CareFormError
from carelog.services.validation import validate_against_schema

logger = logging.getLogger(__name__)

VITAL_FIELDS = (
    "systolic_bp",
    "diastolic_bp",
    "heart_rate",
    "temperature",
    "oxygen_saturation",
    "respiratory_rate",
)


def _fmt(value: float | int) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _join(*parts: str | None) -> str:
    return " - ".join(p for p in parts if p)


def parse_occurred_at(value: Any) -> datetime:
    """Accept a datetime or an ISO-8601 string; default to now."""
    if value in (None, ""):
        return utcnow()
    if isinstance(value, datetime):
        return as_utc(value)
    try:
        return as_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        raise CareFormError([f"occurred_at: '{value}' is not an ISO-8601 date-time"]) from None


# ---------------------------------------------------------------------------
# Per-form builders (form is already schema-valid)
# ---------------------------------------------------------------------------


def _liquids(form: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "drink",
        "volume_ml": float(form["amount_ml"]),
        "notes": _join(form["liquid_type"], form.get("notes")),
    }


def _food(form: dict[str, Any]) -> dict[str, Any]:
    pct = int(form["consumption_percent"])
    return {
        "type": "meal",
        "consumption_percentage": pct,
        "meal_desc": _join(form["meal_type"], f"{pct}% consumed", form.get("description")),
        "notes": form.get("notes") or None,
    }


def _medication(form: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "med",
        "med_name": form["name"].strip(),
        "med_dose": form["dosage"].strip(),
        "med_route": form["route"],
        "notes": _join(f"Route: {form['route']}", form.get("notes")),
    }


def _drain(form: dict[str, Any]) -> dict[str, Any]:
    left = float(form.get("left_ml") or 0)
    right = float(form.get("right_ml") or 0)
    if left <= 0 and right <= 0:
        raise CareFormError(["At least one drain volume (left or right) must be greater than zero"])
    total = left + right

    aspects = []
    if form.get("left_aspect"):
        aspects.append(f"Left: {form['left_aspect']}")
    if form.get("right_aspect"):
        aspects.append(f"Right: {form['right_aspect']}")

    summary = (
        f"Drain {form['drain_type']} - Total: {_fmt(total)}ml "
        f"(Left: {_fmt(left)}ml, Right: {_fmt(right)}ml)"
    )
    return {
        "type": "drain",
        "drain_type": form["drain_type"],
        "drain_left_ml": left,
        "drain_right_ml": right,
        "volume_ml": total,
        "notes": _join(summary, ", ".join(aspects), form.get("notes")),
    }


def _bathroom(form: dict[str, Any]) -> dict[str, Any]:
    volume = form.get("volume_ml")
    return {
        "type": "bathroom",
        "bathroom_type": form["bathroom_type"],
        "volume_ml": float(volume) if volume else None,
        "notes": form.get("notes") or None,
    }


def _vitals(form: dict[str, Any]) -> dict[str, Any]:
    values = {f: form[f] for f in VITAL_FIELDS if form.get(f) is not None}
    if not values:
        raise CareFormError(["At least one vital sign must be provided"])
    systolic, diastolic = values.get("systolic_bp"), values.get("diastolic_bp")
    if systolic is not None and diastolic is not None and diastolic >= systolic:
        raise CareFormError(["diastolic_bp must be lower than systolic_bp"])
    if "temperature" in values:
        values["temperature"] = round(float(values["temperature"]), 1)
    return {"type": "vital_signs", **values, "notes": form.get("notes") or None}


def _humor(form: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "humor",
        "humor_scale": form["humor_scale"],
        "happiness_scale": form["happiness_scale"],
        "humor_notes": form.get("humor_notes") or None,
        "notes": form.get("notes") or None,
    }


_BUILDERS = {
    "liquids": _liquids,
    "food": _food,
    "medication": _medication,
    "drain": _drain,
    "bathroom": _bathroom,
    "vitals": _vitals,
    "humor": _humor,
}


def build_care_event(
    kind: str,
    form: dict[str, Any],
    *,
    patient_id: Any,
    created_by: str,
    occurred_at: Any = None,
) -> dict[str, Any]:
    """
    Validate one submitted form and return the ``CareEvent`` column values.
    Raises CareFormError listing every problem found.
    """
    if not isinstance(kind, str) or kind not in _BUILDERS:
        raise CareFormError(
            [f"Unknown care form '{kind}'; expected one of: {', '.join(_BUILDERS)}"]
        )

    errors = validate_against_schema(form, CARE_FORM_SCHEMAS[kind])
    if errors:
        raise CareFormError(errors)

    row = _BUILDERS[kind](form)
    row.update(
        patient_id=patient_id,
        occurred_at=parse_occurred_at(occurred_at),
        created_by=created_by,
    )
    logger.info("Built %s care event for patient %s", row["type"], patient_id)
    return row
