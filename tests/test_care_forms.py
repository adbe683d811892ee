"""Tests for turning bedside forms into care-event rows."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from carelog.services.care_forms import build_care_event, parse_occurred_at
from carelog.services.errors import CareFormError

PATIENT_ID = uuid4()


def build(kind, form, **kwargs):
    return build_care_event(kind, form, patient_id=PATIENT_ID, created_by="nurse-1", **kwargs)


def test_liquids_form():
    row = build("liquids", {"liquid_type": "Water", "amount_ml": 200, "notes": "with straw"})
    assert row["type"] == "drink"
    assert row["volume_ml"] == 200.0
    assert row["notes"] == "Water - with straw"
    assert row["patient_id"] == PATIENT_ID
    assert row["created_by"] == "nurse-1"


def test_food_form_describes_meal():
    row = build("food", {"meal_type": "Lunch", "consumption_percent": 75, "description": "soup and rice"})
    assert row["type"] == "meal"
    assert row["consumption_percentage"] == 75
    assert row["meal_desc"] == "Lunch - 75% consumed - soup and rice"
    assert row["notes"] is None


def test_medication_form():
    row = build("medication", {"name": " Dipyrone ", "dosage": "500 mg", "route": "Oral"})
    assert row["type"] == "med"
    assert row["med_name"] == "Dipyrone"
    assert row["med_dose"] == "500 mg"
    assert row["med_route"] == "Oral"
    assert row["notes"] == "Route: Oral"


def test_drain_form_totals_both_sides():
    row = build(
        "drain",
        {
            "drain_type": "Abdominal",
            "left_ml": 100,
            "right_ml": 50,
            "left_aspect": "Serous",
            "right_aspect": "Bloody",
            "notes": "dressing changed",
        },
    )
    assert row["type"] == "drain"
    assert row["volume_ml"] == 150.0
    assert row["drain_left_ml"] == 100.0
    assert row["drain_right_ml"] == 50.0
    assert row["notes"] == (
        "Drain Abdominal - Total: 150ml (Left: 100ml, Right: 50ml) "
        "- Left: Serous, Right: Bloody - dressing changed"
    )


def test_drain_form_needs_some_output():
    with pytest.raises(CareFormError) as exc:
        build("drain", {"drain_type": "Thoracic", "left_ml": 0})
    assert "greater than zero" in exc.value.errors[0]


def test_bathroom_form_volume_optional():
    row = build("bathroom", {"bathroom_type": "Stool"})
    assert row["type"] == "bathroom"
    assert row["volume_ml"] is None

    row = build("bathroom", {"bathroom_type": "Urine", "volume_ml": 300})
    assert row["volume_ml"] == 300.0


def test_vitals_form_keeps_only_given_values():
    row = build("vitals", {"systolic_bp": 120, "diastolic_bp": 80, "temperature": 36.57})
    assert row["type"] == "vital_signs"
    assert row["systolic_bp"] == 120
    assert row["diastolic_bp"] == 80
    assert row["temperature"] == 36.6
    assert "heart_rate" not in row


def test_vitals_form_requires_a_value():
    with pytest.raises(CareFormError, match="At least one vital sign"):
        build("vitals", {"notes": "patient asleep"})


def test_vitals_diastolic_must_be_lower():
    with pytest.raises(CareFormError, match="diastolic_bp"):
        build("vitals", {"systolic_bp": 80, "diastolic_bp": 90})


def test_humor_form():
    row = build("humor", {"humor_scale": 4, "happiness_scale": 5, "humor_notes": "talked to family"})
    assert row["type"] == "humor"
    assert row["humor_scale"] == 4
    assert row["happiness_scale"] == 5
    assert row["humor_notes"] == "talked to family"


def test_schema_errors_are_all_reported():
    with pytest.raises(CareFormError) as exc:
        build("liquids", {"liquid_type": "Coffee", "amount_ml": -1})
    assert len(exc.value.errors) == 2


def test_unknown_form_kind():
    with pytest.raises(CareFormError, match="Unknown care form"):
        build("shower", {})


def test_occurred_at_defaults_to_now():
    before = datetime.now(timezone.utc)
    row = build("humor", {"humor_scale": 3, "happiness_scale": 3})
    assert row["occurred_at"] >= before


def test_occurred_at_is_normalised_to_utc():
    row = build("humor", {"humor_scale": 3, "happiness_scale": 3}, occurred_at="2024-03-01T10:30:00-03:00")
    assert row["occurred_at"] == datetime(2024, 3, 1, 13, 30, tzinfo=timezone.utc)


def test_parse_occurred_at():
    assert parse_occurred_at("2024-03-01T10:30:00Z") == datetime(2024, 3, 1, 10, 30, tzinfo=timezone.utc)
    assert parse_occurred_at(datetime(2024, 3, 1, 8, 0)).tzinfo is not None
    with pytest.raises(CareFormError, match="occurred_at"):
        parse_occurred_at("yesterday")


def test_form_kind_must_be_a_name():
    with pytest.raises(CareFormError, match="Unknown care form"):
        build(["liquids"], {"liquid_type": "Water", "amount_ml": 200})
