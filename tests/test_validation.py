"""Tests for JSON schema validation of the care forms."""

from carelog.schemas.care_forms import (
    DRAIN_FORM_SCHEMA,
    FOOD_FORM_SCHEMA,
    HUMOR_FORM_SCHEMA,
    LIQUIDS_FORM_SCHEMA,
)
from carelog.services.validation import validate_against_schema


def test_valid_liquids_form():
    errors = validate_against_schema({"liquid_type": "Water", "amount_ml": 200}, LIQUIDS_FORM_SCHEMA)
    assert errors == []


def test_missing_required_fields():
    errors = validate_against_schema({}, LIQUIDS_FORM_SCHEMA)
    assert any("liquid_type" in e for e in errors)
    assert any("amount_ml" in e for e in errors)


def test_errors_are_prefixed_with_field():
    errors = validate_against_schema({"liquid_type": "Coffee", "amount_ml": 0}, LIQUIDS_FORM_SCHEMA)
    assert len(errors) == 2
    assert errors[0].startswith("amount_ml: ")
    assert errors[1].startswith("liquid_type: ")


def test_unknown_fields_rejected():
    errors = validate_against_schema(
        {"liquid_type": "Tea", "amount_ml": 150, "sugar": True}, LIQUIDS_FORM_SCHEMA
    )
    assert len(errors) == 1
    assert "sugar" in errors[0]


def test_consumption_percent_bounds():
    assert validate_against_schema({"meal_type": "Lunch", "consumption_percent": 0}, FOOD_FORM_SCHEMA)
    assert validate_against_schema({"meal_type": "Lunch", "consumption_percent": 101}, FOOD_FORM_SCHEMA)
    assert validate_against_schema({"meal_type": "Lunch", "consumption_percent": 100}, FOOD_FORM_SCHEMA) == []


def test_negative_drain_volume():
    errors = validate_against_schema({"drain_type": "Abdominal", "left_ml": -5}, DRAIN_FORM_SCHEMA)
    assert any(e.startswith("left_ml") for e in errors)


def test_humor_scale_range():
    errors = validate_against_schema({"humor_scale": 6, "happiness_scale": 0}, HUMOR_FORM_SCHEMA)
    assert len(errors) == 2
