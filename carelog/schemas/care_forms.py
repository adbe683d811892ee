"""
JSON schemas for the bedside care forms.

One schema per form. The vocabularies (liquid types, routes, drain aspects...)
are the options offered by the nursing screens; anything else is rejected so
that reports can group on them.
"""

LIQUID_TYPES = ["Water", "Juice", "Tea", "Milk", "Soup", "Other"]
MEAL_TYPES = ["Breakfast", "Lunch", "Snack", "Dinner", "Other"]
MEDICATION_ROUTES = ["Oral", "Intravenous", "Intramuscular", "Topical", "Other"]
DRAIN_TYPES = ["Abdominal", "Thoracic", "Bladder", "Other"]
DRAIN_ASPECTS = ["Serous", "Bloody", "Purulent", "Clear"]
BATHROOM_TYPES = ["Urine", "Stool", "Both"]

_NOTES = {"type": "string", "maxLength": 2000}


def _form(title: str, required: list[str], properties: dict) -> dict:
    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "title": title,
        "type": "object",
        "required": required,
        "properties": {**properties, "notes": _NOTES},
        "additionalProperties": False,
    }


LIQUIDS_FORM_SCHEMA: dict = _form(
    "Liquid intake",
    ["liquid_type", "amount_ml"],
    {
        "liquid_type": {"type": "string", "enum": LIQUID_TYPES},
        "amount_ml": {"type": "number", "exclusiveMinimum": 0, "maximum": 5000},
    },
)

FOOD_FORM_SCHEMA: dict = _form(
    "Meal",
    ["meal_type", "consumption_percent"],
    {
        "meal_type": {"type": "string", "enum": MEAL_TYPES},
        "consumption_percent": {"type": "integer", "exclusiveMinimum": 0, "maximum": 100},
        "description": {"type": "string", "maxLength": 500},
    },
)

MEDICATION_FORM_SCHEMA: dict = _form(
    "Medication administration",
    ["name", "dosage", "route"],
    {
        "name": {"type": "string", "minLength": 1, "maxLength": 255},
        "dosage": {"type": "string", "minLength": 1, "maxLength": 128},
        "route": {"type": "string", "enum": MEDICATION_ROUTES},
    },
)

DRAIN_FORM_SCHEMA: dict = _form(
    "Drain output",
    ["drain_type"],
    {
        "drain_type": {"type": "string", "enum": DRAIN_TYPES},
        "left_ml": {"type": "number", "minimum": 0, "maximum": 5000},
        "right_ml": {"type": "number", "minimum": 0, "maximum": 5000},
        "left_aspect": {"type": "string", "enum": DRAIN_ASPECTS},
        "right_aspect": {"type": "string", "enum": DRAIN_ASPECTS},
    },
)

BATHROOM_FORM_SCHEMA: dict = _form(
    "Bathroom",
    ["bathroom_type"],
    {
        "bathroom_type": {"type": "string", "enum": BATHROOM_TYPES},
        "volume_ml": {"type": "number", "minimum": 0, "maximum": 5000},
    },
)

# Broad physiological bounds: typing errors are rejected, abnormal readings are not.
VITALS_FORM_SCHEMA: dict = _form(
    "Vital signs",
    [],
    {
        "systolic_bp": {"type": "integer", "minimum": 40, "maximum": 300},
        "diastolic_bp": {"type": "integer", "minimum": 20, "maximum": 200},
        "heart_rate": {"type": "integer", "minimum": 20, "maximum": 300},
        "temperature": {"type": "number", "minimum": 25, "maximum": 45},
        "oxygen_saturation": {"type": "integer", "minimum": 0, "maximum": 100},
        "respiratory_rate": {"type": "integer", "minimum": 1, "maximum": 80},
    },
)

HUMOR_FORM_SCHEMA: dict = _form(
    "Mood",
    ["humor_scale", "happiness_scale"],
    {
        "humor_scale": {"type": "integer", "minimum": 1, "maximum": 5},
        "happiness_scale": {"type": "integer", "minimum": 1, "maximum": 5},
        "humor_notes": {"type": "string", "maxLength": 1000},
    },
)

CARE_FORM_SCHEMAS: dict[str, dict] = {
    "liquids": LIQUIDS_FORM_SCHEMA,
    "food": FOOD_FORM_SCHEMA,
    "medication": MEDICATION_FORM_SCHEMA,
    "drain": DRAIN_FORM_SCHEMA,
    "bathroom": BATHROOM_FORM_SCHEMA,
    "vitals": VITALS_FORM_SCHEMA,
    "humor": HUMOR_FORM_SCHEMA,
}
