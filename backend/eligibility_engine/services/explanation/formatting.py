"""Formatting helpers shared by criteria tracing and explanations."""

import json
import re
from typing import Any

from eligibility_engine.services.rule_engine.base import is_number, normalize_number, round_half_up


class _Missing:
    """Marker for a value that was never provided (as opposed to null)."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()

FIELD_LABELS = {
    # Demographics
    "age": "your age",
    "date_of_birth": "your date of birth",
    "is_pregnant": "pregnancy status",
    "has_children": "whether you have children",
    "has_qualifying_disability": "qualifying disability status",
    "is_citizen": "citizenship status",
    "citizenship": "citizenship status",
    "is_legal_resident": "legal residency status",
    # Financial
    "household_income": "your household's monthly income",
    "household_size": "your household size",
    "income": "your income",
    "gross_income": "your gross income",
    "net_income": "your net income",
    "monthly_income": "your monthly income",
    "annual_income": "your annual income",
    "assets": "your household assets",
    "liquid_assets": "your liquid assets",
    "vehicle_value": "your vehicle value",
    # Location
    "state": "your state of residence",
    "state_code": "your state of residence",
    "lives_in_state": "your state of residence",
    "state_has_expanded": "whether your state has expanded coverage",
    "zip_code": "your ZIP code",
    "county": "your county",
    # Program-specific
    "has_health_insurance": "current health insurance coverage",
    "employment_status": "your employment status",
    "is_student": "student status",
    "is_veteran": "veteran status",
    "is_senior": "senior status (65+)",
    "has_minor_children": "whether you have children under 18",
    # Housing
    "housing_costs": "your housing costs",
    "rent_amount": "your monthly rent",
    "is_homeless": "housing situation",
    # Benefits
    "receives_ssi": "Supplemental Security Income (SSI)",
    "receives_snap": "SNAP benefits",
    "receives_tanf": "TANF benefits",
    "receives_wic": "WIC benefits",
}

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


def format_field_name(field_name: str) -> str:
    """
    Turn a context key into words a household member would recognize.

    Known keys use a fixed label; anything else goes from camelCase or
    snake_case to Title Case.
    """
    if field_name in FIELD_LABELS:
        return FIELD_LABELS[field_name]
    spaced = _CAMEL_BOUNDARY.sub(r"\1 \2", field_name).replace("_", " ")
    return " ".join(word[:1].upper() + word[1:] for word in spaced.split())


def format_number(value: Any) -> str:
    value = normalize_number(value)
    if isinstance(value, int):
        return f"{value:,}"
    return f"{value:,.2f}".rstrip("0").rstrip(".")


def format_currency(value: Any) -> str:
    """Whole-dollar currency, e.g. ``$2,292``."""
    amount = round_half_up(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,}"


def format_value(value: Any = MISSING) -> str:
    """
    Render a value for prose.

    Numbers above 100 are assumed to be money.
    """
    if value is MISSING:
        return "not provided"
    if value is None:
        return "empty"
    if isinstance(value, bool):
        return "yes" if value else "no"
    if is_number(value):
        if value > 100:
            return f"${format_number(value)}"
        return format_number(value) if value == value else "not a number"
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, (list, tuple)):
        return f"[{len(value)} items]"
    if isinstance(value, dict) and "var" in value:
        path = value["var"]
        if isinstance(path, list):
            path = path[0] if path else ""
        return format_field_name(str(path))
    return json.dumps(value, default=str)


def format_plain(value: Any) -> str:
    """Render a value without quoting, used inside criteria sentences."""
    if is_number(value):
        return format_currency(value) if value > 100 else format_number(value)
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, tuple)):
        return ", ".join(format_plain(item) for item in value)
    if value is None:
        return "empty"
    return str(value)
