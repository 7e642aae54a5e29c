"""Builds the data context a rule is evaluated against from a profile snapshot."""

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from eligibility_engine.core.enums import IncomePeriod
from eligibility_engine.models.schemas.profile import HouseholdProfileSnapshot
from eligibility_engine.services.rule_engine.base import is_number, round_half_up

logger = logging.getLogger(__name__)

STATE_CODES = {
    "alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR",
    "california": "CA", "colorado": "CO", "connecticut": "CT", "delaware": "DE",
    "district of columbia": "DC", "florida": "FL", "georgia": "GA", "hawaii": "HI",
    "idaho": "ID", "illinois": "IL", "indiana": "IN", "iowa": "IA",
    "kansas": "KS", "kentucky": "KY", "louisiana": "LA", "maine": "ME",
    "maryland": "MD", "massachusetts": "MA", "michigan": "MI", "minnesota": "MN",
    "mississippi": "MS", "missouri": "MO", "montana": "MT", "nebraska": "NE",
    "nevada": "NV", "new hampshire": "NH", "new jersey": "NJ", "new mexico": "NM",
    "new york": "NY", "north carolina": "NC", "north dakota": "ND", "ohio": "OH",
    "oklahoma": "OK", "oregon": "OR", "pennsylvania": "PA", "rhode island": "RI",
    "south carolina": "SC", "south dakota": "SD", "tennessee": "TN", "texas": "TX",
    "utah": "UT", "vermont": "VT", "virginia": "VA", "washington": "WA",
    "west virginia": "WV", "wisconsin": "WI", "wyoming": "WY",
}

MEDICAID_EXPANSION_STATES = frozenset(
    {
        "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "DC", "HI", "ID", "IL",
        "IN", "IA", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MO", "MT", "NV",
        "NH", "NJ", "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SD",
        "UT", "VT", "VA", "WA", "WV",
    }
)

_VALID_CODES = frozenset(STATE_CODES.values())


def normalize_state_code(state: Optional[str]) -> Optional[str]:
    """
    Normalize a state name or postal code to its two-letter code.

    Returns:
        Upper-case code, or None when the value is not a known US state
    """
    if not state:
        return None
    value = state.strip()
    if value.upper() in _VALID_CODES:
        return value.upper()
    return STATE_CODES.get(value.lower())


def calculate_age(born: date, today: date) -> int:
    """Whole years between ``born`` and ``today``."""
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def build_data_context(profile: HouseholdProfileSnapshot, now: datetime) -> Dict[str, Any]:
    """
    Flatten a profile into the key/value context rules read with ``var``.

    Derived fields:
    - ``_timestamp``: evaluation time in epoch milliseconds
    - ``age``: from ``date_of_birth``
    - ``household_income``: monthly figure (annual incomes divided by 12)
    - ``state_code``, ``lives_in_state``, ``state_has_expanded``: from ``state``

    Args:
        profile: Household profile snapshot
        now: Evaluation timestamp

    Returns:
        New dict; the profile is not modified
    """
    data: Dict[str, Any] = dict(profile.attributes)
    data.update(profile.model_dump(mode="json", exclude={"attributes"}))
    data["_timestamp"] = int(now.timestamp() * 1000)

    if profile.date_of_birth:
        data["age"] = calculate_age(profile.date_of_birth, now.date())

    income = profile.household_income
    if is_number(income) and income and profile.income_period != IncomePeriod.MONTHLY:
        data["household_income"] = round_half_up(income / 12)
        logger.debug(
            f"Converted annual income {income} to monthly {data['household_income']} "
            f"for profile {profile.id}"
        )

    if profile.state:
        state_code = normalize_state_code(profile.state)
        if state_code is None:
            logger.warning(f"Unknown state value {profile.state!r} on profile {profile.id}")
        data["state_code"] = state_code
        data["lives_in_state"] = True
        data["state_has_expanded"] = state_code in MEDICAID_EXPANSION_STATES

    return data
