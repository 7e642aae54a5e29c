"""Pydantic schemas for household profiles."""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from eligibility_engine.core.enums import IncomePeriod


class HouseholdProfileSnapshot(BaseModel):
    """
    Point-in-time copy of a household profile used to build a data context.

    ``attributes`` carries free-form questionnaire answers that rules may
    reference directly (e.g. ``is_veteran``, ``has_health_insurance``).
    """

    id: str
    date_of_birth: Optional[date] = None
    household_size: Optional[int] = Field(default=None, ge=1)
    household_income: Optional[float] = Field(default=None, ge=0)
    income_period: IncomePeriod = IncomePeriod.ANNUAL
    state: Optional[str] = None
    county: Optional[str] = None
    zip_code: Optional[str] = None
    citizenship: Optional[str] = None
    employment_status: Optional[str] = None
    has_disability: Optional[bool] = None
    is_pregnant: Optional[bool] = None
    has_children: Optional[bool] = None
    attributes: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)
