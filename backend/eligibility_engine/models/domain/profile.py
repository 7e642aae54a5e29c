"""Household profile domain model."""

from datetime import date
from typing import Optional

from sqlalchemy import Boolean, Date, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from eligibility_engine.core.enums import IncomePeriod
from eligibility_engine.db.base import BaseModel, JSONType


class HouseholdProfile(BaseModel):
    """Household data collected by the questionnaire."""

    __tablename__ = "household_profiles"

    # Demographics
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    citizenship: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    employment_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    has_disability: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    is_pregnant: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    has_children: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    # Household finances
    household_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    household_income: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    income_period: Mapped[str] = mapped_column(
        String(20), nullable=False, default=IncomePeriod.ANNUAL.value
    )

    # Location
    state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    county: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    # Free-form questionnaire answers (e.g. {"is_veteran": true})
    attributes: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    def __repr__(self) -> str:
        return (
            f"<HouseholdProfile(id={self.id}, size={self.household_size}, "
            f"state={self.state!r})>"
        )
