"""Benefit program and eligibility rule domain models."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eligibility_engine.db.base import BaseModel, JSONType


class BenefitProgram(BaseModel):
    """Public-assistance program a household can be evaluated against."""

    __tablename__ = "benefit_programs"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    jurisdiction: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True
    )  # e.g., "US-FEDERAL", "US-GA"
    category: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True
    )  # e.g., "food", "healthcare", "housing"
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    # Relationships
    rules: Mapped[list["EligibilityRule"]] = relationship(
        "EligibilityRule",
        back_populates="program",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<BenefitProgram(id={self.id}, name={self.name!r}, active={self.active})>"


class EligibilityRule(BaseModel):
    """JSON-logic eligibility rule for a program."""

    __tablename__ = "eligibility_rules"

    # Foreign Key
    program_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("benefit_programs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Rule body, e.g. {"<=": [{"var": "household_income"}, 2888]}
    rule_logic: Mapped[Any] = mapped_column(JSONType, nullable=False)
    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Data and paperwork the rule depends on
    required_fields: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    required_documents: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    # [{"step": "Apply online", "url": "...", "priority": "high"}]
    next_steps: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    # Selection: the highest priority active rule in its effective window wins
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    effective_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    expiration_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    program: Mapped["BenefitProgram"] = relationship(
        "BenefitProgram",
        back_populates="rules",
    )

    def __repr__(self) -> str:
        return (
            f"<EligibilityRule(id={self.id}, program_id={self.program_id}, "
            f"priority={self.priority}, active={self.active})>"
        )
