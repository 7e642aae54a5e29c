"""Cached eligibility result domain model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from eligibility_engine.db.base import BaseModel, JSONType


class EligibilityResultRecord(BaseModel):
    """
    Cache entry for one (profile, program) evaluation.

    Entries are append-only: re-evaluating adds a newer row, and lookups read
    the newest row that has not expired.
    """

    __tablename__ = "eligibility_results"

    profile_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    program_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    rule_id: Mapped[str] = mapped_column(String(64), nullable=False)
    rule_version: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Determination
    eligible: Mapped[bool] = mapped_column(Boolean, nullable=False)
    confidence: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    incomplete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    needs_review: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Details
    criteria_results: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    missing_fields: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    required_documents: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    next_steps: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)

    # Timing
    evaluated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    execution_time_ms: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<EligibilityResultRecord(id={self.id}, profile_id={self.profile_id}, "
            f"program_id={self.program_id}, eligible={self.eligible})>"
        )
