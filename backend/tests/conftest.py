"""Shared fixtures for the eligibility engine test suite."""

import os

# Settings are read at import time; point them at an in-memory database first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date, datetime, timezone
from typing import Dict, List, Optional

import pytest

from eligibility_engine.models.schemas.eligibility import (
    CachedEligibilityResult,
    EligibilityEvaluationResult,
    NextStep,
)
from eligibility_engine.models.schemas.profile import HouseholdProfileSnapshot
from eligibility_engine.models.schemas.rule import ProgramSummary, RuleDefinition
from eligibility_engine.services.eligibility_service import EligibilityService
from eligibility_engine.services.rule_engine import RuleEngine
from eligibility_engine.services.rule_engine.base import EvaluationOptions

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


class FakeStore:
    """In-memory EligibilityStore that records cache writes."""

    def __init__(self):
        self.profiles: Dict[str, HouseholdProfileSnapshot] = {}
        self.programs: Dict[str, ProgramSummary] = {}
        self.rules: Dict[str, List[RuleDefinition]] = {}
        self.cache: List[CachedEligibilityResult] = []
        self.failing_programs: set = set()
        self.rule_lookups = 0

    def add_profile(self, profile: HouseholdProfileSnapshot) -> None:
        self.profiles[profile.id] = profile

    def add_program(self, program_id: str, name: Optional[str] = None, active: bool = True) -> None:
        self.programs[program_id] = ProgramSummary(
            id=program_id, name=name or program_id.upper(), active=active
        )

    def add_rule(self, rule: RuleDefinition) -> None:
        self.rules.setdefault(rule.program_id, []).append(rule)

    async def find_profile(self, profile_id: str) -> Optional[HouseholdProfileSnapshot]:
        return self.profiles.get(profile_id)

    async def find_program(self, program_id: str) -> Optional[ProgramSummary]:
        if program_id in self.failing_programs:
            raise RuntimeError(f"store unavailable for {program_id}")
        return self.programs.get(program_id)

    async def find_active_rules_by_program(
        self, program_id: str, as_of: Optional[datetime] = None
    ) -> List[RuleDefinition]:
        self.rule_lookups += 1
        return [rule for rule in self.rules.get(program_id, []) if rule.active]

    async def find_cached_result(
        self, profile_id: str, program_id: str
    ) -> Optional[CachedEligibilityResult]:
        matches = [
            entry
            for entry in self.cache
            if entry.profile_id == profile_id and entry.program_id == program_id
        ]
        return matches[-1] if matches else None

    async def insert_cache_entry(
        self, result: EligibilityEvaluationResult, expires_at: datetime
    ) -> CachedEligibilityResult:
        entry = CachedEligibilityResult(
            **result.model_dump(), id=f"cache-{len(self.cache) + 1}", expires_at=expires_at
        )
        self.cache.append(entry)
        return entry

    async def find_active_programs(self) -> List[ProgramSummary]:
        return [program for program in self.programs.values() if program.active]

    async def find_cached_results(self, profile_id: str) -> List[CachedEligibilityResult]:
        return [entry for entry in self.cache if entry.profile_id == profile_id]

    async def delete_cached_results(self, profile_id: str, program_id: Optional[str] = None) -> int:
        keep = [
            entry
            for entry in self.cache
            if entry.profile_id != profile_id
            or (program_id is not None and entry.program_id != program_id)
        ]
        deleted = len(self.cache) - len(keep)
        self.cache = keep
        return deleted


@pytest.fixture
def engine():
    """Rule engine with a fixed evaluation timestamp."""
    return RuleEngine(options=EvaluationOptions(now=FIXED_NOW))


@pytest.fixture
def household():
    """Household of three with a monthly income under the SNAP limit."""
    return HouseholdProfileSnapshot(
        id="household-1",
        date_of_birth=date(1990, 3, 1),
        household_size=3,
        household_income=30000,
        state="Georgia",
        citizenship="us_citizen",
        has_children=True,
        attributes={"is_veteran": False},
    )


@pytest.fixture
def snap_rule():
    return RuleDefinition(
        id="snap-rule-1",
        program_id="snap",
        rule_logic={
            "and": [
                {"snap_income_eligible": [{"var": "household_income"}, {"var": "household_size"}]},
                {"==": [{"var": "citizenship"}, "us_citizen"]},
            ]
        },
        explanation="Your household income is within the SNAP limit",
        required_fields=["household_income", "household_size", "citizenship"],
        required_documents=["Proof of income"],
        next_steps=[NextStep(step="Apply online", url="https://example.org/snap", priority="high")],
        priority=10,
        version="2024.1",
    )


@pytest.fixture
def store(household, snap_rule):
    fake = FakeStore()
    fake.add_profile(household)
    fake.add_program("snap", "SNAP")
    fake.add_rule(snap_rule)
    return fake


@pytest.fixture
def service(store):
    return EligibilityService(store, cache_ttl_days=30)
