"""Store collaborator used by the eligibility pipeline, with a SQLAlchemy adapter."""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from eligibility_engine.models.schemas.eligibility import (
    CachedEligibilityResult,
    EligibilityEvaluationResult,
)
from eligibility_engine.models.schemas.profile import HouseholdProfileSnapshot
from eligibility_engine.models.schemas.rule import ProgramSummary, RuleDefinition
from eligibility_engine.repositories.profile_repository import ProfileRepository
from eligibility_engine.repositories.program_repository import ProgramRepository
from eligibility_engine.repositories.result_repository import ResultRepository

logger = logging.getLogger(__name__)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class EligibilityStore(Protocol):
    """
    Read/write access the pipeline needs.

    Lookups return None (or an empty list) when nothing matches; they do not
    raise for missing records.
    """

    async def find_profile(self, profile_id: str) -> Optional[HouseholdProfileSnapshot]:
        ...

    async def find_program(self, program_id: str) -> Optional[ProgramSummary]:
        ...

    async def find_active_rules_by_program(
        self, program_id: str, as_of: Optional[datetime] = None
    ) -> List[RuleDefinition]:
        ...

    async def find_cached_result(
        self, profile_id: str, program_id: str
    ) -> Optional[CachedEligibilityResult]:
        ...

    async def insert_cache_entry(
        self, result: EligibilityEvaluationResult, expires_at: datetime
    ) -> CachedEligibilityResult:
        ...

    async def find_active_programs(self) -> List[ProgramSummary]:
        ...

    async def find_cached_results(self, profile_id: str) -> List[CachedEligibilityResult]:
        ...

    async def delete_cached_results(
        self, profile_id: str, program_id: Optional[str] = None
    ) -> int:
        ...


class SqlAlchemyEligibilityStore:
    """
    EligibilityStore backed by the async SQLAlchemy repositories.

    Every call opens its own short-lived session, so concurrent batch
    evaluations never share a session.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """
        Initialize the store.

        Args:
            session_factory: Factory producing async sessions
        """
        self.session_factory = session_factory

    async def find_profile(self, profile_id: str) -> Optional[HouseholdProfileSnapshot]:
        async with self.session_factory() as session:
            profile = await ProfileRepository(session).get_by_id(profile_id)
            if profile is None:
                return None
            return HouseholdProfileSnapshot.model_validate(profile)

    async def find_program(self, program_id: str) -> Optional[ProgramSummary]:
        async with self.session_factory() as session:
            program = await ProgramRepository(session).get_by_id(program_id)
            if program is None:
                return None
            return ProgramSummary.model_validate(program)

    async def find_active_rules_by_program(
        self, program_id: str, as_of: Optional[datetime] = None
    ) -> List[RuleDefinition]:
        """
        Active rules of a program in effect at ``as_of``.

        Returns:
            Rules ordered by priority descending
        """
        async with self.session_factory() as session:
            rules = await ProgramRepository(session).get_active_rules(program_id, as_of)
            return [RuleDefinition.model_validate(rule) for rule in rules]

    async def find_cached_result(
        self, profile_id: str, program_id: str
    ) -> Optional[CachedEligibilityResult]:
        async with self.session_factory() as session:
            record = await ResultRepository(session).get_latest(profile_id, program_id)
            if record is None:
                return None
            return self._to_cached(record)

    async def insert_cache_entry(
        self, result: EligibilityEvaluationResult, expires_at: datetime
    ) -> CachedEligibilityResult:
        """
        Append a cache entry; earlier entries for the pair are left in place.

        Args:
            result: Evaluation result to cache
            expires_at: When the entry stops being served

        Returns:
            The stored entry
        """
        payload = result.model_dump(mode="json")
        async with self.session_factory() as session:
            record = await ResultRepository(session).create(
                profile_id=result.profile_id,
                program_id=result.program_id,
                rule_id=result.rule_id,
                rule_version=result.rule_version,
                eligible=result.eligible,
                confidence=result.confidence,
                reason=result.reason,
                incomplete=result.incomplete,
                needs_review=result.needs_review,
                criteria_results=payload["criteria_results"],
                missing_fields=payload["missing_fields"],
                required_documents=payload["required_documents"],
                next_steps=payload["next_steps"],
                evaluated_at=result.evaluated_at,
                execution_time_ms=result.execution_time_ms,
                expires_at=expires_at,
            )
            cached = self._to_cached(record)
            await session.commit()
        logger.debug(
            f"Cached result {cached.id} for profile {result.profile_id}, "
            f"program {result.program_id} until {expires_at.isoformat()}"
        )
        return cached

    async def find_active_programs(self) -> List[ProgramSummary]:
        async with self.session_factory() as session:
            programs = await ProgramRepository(session).get_active_programs()
            return [ProgramSummary.model_validate(program) for program in programs]

    async def find_cached_results(self, profile_id: str) -> List[CachedEligibilityResult]:
        async with self.session_factory() as session:
            records = await ResultRepository(session).get_by_profile(profile_id)
            return [self._to_cached(record) for record in records]

    async def delete_cached_results(
        self, profile_id: str, program_id: Optional[str] = None
    ) -> int:
        async with self.session_factory() as session:
            deleted = await ResultRepository(session).delete_for_profile(profile_id, program_id)
            await session.commit()
            return deleted

    @staticmethod
    def _to_cached(record) -> CachedEligibilityResult:
        cached = CachedEligibilityResult.model_validate(record)
        return cached.model_copy(
            update={
                "evaluated_at": ensure_utc(cached.evaluated_at),
                "expires_at": ensure_utc(cached.expires_at),
            }
        )
