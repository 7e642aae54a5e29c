"""Tests for the SQLAlchemy-backed store and repositories on SQLite."""

from datetime import date, datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from eligibility_engine.db.base import Base
from eligibility_engine.db.session import build_session_factory, normalize_database_url
from eligibility_engine.models.domain import (
    BenefitProgram,
    EligibilityResultRecord,
    EligibilityRule,
    HouseholdProfile,
)
from eligibility_engine.models.schemas.eligibility import EligibilityEvaluationResult
from eligibility_engine.repositories import ProgramRepository, ResultRepository
from eligibility_engine.services.eligibility import SqlAlchemyEligibilityStore
from eligibility_engine.services.eligibility_service import EligibilityService

NOW = datetime.now(timezone.utc)


@pytest_asyncio.fixture
async def session_factory():
    """Fresh in-memory database with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = build_session_factory(engine)
    async with factory() as session:
        session.add(
            HouseholdProfile(
                id="household-1",
                date_of_birth=date(1990, 3, 1),
                household_size=3,
                household_income=30000,
                state="GA",
                citizenship="us_citizen",
                attributes={"is_veteran": True},
            )
        )
        session.add(BenefitProgram(id="snap", name="SNAP", category="food"))
        session.add(BenefitProgram(id="liheap", name="LIHEAP", active=False))
        session.add_all(
            [
                EligibilityRule(
                    id="r-future",
                    program_id="snap",
                    rule_logic=False,
                    priority=20,
                    effective_date=NOW + timedelta(days=10),
                ),
                EligibilityRule(
                    id="r-expired",
                    program_id="snap",
                    rule_logic=False,
                    priority=15,
                    expiration_date=NOW - timedelta(days=1),
                ),
                EligibilityRule(
                    id="r-current",
                    program_id="snap",
                    rule_logic={
                        "snap_income_eligible": [
                            {"var": "household_income"},
                            {"var": "household_size"},
                        ]
                    },
                    explanation="Income is under the SNAP limit",
                    required_fields=["household_income", "household_size"],
                    next_steps=[{"step": "Apply online", "priority": "high"}],
                    priority=10,
                    version="2024.1",
                    effective_date=NOW - timedelta(days=30),
                ),
                EligibilityRule(id="r-low", program_id="snap", rule_logic=True, priority=1),
                EligibilityRule(
                    id="r-inactive", program_id="snap", rule_logic=True, priority=30, active=False
                ),
            ]
        )
        await session.commit()

    yield factory
    await engine.dispose()


@pytest.fixture
def store(session_factory):
    return SqlAlchemyEligibilityStore(session_factory)


def make_result(program_id="snap", evaluated_at=None, eligible=True):
    return EligibilityEvaluationResult(
        profile_id="household-1",
        program_id=program_id,
        rule_id="r-current",
        eligible=eligible,
        confidence=95,
        reason="Income is under the SNAP limit",
        evaluated_at=evaluated_at or NOW,
    )


class TestSqlAlchemyEligibilityStore:
    """Store lookups and cache writes."""

    @pytest.mark.asyncio
    async def test_find_profile(self, store):
        """Profiles convert to snapshots including attributes."""
        profile = await store.find_profile("household-1")

        assert profile.household_size == 3
        assert profile.state == "GA"
        assert profile.attributes == {"is_veteran": True}
        assert await store.find_profile("missing") is None

    @pytest.mark.asyncio
    async def test_find_program(self, store):
        """Programs convert to summaries."""
        program = await store.find_program("snap")

        assert program.name == "SNAP"
        assert program.category == "food"
        assert await store.find_program("missing") is None

    @pytest.mark.asyncio
    async def test_active_rules_respect_effective_window(self, store):
        """Only active rules in effect are returned, highest priority first."""
        rules = await store.find_active_rules_by_program("snap", NOW)

        assert [rule.id for rule in rules] == ["r-current", "r-low"]
        assert rules[0].next_steps[0].step == "Apply online"
        assert rules[0].required_fields == ["household_income", "household_size"]

    @pytest.mark.asyncio
    async def test_active_rules_without_date(self, store):
        """Without a point in time only the active flag filters."""
        rules = await store.find_active_rules_by_program("snap")

        assert [rule.id for rule in rules] == ["r-future", "r-expired", "r-current", "r-low"]

    @pytest.mark.asyncio
    async def test_find_active_programs(self, store):
        """Inactive programs are not listed."""
        programs = await store.find_active_programs()

        assert [program.id for program in programs] == ["snap"]

    @pytest.mark.asyncio
    async def test_cache_round_trip(self, store):
        """Inserted entries come back as the latest result with UTC timestamps."""
        entry = await store.insert_cache_entry(make_result(), NOW + timedelta(days=30))
        cached = await store.find_cached_result("household-1", "snap")

        assert cached.id == entry.id
        assert cached.eligible is True
        assert cached.expires_at.tzinfo is not None
        assert cached.expires_at > NOW
        assert await store.find_cached_result("household-1", "other") is None

    @pytest.mark.asyncio
    async def test_latest_entry_wins(self, store):
        """The newest evaluation is the current cache entry."""
        await store.insert_cache_entry(
            make_result(evaluated_at=NOW - timedelta(hours=1), eligible=False),
            NOW + timedelta(days=30),
        )
        await store.insert_cache_entry(make_result(), NOW + timedelta(days=30))

        cached = await store.find_cached_result("household-1", "snap")
        assert cached.eligible is True

        results = await store.find_cached_results("household-1")
        assert [r.eligible for r in results] == [True, False]

    @pytest.mark.asyncio
    async def test_delete_cached_results(self, store):
        """Deletion can be limited to one program."""
        await store.insert_cache_entry(make_result("snap"), NOW + timedelta(days=1))
        await store.insert_cache_entry(make_result("wic"), NOW + timedelta(days=1))

        assert await store.delete_cached_results("household-1", "wic") == 1
        assert await store.delete_cached_results("household-1") == 1
        assert await store.find_cached_results("household-1") == []


class TestRepositories:
    """Repository queries not exposed through the store."""

    @pytest.mark.asyncio
    async def test_delete_expired(self, session_factory, store):
        """Expired cache entries are purged."""
        await store.insert_cache_entry(make_result("snap"), NOW - timedelta(days=1))
        await store.insert_cache_entry(make_result("wic"), NOW + timedelta(days=1))

        async with session_factory() as session:
            deleted = await ResultRepository(session).delete_expired(NOW)
            await session.commit()

        assert deleted == 1
        remaining = await store.find_cached_results("household-1")
        assert [r.program_id for r in remaining] == ["wic"]

    @pytest.mark.asyncio
    async def test_add_rule(self, session_factory, store):
        """Rules added through the program repository are served."""
        async with session_factory() as session:
            rule = await ProgramRepository(session).add_rule(
                "snap", rule_logic={"==": [1, 1]}, priority=100
            )
            await session.commit()

        rules = await store.find_active_rules_by_program("snap", NOW)
        assert rules[0].id == rule.id

    @pytest.mark.asyncio
    async def test_base_repository_helpers(self, session_factory):
        """Generic helpers count and filter records."""
        async with session_factory() as session:
            repository = ResultRepository(session)
            await repository.create(
                profile_id="household-1",
                program_id="snap",
                rule_id="r-current",
                eligible=True,
                confidence=95,
                reason="ok",
                evaluated_at=NOW,
                expires_at=NOW + timedelta(days=1),
            )

            assert await repository.count() == 1
            assert len(await repository.find_by(program_id="snap")) == 1
            assert await repository.find_one_by(program_id="wic") is None


class TestPipelineWithDatabase:
    """The evaluation pipeline against the SQLAlchemy store."""

    @pytest.mark.asyncio
    async def test_evaluate_and_serve_from_cache(self, store):
        """An evaluation is persisted and served on the next call."""
        service = EligibilityService(store, cache_ttl_days=30)

        first = await service.evaluate_eligibility("household-1", "snap")
        second = await service.evaluate_eligibility("household-1", "snap")

        assert first.rule_id == "r-current"
        assert first.eligible is True
        assert first.confidence == 95
        assert first.reason == "Income is under the SNAP limit"
        assert second.reason == first.reason
        assert second.criteria_results[0].threshold == 2888
        assert len(await store.find_cached_results("household-1")) == 1

    @pytest.mark.asyncio
    async def test_evaluate_all_programs(self, store):
        """Only active programs are evaluated."""
        service = EligibilityService(store)

        batch = await service.evaluate_all_programs("household-1")

        assert list(batch.program_results) == ["snap"]
        assert batch.summary.eligible == 1


class TestDatabaseUrl:
    """Driver selection for configured database URLs."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("postgresql://u:p@db/elig", "postgresql+asyncpg://u:p@db/elig"),
            ("postgres://u:p@db/elig", "postgresql+asyncpg://u:p@db/elig"),
            ("postgresql+asyncpg://u:p@db/elig", "postgresql+asyncpg://u:p@db/elig"),
            ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
        ],
    )
    def test_normalize_database_url(self, url, expected):
        """Plain PostgreSQL URLs get the asyncpg driver."""
        assert normalize_database_url(url) == expected
