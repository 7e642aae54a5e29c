"""Repository for cached eligibility results."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from eligibility_engine.models.domain.result import EligibilityResultRecord
from eligibility_engine.repositories.base import BaseRepository


class ResultRepository(BaseRepository[EligibilityResultRecord]):
    """
    Repository for the eligibility result cache.

    Entries are append-only; the newest entry for a (profile, program) pair
    is the current one.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the result repository.

        Args:
            db: Async database session
        """
        super().__init__(EligibilityResultRecord, db)

    async def get_latest(
        self,
        profile_id: str,
        program_id: str,
    ) -> Optional[EligibilityResultRecord]:
        """
        Get the most recent cache entry for a profile and program.

        Returns:
            Newest entry by evaluation time, or None
        """
        stmt = (
            select(EligibilityResultRecord)
            .where(
                EligibilityResultRecord.profile_id == profile_id,
                EligibilityResultRecord.program_id == program_id,
            )
            .order_by(
                EligibilityResultRecord.evaluated_at.desc(),
                EligibilityResultRecord.created_at.desc(),
            )
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_profile(self, profile_id: str) -> List[EligibilityResultRecord]:
        """
        Get every cache entry for a profile, newest first.
        """
        stmt = (
            select(EligibilityResultRecord)
            .where(EligibilityResultRecord.profile_id == profile_id)
            .order_by(EligibilityResultRecord.evaluated_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def delete_for_profile(
        self,
        profile_id: str,
        program_id: Optional[str] = None,
    ) -> int:
        """
        Delete cache entries for a profile, optionally for one program only.

        Returns:
            Number of entries deleted
        """
        stmt = delete(EligibilityResultRecord).where(
            EligibilityResultRecord.profile_id == profile_id
        )
        if program_id is not None:
            stmt = stmt.where(EligibilityResultRecord.program_id == program_id)
        result = await self.db.execute(stmt)
        await self.db.flush()
        return result.rowcount or 0

    async def delete_expired(self, now: datetime) -> int:
        """
        Delete every entry that expired before ``now``.

        Returns:
            Number of entries deleted
        """
        stmt = delete(EligibilityResultRecord).where(EligibilityResultRecord.expires_at < now)
        result = await self.db.execute(stmt)
        await self.db.flush()
        return result.rowcount or 0
