"""Repository for benefit programs and their eligibility rules."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from eligibility_engine.models.domain.program import BenefitProgram, EligibilityRule
from eligibility_engine.repositories.base import BaseRepository


class ProgramRepository(BaseRepository[BenefitProgram]):
    """
    Repository for benefit programs.

    Also serves the rules of a program, since rules are only ever read
    through their program.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the program repository.

        Args:
            db: Async database session
        """
        super().__init__(BenefitProgram, db)

    async def get_active_programs(self) -> List[BenefitProgram]:
        """
        Get all active programs ordered by name.

        Returns:
            List of active BenefitProgram instances
        """
        stmt = (
            select(BenefitProgram)
            .where(BenefitProgram.active.is_(True))
            .order_by(BenefitProgram.name, BenefitProgram.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_active_rules(
        self,
        program_id: str,
        as_of: Optional[datetime] = None,
    ) -> List[EligibilityRule]:
        """
        Get active rules for a program that are in effect.

        A rule is in effect when its effective date (if any) has passed and its
        expiration date (if any) has not.

        Args:
            program_id: ID of the benefit program
            as_of: Point in time to check effective dates against (defaults to now)

        Returns:
            Rules ordered by priority descending, then creation order
        """
        stmt = select(EligibilityRule).where(
            EligibilityRule.program_id == program_id,
            EligibilityRule.active.is_(True),
        )
        if as_of is not None:
            stmt = stmt.where(
                or_(EligibilityRule.effective_date.is_(None), EligibilityRule.effective_date <= as_of),
                or_(EligibilityRule.expiration_date.is_(None), EligibilityRule.expiration_date > as_of),
            )
        stmt = stmt.order_by(EligibilityRule.priority.desc(), EligibilityRule.created_at)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def add_rule(self, program_id: str, **kwargs) -> EligibilityRule:
        """
        Create a rule for a program.

        Args:
            program_id: ID of the benefit program
            **kwargs: Rule fields

        Returns:
            Created EligibilityRule
        """
        rule = EligibilityRule(program_id=program_id, **kwargs)
        self.db.add(rule)
        await self.db.flush()
        await self.db.refresh(rule)
        return rule
