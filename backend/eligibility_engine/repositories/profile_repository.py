"""Repository for household profiles."""

from sqlalchemy.ext.asyncio import AsyncSession

from eligibility_engine.models.domain.profile import HouseholdProfile
from eligibility_engine.repositories.base import BaseRepository


class ProfileRepository(BaseRepository[HouseholdProfile]):
    """Repository for household profiles."""

    def __init__(self, db: AsyncSession):
        super().__init__(HouseholdProfile, db)
