from .base import BaseRepository
from .profile_repository import ProfileRepository
from .program_repository import ProgramRepository
from .result_repository import ResultRepository

__all__ = [
    "BaseRepository",
    "ProfileRepository",
    "ProgramRepository",
    "ResultRepository",
]
