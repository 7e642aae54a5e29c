from .context import build_data_context, normalize_state_code
from .criteria import CriteriaAnalyzer
from .scoring import ScoringEngine
from .store import EligibilityStore, SqlAlchemyEligibilityStore

__all__ = [
    "CriteriaAnalyzer",
    "EligibilityStore",
    "ScoringEngine",
    "SqlAlchemyEligibilityStore",
    "build_data_context",
    "normalize_state_code",
]
