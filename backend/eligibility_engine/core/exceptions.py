"""Typed exceptions raised inside the eligibility engine."""

from typing import Any, Dict, Optional

from eligibility_engine.core.enums import EvaluationErrorCode


class EligibilityEngineError(Exception):
    """Base exception for engine failures."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for API responses and cached error payloads."""
        return {"code": self.code, "message": self.message, "details": self.details}


class EvaluationError(EligibilityEngineError):
    """A rule could not be evaluated against a data context."""

    def __init__(
        self,
        message: str,
        code: EvaluationErrorCode = EvaluationErrorCode.OPERATOR_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code.value, message, details)
        self.error_code = code


class RuleParseError(EvaluationError):
    """A rule is not a well-formed expression tree."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, EvaluationErrorCode.INVALID_RULE, details)


class CircularReferenceError(RuleParseError):
    """The same container object was reached twice while walking a rule."""

    def __init__(self, message: str = "Rule contains circular reference"):
        super().__init__(message)


class NotFoundError(EligibilityEngineError):
    """A record the pipeline depends on is missing from the store."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class ProfileNotFoundError(NotFoundError):
    def __init__(self, profile_id: str):
        super().__init__(f"Profile {profile_id} not found", {"profile_id": profile_id})


class ProgramNotFoundError(NotFoundError):
    def __init__(self, program_id: str):
        super().__init__(f"Program {program_id} not found", {"program_id": program_id})


class RulesNotFoundError(NotFoundError):
    def __init__(self, program_id: str):
        super().__init__(
            f"No active rules found for program {program_id}",
            {"program_id": program_id},
        )
