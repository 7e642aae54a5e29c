"""Eligibility service for orchestrating rule evaluation against household profiles."""

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from eligibility_engine.config import settings
from eligibility_engine.core.exceptions import (
    ProfileNotFoundError,
    ProgramNotFoundError,
    RulesNotFoundError,
)
from eligibility_engine.models.schemas.eligibility import (
    BatchEligibilityResult,
    BatchSummary,
    CachedEligibilityResult,
    CriterionResult,
    EligibilityEvaluationOptions,
    EligibilityEvaluationResult,
)
from eligibility_engine.models.schemas.rule import RuleDefinition
from eligibility_engine.services.eligibility.context import build_data_context
from eligibility_engine.services.eligibility.criteria import CriteriaAnalyzer
from eligibility_engine.services.eligibility.scoring import ScoringEngine
from eligibility_engine.services.eligibility.store import EligibilityStore, ensure_utc
from eligibility_engine.services.rule_engine.ast import parse_rule
from eligibility_engine.services.rule_engine.base import EvaluationOptions, is_truthy
from eligibility_engine.services.rule_engine.engine import RuleEngine
from eligibility_engine.services.rule_engine.evaluators.data import is_missing_value, lookup

logger = logging.getLogger(__name__)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


class EligibilityService:
    """
    Eligibility service to orchestrate evaluation of programs for a household.

    This service:
    - Serves unexpired cached results unless re-evaluation is forced
    - Selects the highest-priority active rule of a program
    - Builds the data context and detects missing required fields
    - Runs the rule engine and scores confidence
    - Caches successful evaluations with a time-to-live
    - Evaluates many programs for one household without letting one failure
      abort the batch

    Public methods never raise for store or evaluation problems; they come
    back as error results.
    """

    def __init__(
        self,
        store: EligibilityStore,
        engine: Optional[RuleEngine] = None,
        cache_ttl_days: Optional[int] = None,
        batch_concurrency: Optional[int] = None,
    ):
        """
        Initialize the eligibility service.

        Args:
            store: Store collaborator for profiles, programs, rules and cache
            engine: Rule engine; defaults to standard + benefit operators
            cache_ttl_days: Default cache lifetime in days
            batch_concurrency: Default number of programs evaluated at once
        """
        self.store = store
        self.engine = engine or RuleEngine(
            options=EvaluationOptions(
                max_depth=settings.EVALUATION_MAX_DEPTH,
                step_budget=settings.EVALUATION_STEP_BUDGET,
                timeout_ms=settings.EVALUATION_TIMEOUT_MS,
            )
        )
        self.criteria = CriteriaAnalyzer(self.engine)
        self.cache_ttl_days = (
            settings.RESULT_CACHE_TTL_DAYS if cache_ttl_days is None else cache_ttl_days
        )
        self.batch_concurrency = batch_concurrency or settings.BATCH_CONCURRENCY

    async def evaluate_eligibility(
        self,
        profile_id: str,
        program_id: str,
        options: Optional[EligibilityEvaluationOptions] = None,
    ) -> EligibilityEvaluationResult:
        """
        Evaluate one program for one household profile.

        Steps:
        1. Return an unexpired cached result unless re-evaluation is forced
        2. Fetch profile, program and active rules; pick the highest priority rule
        3. Build the data context and find missing required fields
        4. Evaluate the rule and trace its criteria
        5. Score confidence, pick the reason and cache successful results

        Args:
            profile_id: Household profile ID
            program_id: Benefit program ID
            options: Evaluation options

        Returns:
            EligibilityEvaluationResult; store and evaluation failures are
            reported as a result with ``rule_id="error"``
        """
        options = options or EligibilityEvaluationOptions()
        started = time.perf_counter()

        try:
            if not options.force_re_evaluation:
                cached = await self._check_cache(profile_id, program_id)
                if cached is not None:
                    return cached.model_copy(update={"execution_time_ms": _elapsed_ms(started)})

            now = datetime.now(timezone.utc)
            profile, rule = await self._load_entities(profile_id, program_id, now)

            data = build_data_context(profile, now)
            result = self._evaluate_rule(profile_id, program_id, rule, data, now, options)
            result.execution_time_ms = _elapsed_ms(started)

            # Failed evaluations score zero and are never cached
            if options.cache_result and result.confidence > 0:
                ttl_days = (
                    self.cache_ttl_days if options.expires_in_days is None else options.expires_in_days
                )
                await self.store.insert_cache_entry(result, now + timedelta(days=ttl_days))

            return result

        except Exception as e:
            logger.error(
                f"Eligibility evaluation failed for profile {profile_id}, program {program_id}: {str(e)}",
                exc_info=True,
            )
            return self._error_result(profile_id, program_id, str(e), started)

    async def evaluate_multiple_programs(
        self,
        profile_id: str,
        program_ids: Sequence[str],
        options: Optional[EligibilityEvaluationOptions] = None,
    ) -> BatchEligibilityResult:
        """
        Evaluate several programs for one household profile.

        Programs run sequentially by default; with a concurrency above one
        they run in a bounded pool. Either way results keep the order of
        ``program_ids`` and a failing program never aborts the batch.

        Args:
            profile_id: Household profile ID
            program_ids: Programs to evaluate
            options: Evaluation options shared by every program

        Returns:
            BatchEligibilityResult with per-program results and summary counts
        """
        options = options or EligibilityEvaluationOptions()
        started = time.perf_counter()
        concurrency = options.concurrency or self.batch_concurrency

        if concurrency > 1:
            semaphore = asyncio.Semaphore(concurrency)

            async def bounded(program_id: str) -> EligibilityEvaluationResult:
                async with semaphore:
                    return await self._evaluate_isolated(profile_id, program_id, options)

            results = await asyncio.gather(*(bounded(program_id) for program_id in program_ids))
        else:
            results = []
            for program_id in program_ids:
                results.append(await self._evaluate_isolated(profile_id, program_id, options))

        program_results: Dict[str, EligibilityEvaluationResult] = {}
        for program_id, result in zip(program_ids, results):
            program_results[program_id] = result

        summary = self._summarize(program_results.values())
        total_time_ms = _elapsed_ms(started)
        logger.info(
            f"Batch evaluation for profile {profile_id}: {summary.total} programs, "
            f"{summary.eligible} eligible, {summary.ineligible} ineligible, "
            f"{summary.incomplete} incomplete, {summary.needs_review} need review "
            f"({total_time_ms}ms)"
        )
        return BatchEligibilityResult(
            profile_id=profile_id,
            program_results=program_results,
            summary=summary,
            total_time_ms=total_time_ms,
        )

    async def evaluate_all_programs(
        self,
        profile_id: str,
        options: Optional[EligibilityEvaluationOptions] = None,
    ) -> BatchEligibilityResult:
        """
        Evaluate every active program for one household profile.

        Returns:
            BatchEligibilityResult; empty when programs cannot be listed
        """
        try:
            programs = await self.store.find_active_programs()
        except Exception as e:
            logger.error(f"Failed to list active programs: {str(e)}", exc_info=True)
            return BatchEligibilityResult(profile_id=profile_id)

        return await self.evaluate_multiple_programs(
            profile_id, [program.id for program in programs], options
        )

    async def clear_cached_results(self, profile_id: str, program_id: Optional[str] = None) -> int:
        """
        Delete cached results for a profile.

        Args:
            profile_id: Household profile ID
            program_id: Only clear this program's entries when given

        Returns:
            Number of entries deleted; 0 when the store could not be reached
        """
        try:
            deleted = await self.store.delete_cached_results(profile_id, program_id)
        except Exception as e:
            logger.error(
                f"Failed to clear cached results for profile {profile_id}: {str(e)}",
                exc_info=True,
            )
            return 0
        logger.info(f"Cleared {deleted} cached result(s) for profile {profile_id}")
        return deleted

    async def get_cached_results(self, profile_id: str) -> List[CachedEligibilityResult]:
        """Every cached result for a profile, newest first; empty when the store fails."""
        try:
            results = await self.store.find_cached_results(profile_id)
        except Exception as e:
            logger.error(
                f"Failed to load cached results for profile {profile_id}: {str(e)}",
                exc_info=True,
            )
            return []
        return sorted(results, key=lambda r: ensure_utc(r.evaluated_at), reverse=True)

    # ==================== Internals ====================

    async def _check_cache(
        self, profile_id: str, program_id: str
    ) -> Optional[CachedEligibilityResult]:
        cached = await self.store.find_cached_result(profile_id, program_id)
        if cached is None:
            logger.debug(f"Cache miss for profile {profile_id}, program {program_id}")
            return None
        if datetime.now(timezone.utc) > ensure_utc(cached.expires_at):
            logger.debug(
                f"Cached result {cached.id} expired at {cached.expires_at.isoformat()}"
            )
            return None
        logger.debug(f"Cache hit for profile {profile_id}, program {program_id}")
        return cached

    async def _load_entities(self, profile_id: str, program_id: str, now: datetime):
        profile = await self.store.find_profile(profile_id)
        if profile is None:
            raise ProfileNotFoundError(profile_id)

        program = await self.store.find_program(program_id)
        if program is None:
            raise ProgramNotFoundError(program_id)

        rules = await self.store.find_active_rules_by_program(program_id, now)
        if not rules:
            logger.warning(f"Program {program_id} has no active rules")
            raise RulesNotFoundError(program_id)

        # Stable sort: ties keep store order
        rule = sorted(rules, key=lambda r: r.priority, reverse=True)[0]
        logger.debug(
            f"Selected rule {rule.id} (priority {rule.priority}) of {len(rules)} "
            f"for program {program.name}"
        )
        return profile, rule

    def _evaluate_rule(
        self,
        profile_id: str,
        program_id: str,
        rule: RuleDefinition,
        data: Mapping[str, Any],
        now: datetime,
        options: EligibilityEvaluationOptions,
    ) -> EligibilityEvaluationResult:
        missing_fields = [
            field_name
            for field_name in rule.required_fields
            if is_missing_value(lookup(data, field_name))
        ]
        incomplete = bool(missing_fields)

        eval_options = EvaluationOptions(
            max_depth=self.engine.options.max_depth,
            step_budget=self.engine.options.step_budget,
            timeout_ms=self.engine.options.timeout_ms,
            now=now,
        )
        outcome = self.engine.evaluate(rule.rule_logic, data, eval_options)
        if not outcome.success:
            logger.warning(
                f"Rule {rule.id} failed to evaluate for profile {profile_id}: {outcome.error_message}"
            )

        eligible = outcome.success and is_truthy(outcome.result)
        criteria_results: Optional[List[CriterionResult]] = None
        if outcome.success:
            criteria_results = self.criteria.analyze(parse_rule(rule.rule_logic), data, eval_options)
            if not criteria_results and options.include_breakdown:
                criteria_results = self.criteria.breakdown_from_required_fields(
                    rule.required_fields, data
                )

        return EligibilityEvaluationResult(
            profile_id=profile_id,
            program_id=program_id,
            rule_id=rule.id,
            eligible=eligible,
            confidence=ScoringEngine.calculate_confidence(outcome.success, incomplete),
            reason=ScoringEngine.build_reason(
                outcome.success, incomplete, eligible, rule.explanation
            ),
            criteria_results=criteria_results or None,
            missing_fields=missing_fields or None,
            required_documents=rule.required_documents or None,
            next_steps=rule.next_steps or None,
            rule_version=rule.version,
            evaluated_at=now,
            incomplete=incomplete,
            needs_review=not outcome.success or incomplete,
        )

    async def _evaluate_isolated(
        self,
        profile_id: str,
        program_id: str,
        options: EligibilityEvaluationOptions,
    ) -> EligibilityEvaluationResult:
        started = time.perf_counter()
        try:
            return await self.evaluate_eligibility(profile_id, program_id, options)
        except Exception as e:
            logger.warning(
                f"Batch step for program {program_id} crashed: {str(e)}", exc_info=True
            )
            return self._error_result(profile_id, program_id, str(e), started)

    @staticmethod
    def _error_result(
        profile_id: str, program_id: str, message: str, started: float
    ) -> EligibilityEvaluationResult:
        return EligibilityEvaluationResult(
            profile_id=profile_id,
            program_id=program_id,
            rule_id="error",
            eligible=False,
            confidence=0,
            reason=message,
            evaluated_at=datetime.now(timezone.utc),
            execution_time_ms=_elapsed_ms(started),
            incomplete=True,
            needs_review=True,
        )

    @staticmethod
    def _summarize(results) -> BatchSummary:
        summary = BatchSummary()
        for result in results:
            summary.total += 1
            if result.eligible:
                summary.eligible += 1
            elif not result.incomplete:
                summary.ineligible += 1
            if result.incomplete:
                summary.incomplete += 1
            if result.needs_review:
                summary.needs_review += 1
        return summary
