"""Main orchestrator for prompt optimization."""

import asyncio
import logging
import math
from datetime import timedelta
from typing import Any, Optional, Union

from sqlalchemy.engine import Engine

from ...config import Settings, get_settings
from ..cache import CacheStore, MemoryCache
from ..database import create_db_engine
from ..exceptions import (
    DependencyUnavailable,
    InvalidTransition,
    NotFoundError,
    PromptsmithError,
    ValidationError,
)
from ..llm.registry import build_provider
from .analyzer import PromptAnalysis, analyze_prompt
from .builder import PromptBuilder
from .details import DetailParser
from .gateway import UNAVAILABLE_MESSAGE, AIGateway
from .intent import IntentEvaluator, build_allow_list
from .publishing import PromptPublisher, PublishRequest
from .questions import QuestionGenerator
from .rewriter import QuickRewriter, preview_rewrite
from .scoring import score_quality
from .store import NOT_FOUND_MESSAGE, OptimizationStore, SqlOptimizationStore
from .types import (
    AnalysisSummary,
    AnalyzeRequest,
    AnalyzeResult,
    ApplyRequest,
    BuildRequest,
    Feedback,
    FeedbackRequest,
    Optimization,
    OptimizationHistory,
    OptimizationStatus,
    OptimizationType,
    QuickOptimizeRequest,
    RequestT,
    parse_request,
)
from .validator import PromptValidationResult, pre_validate_prompt

logger = logging.getLogger(__name__)

# Allowed forward moves. Quick optimizations go straight from pending to completed
STATUS_TRANSITIONS: dict[OptimizationStatus, frozenset[OptimizationStatus]] = {
    "pending": frozenset({"analyzing", "completed", "failed"}),
    "analyzing": frozenset({"questions_ready", "failed"}),
    "questions_ready": frozenset({"building", "failed"}),
    "building": frozenset({"completed", "failed"}),
    "completed": frozenset(),
    "failed": frozenset(),
}

NOT_ACCEPTABLE_MESSAGE = "Prompt is not acceptable for optimization."
NO_ANALYSIS_MESSAGE = "No optimization found. Please analyze the prompt first."
NOT_APPLICABLE_MESSAGE = "Optimization not found or not completed."
MAX_HISTORY_LIMIT = 100


def ensure_transition(current: OptimizationStatus, target: OptimizationStatus) -> None:
    """Raise InvalidTransition unless ``current -> target`` is on the state graph."""
    if target not in STATUS_TRANSITIONS[current]:
        raise InvalidTransition(f"Cannot move optimization from '{current}' to '{target}'")


def advance(optimization: Optimization, target: OptimizationStatus) -> None:
    ensure_transition(optimization.status, target)
    optimization.status = target


def _summary(analysis: PromptAnalysis) -> AnalysisSummary:
    return AnalysisSummary(
        completeness_score=analysis.completeness_score,
        missing_elements=analysis.missing_elements,
        grammar_fixed=analysis.grammar_fixed,
        structure_improved=analysis.structure_improved,
    )


def _coerce(model: type[RequestT], request: Union[RequestT, dict[str, Any]]) -> RequestT:
    if isinstance(request, dict):
        return parse_request(model, request)
    return request


class OptimizationEngine:
    """Orchestrates quick and premium prompt optimization.

    Every public operation is an independent unit of work; records are
    only advanced along ``STATUS_TRANSITIONS``.
    """

    def __init__(
        self,
        store: OptimizationStore,
        gateway: AIGateway,
        question_cache: Optional[CacheStore] = None,
        analysis_cache: Optional[CacheStore] = None,
        publisher: Optional[PromptPublisher] = None,
    ):
        """
        Initialize optimization engine.

        Args:
            store: Persistence for optimization records
            gateway: AI gateway shared by every AI-assisted stage
            question_cache: Cache for generated question sets
            analysis_cache: Cache for quick-path AI rewrites
            publisher: Receives applied optimizations
        """
        self.store = store
        self.gateway = gateway
        self.publisher = publisher
        self.questions = QuestionGenerator(gateway, question_cache)
        self.details = DetailParser(gateway)
        self.builder = PromptBuilder(gateway)
        self.rewriter = QuickRewriter(gateway, analysis_cache)
        self.intent = IntentEvaluator()

    def _pre_validate(self, prompt: str) -> PromptValidationResult:
        result = pre_validate_prompt(prompt)
        if not result.is_acceptable:
            raise ValidationError(result.validation_message or NOT_ACCEPTABLE_MESSAGE)
        return result

    async def quick_optimize(
        self, user_id: str, request: Union[QuickOptimizeRequest, dict[str, Any]]
    ) -> Optimization:
        """
        Single-pass optimization.

        Uses the AI rewrite when available and falls back to local rules on
        any technical AI failure. An AI verdict that the prompt is invalid
        is raised as ValidationError.

        Args:
            user_id: Owner of the record
            request: Prompt, target model and media type

        Returns:
            The completed quick optimization
        """
        request = _coerce(QuickOptimizeRequest, request)
        prompt = request.original_prompt
        validation = self._pre_validate(prompt)
        analysis = analyze_prompt(prompt, request.media_type)

        rewrite = await self.rewriter.rewrite(
            prompt, request.target_model, request.media_type, analysis
        )

        quality, metadata = score_quality(
            prompt,
            rewrite.optimized_prompt,
            request.media_type,
            "quick",
            used_ai=rewrite.used_ai,
            ai_score=rewrite.quality_score,
            reported_improvements=rewrite.improvements,
            validation_message=rewrite.validation_message or validation.validation_message,
        )

        optimization = Optimization(
            user_id=user_id,
            original_prompt=prompt,
            optimized_prompt=rewrite.optimized_prompt,
            target_model=request.target_model,
            media_type=request.media_type,
            optimization_type="quick",
            optimization_mode="complete",
            quality_score=quality,
            metadata=metadata,
            analysis=_summary(analysis),
        )
        advance(optimization, "completed")
        self.store.create(optimization)

        logger.info(
            f"Quick optimization {optimization.id} completed for user {user_id} "
            f"(ai={rewrite.used_ai}, score {quality.before} -> {quality.after})"
        )
        return optimization

    async def analyze(
        self, user_id: str, request: Union[AnalyzeRequest, dict[str, Any]]
    ) -> AnalyzeResult:
        """
        Premium step one: analyze the prompt and produce clarifying questions.

        The record is stored as ``questions_ready`` with a lightweight
        rule-based rewrite as its provisional optimized prompt.
        """
        request = _coerce(AnalyzeRequest, request)
        prompt = request.original_prompt
        self._pre_validate(prompt)
        analysis = analyze_prompt(prompt, request.media_type)

        question_set = await self.questions.generate(
            prompt, request.media_type, request.target_model
        )
        quick_optimized = preview_rewrite(prompt, analysis)

        optimization = Optimization(
            user_id=user_id,
            original_prompt=prompt,
            optimized_prompt=quick_optimized,
            target_model=request.target_model,
            media_type=request.media_type,
            optimization_type="premium",
            optimization_mode="analyze",
            questions=[
                question.model_copy(update={"answered": False, "answer": None})
                for question in question_set.questions
            ],
            analysis=_summary(analysis),
        )
        advance(optimization, "analyzing")
        advance(optimization, "questions_ready")
        self.store.create(optimization)

        logger.info(
            f"Premium analysis {optimization.id}: {len(question_set.questions)} "
            f"{question_set.source} questions"
        )
        return AnalyzeResult(
            optimization=optimization,
            questions=question_set.questions,
            additional_details_field=question_set.additional_details_field,
            quick_optimized=quick_optimized,
        )

    async def build(
        self, user_id: str, request: Union[BuildRequest, dict[str, Any]]
    ) -> Optimization:
        """
        Premium step two: build the optimized prompt from answers and details.

        The latest matching ``questions_ready`` record is claimed atomically
        (moved to ``building``). Any failure or cancellation after the claim
        marks it ``failed`` and re-raises; it is not retried.

        Args:
            user_id: Owner of the record
            request: The analyzed prompt plus answers and additional details

        Returns:
            The completed premium optimization

        Raises:
            DependencyUnavailable: AI not configured (the store is untouched)
            NotFoundError: No analyzed record matches the request
            InvalidTransition: Another build claimed the record first
        """
        request = _coerce(BuildRequest, request)
        if not self.gateway.is_available:
            raise DependencyUnavailable(UNAVAILABLE_MESSAGE)

        optimization = self.store.find_latest(
            user_id,
            request.original_prompt,
            request.target_model,
            request.media_type,
            "premium",
            "questions_ready",
        )
        if optimization is None:
            raise NotFoundError(NO_ANALYSIS_MESSAGE)

        advance(optimization, "building")
        optimization.optimization_mode = "build"
        if not self.store.update_if_status(optimization, "questions_ready"):
            raise InvalidTransition("Optimization is already being built.")

        try:
            await self._build_claimed(optimization, request)
        except (Exception, asyncio.CancelledError) as e:
            self._mark_failed(optimization, e)
            raise

        if not self.store.update_if_status(optimization, "building"):
            raise InvalidTransition("Optimization changed while it was being built.")

        logger.info(
            f"Premium optimization {optimization.id} completed "
            f"(intent preserved: {optimization.quality_score.intent_preserved})"
        )
        return optimization

    async def _build_claimed(self, optimization: Optimization, request: BuildRequest) -> None:
        details = request.additional_details or None

        parsed_details = await self.details.parse(details or "", request.media_type)
        optimized = await self.builder.build(
            request.original_prompt,
            request.answers,
            details,
            request.target_model,
            parsed_details=parsed_details,
            media_type=request.media_type,
        )

        allow_list = build_allow_list(request.original_prompt, request.answers, details)
        intent = self.intent.evaluate(optimized, allow_list)
        quality, metadata = score_quality(
            request.original_prompt,
            optimized,
            request.media_type,
            "premium",
            answers=request.answers,
            additional_details=details,
            intent=intent,
        )

        for question in optimization.questions:
            answer = request.answers.get(question.id)
            if answer is not None:
                question.answered = True
                question.answer = answer

        optimization.optimized_prompt = optimized
        optimization.user_answers = dict(request.answers)
        optimization.additional_details = details
        optimization.parsed_details = parsed_details
        optimization.quality_score = quality
        optimization.metadata = metadata
        optimization.optimization_mode = "complete"
        advance(optimization, "completed")

    def _mark_failed(self, optimization: Optimization, error: BaseException) -> None:
        message = str(error) or type(error).__name__
        logger.error(
            f"Failed to build optimization {optimization.id}: {message}",
            exc_info=not isinstance(error, asyncio.CancelledError),
        )
        advance(optimization, "failed")
        optimization.error = message
        self.store.update_if_status(optimization, "building")

    def get_optimization(self, optimization_id: str, user_id: str) -> Optimization:
        optimization = self.store.get(optimization_id, user_id)
        if optimization is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        return optimization

    def list_history(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 20,
        target_model: Optional[str] = None,
        optimization_type: Optional[OptimizationType] = None,
    ) -> OptimizationHistory:
        """Completed optimizations, newest first, with summary stats."""
        if page < 1:
            raise ValidationError("page: must be at least 1")
        if not 1 <= limit <= MAX_HISTORY_LIMIT:
            raise ValidationError(f"limit: must be between 1 and {MAX_HISTORY_LIMIT}")

        optimizations, total, stats = self.store.list_completed(
            user_id,
            page=page,
            limit=limit,
            target_model=target_model,
            optimization_type=optimization_type,
        )
        return OptimizationHistory(
            optimizations=optimizations,
            total=total,
            page=page,
            total_pages=math.ceil(total / limit),
            limit=limit,
            stats=stats,
        )

    def delete_optimization(self, optimization_id: str, user_id: str) -> None:
        if not self.store.delete(optimization_id, user_id):
            raise NotFoundError(NOT_FOUND_MESSAGE)
        logger.info(f"Deleted optimization {optimization_id}")

    def submit_feedback(
        self,
        optimization_id: str,
        user_id: str,
        feedback: Union[FeedbackRequest, dict[str, Any]],
    ) -> Optimization:
        feedback = _coerce(FeedbackRequest, feedback)
        optimization = self.get_optimization(optimization_id, user_id)
        optimization.feedback = Feedback(
            rating=feedback.rating,
            was_helpful=feedback.was_helpful,
            comments=feedback.comments,
        )
        return self.store.save(optimization)

    async def apply_optimization(
        self,
        user_id: str,
        optimization_id: str,
        request: Union[ApplyRequest, dict[str, Any]],
    ) -> Any:
        """
        Publish a completed optimization as a prompt.

        With ``outputs`` every output needs content. Without them, image
        optimizations need an image URL and everything else a sample output.

        Returns:
            Whatever the publisher returns for the created prompt
        """
        request = _coerce(ApplyRequest, request)
        if self.publisher is None:
            raise PromptsmithError("Publishing is not configured.")

        optimization = self.store.get(optimization_id, user_id)
        if optimization is None or optimization.status != "completed":
            raise NotFoundError(NOT_APPLICABLE_MESSAGE)
        if not optimization.optimized_prompt:
            raise ValidationError("Optimized prompt not available.")

        if request.outputs:
            if any(not output.content.strip() for output in request.outputs):
                raise ValidationError("All outputs must have content.")
            sample_output = request.outputs[0].content
        elif optimization.media_type == "image":
            if not request.image_url:
                raise ValidationError("Image is required for image media type.")
            sample_output = request.image_url
        else:
            if not (request.sample_output or "").strip():
                raise ValidationError("Sample output is required for non-image media types.")
            sample_output = request.sample_output

        publish_request = PublishRequest(
            user_id=user_id,
            optimization_id=optimization.id,
            title=request.title,
            description=request.description,
            optimized_prompt=optimization.optimized_prompt,
            original_prompt=optimization.original_prompt,
            media_type=optimization.media_type,
            target_model=optimization.target_model,
            tags=request.tags,
            is_public=request.is_public,
            sample_output=sample_output,
            image_url=request.image_url,
            outputs=request.outputs,
        )
        return await self.publisher.publish(publish_request)


def create_engine_from_settings(
    settings: Optional[Settings] = None,
    db_engine: Optional[Engine] = None,
    publisher: Optional[PromptPublisher] = None,
) -> OptimizationEngine:
    """
    Wire an OptimizationEngine from configuration.

    Args:
        settings: Settings to read (defaults to the shared instance)
        db_engine: SQLAlchemy engine (defaults to one built from DATABASE_URL)
        publisher: Receives applied optimizations

    Returns:
        Configured OptimizationEngine
    """
    settings = settings or get_settings()
    provider, model = build_provider(settings)

    gateway = AIGateway(
        provider,
        model,
        temperature=settings.optimization_temperature,
        max_tokens=settings.optimization_max_tokens,
        timeout_seconds=settings.ai_request_timeout_seconds,
        max_attempts=settings.ai_max_attempts,
    )
    store = SqlOptimizationStore(db_engine or create_db_engine(settings.database_url))
    store.create_all()

    return OptimizationEngine(
        store,
        gateway,
        question_cache=MemoryCache(
            ttl=timedelta(seconds=settings.question_cache_ttl_seconds),
            max_entries=settings.question_cache_max_entries,
        ),
        analysis_cache=MemoryCache(
            ttl=timedelta(seconds=settings.analysis_cache_ttl_seconds),
            max_entries=settings.analysis_cache_max_entries,
        ),
        publisher=publisher,
    )
