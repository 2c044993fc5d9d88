"""Prompt optimization pipeline.

Quick optimization rewrites a prompt in one pass (AI when configured, local
rules otherwise). Premium optimization is two steps: ``analyze`` produces
clarifying questions, ``build`` turns the answers into an intent-preserving
prompt.

Example usage:
    from promptsmith.core.optimizer import create_engine_from_settings

    engine = create_engine_from_settings()

    # Quick
    result = await engine.quick_optimize(
        "user-1",
        {"original_prompt": "draw me a cat", "target_model": "dall-e-3", "media_type": "image"},
    )
    print(result.optimized_prompt, result.quality_score)

    # Premium
    analysis = await engine.analyze("user-1", {...})
    for question in analysis.questions:
        print(question.question)
    built = await engine.build("user-1", {..., "answers": {"style": {"type": "option", "value": "watercolor"}}})
"""

from .engine import (
    STATUS_TRANSITIONS,
    OptimizationEngine,
    create_engine_from_settings,
    ensure_transition,
)
from .gateway import AIGateway
from .publishing import InMemoryPublisher, PromptPublisher, PublishRequest
from .store import OptimizationStore, SqlOptimizationStore
from .types import (
    AnalyzeRequest,
    AnalyzeResult,
    ApplyRequest,
    BuildRequest,
    FeedbackRequest,
    Optimization,
    OptimizationHistory,
    QualityScore,
    Question,
    QuickOptimizeRequest,
    UserAnswer,
)
from .validator import PromptValidationResult, pre_validate_prompt
from .analyzer import PromptAnalysis, analyze_prompt

__all__ = [
    # Main engine
    "OptimizationEngine",
    "create_engine_from_settings",
    "STATUS_TRANSITIONS",
    "ensure_transition",
    # Collaborators
    "AIGateway",
    "OptimizationStore",
    "SqlOptimizationStore",
    "PromptPublisher",
    "PublishRequest",
    "InMemoryPublisher",
    # Stages
    "pre_validate_prompt",
    "PromptValidationResult",
    "analyze_prompt",
    "PromptAnalysis",
    # Types
    "AnalyzeRequest",
    "AnalyzeResult",
    "ApplyRequest",
    "BuildRequest",
    "FeedbackRequest",
    "Optimization",
    "OptimizationHistory",
    "QualityScore",
    "Question",
    "QuickOptimizeRequest",
    "UserAnswer",
]
