"""Quality scoring for quick and premium optimizations."""

import math
from typing import Any, Optional

from .analyzer import (
    INFORMAL_ISSUE,
    MISSING_ARTICLE_ISSUE,
    PromptAnalysis,
    analyze_prompt,
    baseline_score,
)
from .intent import IntentCheck
from .types import (
    ComprehensiveScore,
    MediaType,
    OptimizationMetadata,
    OptimizationType,
    QualityScore,
    ScoreDelta,
    UserAnswer,
)

# Weights of the premium composite; they sum to 1
PREMIUM_WEIGHTS: dict[str, float] = {
    "clarity": 0.25,
    "specificity": 0.25,
    "structure": 0.20,
    "completeness": 0.15,
    "intent_preservation": 0.15,
}

DEFAULT_IMPROVEMENT = "Enhanced structure and clarity"
INTENT_WARNING = "Intent preservation warnings detected"


def clamp_score(value: Any, default: Optional[int] = None) -> Optional[int]:
    """Coerce a model-reported score into [0, 100].

    Accepts ints, floats and numeric strings. Anything else, including
    booleans and NaN, yields ``default``.
    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, str):
        try:
            value = float(value.strip().rstrip("%"))
        except ValueError:
            return default
    if not isinstance(value, (int, float)) or math.isnan(value):
        return default
    return int(max(0, min(100, round(value))))


def comprehensive_score(after: PromptAnalysis, intent_score: int) -> ComprehensiveScore:
    parts = {
        "clarity": after.clarity_score,
        "specificity": after.specificity_score,
        "structure": after.structure_score,
        "completeness": after.completeness_score,
        "intent_preservation": intent_score,
    }
    overall = sum(parts[name] * weight for name, weight in PREMIUM_WEIGHTS.items())
    return ComprehensiveScore(overall=clamp_score(overall, default=0), **parts)


def detect_improvements(
    before: PromptAnalysis,
    after: PromptAnalysis,
    answers: Optional[dict[str, UserAnswer]] = None,
    additional_details: Optional[str] = None,
) -> list[str]:
    """List the measurable differences between the two analyses."""
    improvements: list[str] = []

    if INFORMAL_ISSUE in before.grammar_issues and INFORMAL_ISSUE not in after.grammar_issues:
        improvements.append("Fixed informal language")
    if (
        MISSING_ARTICLE_ISSUE in before.grammar_issues
        and MISSING_ARTICLE_ISSUE not in after.grammar_issues
    ):
        improvements.append("Added missing articles")
    if after.structure_score > before.structure_score:
        improvements.append("Improved structure")
    if after.specificity_score > before.specificity_score:
        improvements.append("Improved specificity")

    added = [e for e in before.missing_elements if e not in after.missing_elements]
    if added:
        improvements.append(f"Added missing elements: {', '.join(added)}")

    if any(answer.carries_content for answer in (answers or {}).values()):
        improvements.append("Applied user preferences")
    if additional_details and additional_details.strip():
        improvements.append("Incorporated additional details")

    return improvements


def build_metadata(
    before: PromptAnalysis,
    after: PromptAnalysis,
    completeness: float,
    used_ai: bool = False,
    validation_message: Optional[str] = None,
) -> OptimizationMetadata:
    return OptimizationMetadata(
        word_count=ScoreDelta(before=before.word_count, after=after.word_count),
        clarity_score=ScoreDelta(before=before.clarity_score, after=after.clarity_score),
        specificity_score=ScoreDelta(
            before=before.specificity_score, after=after.specificity_score
        ),
        structure_score=ScoreDelta(before=before.structure_score, after=after.structure_score),
        completeness_score=completeness,
        used_ai=used_ai,
        validation_message=validation_message,
    )


def score_quality(
    original_prompt: str,
    optimized_prompt: str,
    media_type: MediaType,
    optimization_type: OptimizationType,
    *,
    used_ai: bool = False,
    ai_score: Any = None,
    reported_improvements: Optional[list[str]] = None,
    answers: Optional[dict[str, UserAnswer]] = None,
    additional_details: Optional[str] = None,
    intent: Optional[IntentCheck] = None,
    validation_message: Optional[str] = None,
) -> tuple[QualityScore, OptimizationMetadata]:
    """
    Score an optimization against its original prompt.

    Both texts go through the analyzer; ``before`` is always the baseline of
    the original.

    Premium ``after`` is the weighted composite of the optimized prompt's
    sub-scores and the intent score. Quick ``after`` is the AI's
    self-reported score when the AI produced the rewrite, otherwise the
    baseline of the rewritten text.

    Args:
        original_prompt: The user's prompt
        optimized_prompt: The rewritten prompt
        media_type: Media type used for both analyses
        optimization_type: "quick" or "premium"
        used_ai: Whether the rewrite came from the AI (quick only)
        ai_score: The AI's self-reported quality score (quick only)
        reported_improvements: Improvements already known for the rewrite
        answers: Premium answers, for "Applied user preferences"
        additional_details: Premium details text
        intent: Result of the intent check (premium only)
        validation_message: Stored in metadata

    Returns:
        Quality score and metadata
    """
    before = analyze_prompt(original_prompt, media_type)
    after = analyze_prompt(optimized_prompt, media_type)
    before_score = baseline_score(before)

    if optimization_type == "premium":
        intent = intent or IntentCheck(preserved=True, score=100)
        comprehensive = comprehensive_score(after, intent.score)
        improvements = detect_improvements(before, after, answers, additional_details)
        if not improvements:
            improvements = [DEFAULT_IMPROVEMENT]
        if not intent.preserved:
            improvements.append(INTENT_WARNING)

        quality = QualityScore(
            before=before_score,
            after=comprehensive.overall,
            improvements=improvements,
            intent_preserved=intent.preserved,
            intent_preservation_score=intent.score,
            comprehensive=comprehensive,
        )
        metadata = build_metadata(
            before, after, after.completeness_score, used_ai=True,
            validation_message=validation_message,
        )
        return quality, metadata

    after_score = baseline_score(after)
    if used_ai:
        after_score = clamp_score(ai_score, default=after_score)

    improvements = list(reported_improvements or [])
    if not improvements:
        improvements = detect_improvements(before, after)
    if not improvements:
        improvements = [f"Fixed: {issue}" for issue in before.issues]
    if not improvements:
        improvements = [DEFAULT_IMPROVEMENT]

    quality = QualityScore(before=before_score, after=after_score, improvements=improvements)
    metadata = build_metadata(
        before, after, before.completeness_score, used_ai=used_ai,
        validation_message=validation_message,
    )
    return quality, metadata
