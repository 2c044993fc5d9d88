"""Intent preservation: the allow-list and the check against it.

The allow-list is everything the user actually supplied. The builder is
told to use nothing else, and the evaluator flags descriptive terms in the
output that the allow-list does not contain. Violations are advisory: they
are logged and folded into the quality score, never raised.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from .types import UserAnswer

logger = logging.getLogger(__name__)

# Term tables for the categories the builder must never invent
INTENT_TERMS: dict[str, tuple[str, ...]] = {
    "color": (
        "red", "blue", "green", "yellow", "orange", "purple", "pink", "black",
        "white", "gray", "grey", "brown", "gold", "golden", "silver", "teal",
        "crimson", "turquoise", "beige", "magenta", "cyan", "violet", "indigo",
        "maroon", "navy", "coral", "amber", "emerald", "pastel", "neon",
        "monochrome", "sepia",
    ),
    "background": (
        "background", "forest", "beach", "city", "cityscape", "mountain",
        "ocean", "sky", "sunset", "sunrise", "garden", "studio", "indoor",
        "outdoor", "street", "desert", "meadow", "park", "room", "kitchen",
        "landscape", "skyline", "jungle", "underwater",
    ),
    "mood": (
        "cozy", "dramatic", "peaceful", "serene", "mysterious", "whimsical",
        "melancholic", "joyful", "cheerful", "moody", "romantic", "eerie",
        "calm", "energetic", "nostalgic", "vibrant", "ethereal", "gloomy",
        "playful", "tranquil",
    ),
    "style": (
        "photorealistic", "realistic", "cartoon", "anime", "watercolor",
        "oil painting", "sketch", "illustration", "abstract", "minimalist",
        "impressionist", "surreal", "cyberpunk", "steampunk", "vintage",
        "retro", "3d render", "pixel art", "digital art", "cinematic",
    ),
}

VIOLATION_PENALTY = 20


def _term_pattern(term: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(term)}s?\b", re.IGNORECASE)


_TERM_PATTERNS: dict[str, tuple[tuple[str, re.Pattern[str]], ...]] = {
    category: tuple((term, _term_pattern(term)) for term in terms)
    for category, terms in INTENT_TERMS.items()
}


@dataclass
class AllowList:
    """User-supplied content the builder may draw from."""

    original_prompt: str
    answers: dict[str, str] = field(default_factory=dict)
    additional_details: str = ""

    @property
    def entries(self) -> list[str]:
        entries = [self.original_prompt, *self.answers.values()]
        if self.additional_details:
            entries.append(self.additional_details)
        return entries

    @property
    def text(self) -> str:
        return "\n".join(self.entries)

    def contains(self, pattern: re.Pattern[str]) -> bool:
        return bool(pattern.search(self.text))

    def describe(self) -> str:
        """Human-readable listing used inside the builder instruction."""
        parts = [f'Original prompt: "{self.original_prompt}"']
        if self.answers:
            answer_list = ", ".join(f"{key}: {value}" for key, value in self.answers.items())
            parts.append(f"User answers: {answer_list}")
        if self.additional_details:
            parts.append(f'Additional details: "{self.additional_details}"')
        return "\n".join(parts)


def build_allow_list(
    original_prompt: str,
    answers: Optional[dict[str, UserAnswer]] = None,
    additional_details: Optional[str] = None,
) -> AllowList:
    """Collect the prompt, every content-bearing answer, and the details."""
    answer_values = {
        question_id: answer.effective_value
        for question_id, answer in (answers or {}).items()
        if answer.carries_content
    }
    return AllowList(
        original_prompt=original_prompt.strip(),
        answers=answer_values,
        additional_details=(additional_details or "").strip(),
    )


@dataclass
class IntentCheck:
    """Result of comparing an optimized prompt with the allow-list."""

    preserved: bool
    score: int
    violations: list[str] = field(default_factory=list)
    added_details: list[str] = field(default_factory=list)


class IntentEvaluator:
    """Flags colors, backgrounds, moods and styles the user never supplied."""

    def __init__(self, terms: Optional[dict[str, tuple[str, ...]]] = None):
        if terms is None:
            self._patterns = _TERM_PATTERNS
        else:
            self._patterns = {
                category: tuple((term, _term_pattern(term)) for term in category_terms)
                for category, category_terms in terms.items()
            }

    def evaluate(self, optimized_prompt: str, allow_list: AllowList) -> IntentCheck:
        violations: list[str] = []
        added: list[str] = []

        for category, patterns in self._patterns.items():
            for term, pattern in patterns:
                if pattern.search(optimized_prompt) and not allow_list.contains(pattern):
                    violations.append(f"Added {category} not specified by user: {term}")
                    added.append(term)

        score = max(0, 100 - VIOLATION_PENALTY * len(violations))
        if violations:
            logger.warning(f"Intent preservation violations detected: {violations}")

        return IntentCheck(
            preserved=not violations,
            score=score,
            violations=violations,
            added_details=added,
        )
