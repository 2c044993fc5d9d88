"""Rule-based prompt analysis.

Everything here is a pure function of ``(prompt, media_type)``: the analyzer
is the baseline that AI-assisted improvements are measured against, so it
never calls out to the AI gateway. Rules live in module-level tables so each
can be tested (or swapped) independently.
"""

import re
from dataclasses import dataclass, field
from typing import Callable

from .types import MediaType

STYLE_KEYWORDS = (
    "photorealistic", "cartoon", "artistic", "abstract", "minimalist",
    "realistic", "illustration", "painting", "drawing", "sketch",
)
COMPOSITION_KEYWORDS = (
    "centered", "close-up", "full body", "portrait", "landscape",
    "rule of thirds", "framed",
)
BACKGROUND_KEYWORDS = (
    "background", "setting", "indoor", "outdoor", "studio", "environment", "scene",
)
QUALITY_KEYWORDS = (
    "high quality", "high-resolution", "professional", "detailed", "sharp",
    "crisp", "8k", "4k",
)
TONE_KEYWORDS = (
    "professional", "casual", "formal", "friendly", "serious", "humorous", "technical",
)
FORMAT_KEYWORDS = (
    "paragraph", "list", "bullet points", "structured", "outline", "essay", "article",
)
DURATION_KEYWORDS = (
    "second", "minute", "hour", "duration", "length", "short", "long",
)
TECHNICAL_KEYWORDS = (
    "fps", "resolution", "bitrate", "codec", "format", "quality", "hd", "4k", "8k",
)

CONTEXT_MIN_WORDS = 10


def _contains_any(keywords: tuple[str, ...]) -> Callable[[str], bool]:
    def check(prompt: str) -> bool:
        lowered = prompt.lower()
        return any(keyword in lowered for keyword in keywords)

    return check


def _has_context(prompt: str) -> bool:
    return count_words(prompt) > CONTEXT_MIN_WORDS


# Element name -> presence check, evaluated in order
ELEMENT_CHECKS: dict[str, Callable[[str], bool]] = {
    "style": _contains_any(STYLE_KEYWORDS),
    "composition": _contains_any(COMPOSITION_KEYWORDS),
    "background": _contains_any(BACKGROUND_KEYWORDS),
    "quality_indicators": _contains_any(QUALITY_KEYWORDS),
    "tone": _contains_any(TONE_KEYWORDS),
    "format": _contains_any(FORMAT_KEYWORDS),
    "context": _has_context,
    "duration": _contains_any(DURATION_KEYWORDS),
    "technical_specs": _contains_any(TECHNICAL_KEYWORDS),
}

REQUIRED_ELEMENTS: dict[str, tuple[str, ...]] = {
    "image": ("style", "composition", "background", "quality_indicators"),
    "text": ("tone", "format", "context"),
    "video": ("duration", "style", "technical_specs"),
    "audio": ("duration", "style", "technical_specs"),
}

_ARTICLE_NOUNS = re.compile(r"\b(cat|dog|image|picture|photo)\b", re.IGNORECASE)
_ARTICLE_BEFORE_NOUN = re.compile(
    r"\b(a|an|the)\s+(cat|dog|image|picture|photo)\b", re.IGNORECASE
)
_INFORMAL_REQUEST = re.compile(r"\b(draw|make|create)\s+me\s+", re.IGNORECASE)
_PUNCTUATION = re.compile(r"[.,;:]")
_DESCRIPTIVE_WORDS = re.compile(
    r"\b(beautiful|detailed|specific|clear|precise|exact)\b", re.IGNORECASE
)

MISSING_ARTICLE_ISSUE = "Missing article (a/an/the)"
INFORMAL_ISSUE = 'Informal language - consider using "create" instead of "draw me"'
TOO_SHORT_ISSUE = "Prompt is too short"
NO_PUNCTUATION_ISSUE = "Prompt lacks proper punctuation and structure"


def _missing_article(prompt: str) -> bool:
    return bool(_ARTICLE_NOUNS.search(prompt)) and not _ARTICLE_BEFORE_NOUN.search(prompt)


def _informal_request(prompt: str) -> bool:
    return bool(_INFORMAL_REQUEST.search(prompt))


GRAMMAR_RULES: tuple[tuple[Callable[[str], bool], str], ...] = (
    (_missing_article, MISSING_ARTICLE_ISSUE),
    (_informal_request, INFORMAL_ISSUE),
)

STRUCTURE_RULES: tuple[tuple[Callable[[str], bool], str], ...] = (
    (lambda p: count_words(p) < 3, TOO_SHORT_ISSUE),
    (lambda p: not has_punctuation(p) and count_words(p) > 5, NO_PUNCTUATION_ISSUE),
)


@dataclass
class PromptAnalysis:
    """Heuristic measurements of a single prompt."""

    completeness_score: int
    missing_elements: list[str] = field(default_factory=list)
    grammar_fixed: bool = False
    structure_improved: bool = False
    word_count: int = 0
    clarity_score: int = 0
    specificity_score: int = 0
    structure_score: int = 0
    grammar_issues: list[str] = field(default_factory=list)
    structure_issues: list[str] = field(default_factory=list)

    @property
    def issues(self) -> list[str]:
        return [*self.grammar_issues, *self.structure_issues]


def count_words(text: str) -> int:
    return len(text.split())


def has_punctuation(text: str) -> bool:
    return bool(_PUNCTUATION.search(text))


def _clamp(score: float) -> int:
    return int(max(0, min(100, round(score))))


def find_missing_elements(prompt: str, media_type: MediaType) -> list[str]:
    return [
        element
        for element in REQUIRED_ELEMENTS[media_type]
        if not ELEMENT_CHECKS[element](prompt)
    ]


def check_grammar(prompt: str) -> list[str]:
    return [issue for rule, issue in GRAMMAR_RULES if rule(prompt)]


def check_structure(prompt: str) -> list[str]:
    return [issue for rule, issue in STRUCTURE_RULES if rule(prompt)]


def completeness_score(missing_count: int, media_type: MediaType) -> int:
    max_missing = len(REQUIRED_ELEMENTS[media_type])
    return _clamp(100 - (missing_count / max_missing) * 100)


def clarity_score(prompt: str, grammar_issues: list[str]) -> int:
    score = 100 - 15 * len(grammar_issues)
    if len(prompt) < 10:
        score -= 20
    if not has_punctuation(prompt) and count_words(prompt) > 5:
        score -= 10
    return _clamp(score)


def specificity_score(prompt: str, word_count: int) -> int:
    descriptive_bonus = 5 * len(_DESCRIPTIVE_WORDS.findall(prompt))
    base = min(100, word_count * 100 / 20)
    return _clamp(min(100, base + descriptive_bonus))


def structure_score(prompt: str, structure_issues: list[str]) -> int:
    score = 100 - 20 * len(structure_issues)
    if has_punctuation(prompt):
        score += 10
    if count_words(prompt) > 5:
        score += 5
    return _clamp(score)


def analyze_prompt(prompt: str, media_type: MediaType) -> PromptAnalysis:
    """Score a prompt and list what it is missing for its media type."""
    word_count = count_words(prompt)
    missing = find_missing_elements(prompt, media_type)
    grammar_issues = check_grammar(prompt)
    structure_issues = check_structure(prompt)

    return PromptAnalysis(
        completeness_score=completeness_score(len(missing), media_type),
        missing_elements=missing,
        grammar_fixed=bool(grammar_issues),
        structure_improved=bool(structure_issues),
        word_count=word_count,
        clarity_score=clarity_score(prompt, grammar_issues),
        specificity_score=specificity_score(prompt, word_count),
        structure_score=structure_score(prompt, structure_issues),
        grammar_issues=grammar_issues,
        structure_issues=structure_issues,
    )


def baseline_score(analysis: PromptAnalysis) -> int:
    """Mean of clarity, specificity and structure; the 'before' score."""
    return _clamp(
        (analysis.clarity_score + analysis.specificity_score + analysis.structure_score) / 3
    )
