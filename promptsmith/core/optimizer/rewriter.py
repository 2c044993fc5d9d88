"""Quick single-pass rewriting, with a rule-based fallback."""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ..cache import CacheStore, fingerprint
from ..exceptions import AIServiceError, ValidationError
from .analyzer import INFORMAL_ISSUE, MISSING_ARTICLE_ISSUE, PromptAnalysis
from .decoding import OPTIMIZATION_FIELDS
from .gateway import AIGateway
from .guidance import select_guidance
from .types import MediaType

logger = logging.getLogger(__name__)

INVALID_PROMPT_MESSAGE = "Prompt is not valid for optimization."

_INFORMAL_REQUEST = re.compile(r"\b(draw|make)\s+me\s+", re.IGNORECASE)
_ARTICLE_GAP = re.compile(
    r"\b(create|generate|make)\s+(image|picture|photo)\s+of\s+(cat|dog|bird|animal)\b",
    re.IGNORECASE,
)
_SENTENCE_END = re.compile(r"[.!?]$")


def _fix_articles(match: re.Match[str]) -> str:
    verb, image, animal = match.groups()
    return f"{verb} an {image} of a {animal}"


# (issue that enables the rule, pattern, replacement, improvement)
REWRITE_RULES: tuple[tuple[str, re.Pattern[str], Any, str], ...] = (
    (INFORMAL_ISSUE, _INFORMAL_REQUEST, "create ", "Fixed informal language"),
    (MISSING_ARTICLE_ISSUE, _ARTICLE_GAP, _fix_articles, "Added missing articles"),
)


def capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def ensure_terminal_punctuation(text: str) -> str:
    text = text.strip()
    if text and not _SENTENCE_END.search(text):
        return text + "."
    return text


def rule_based_rewrite(prompt: str, analysis: PromptAnalysis) -> tuple[str, list[str]]:
    """Apply the local grammar and punctuation fixes.

    Grammar rules only run when the analyzer found grammar issues. Returns
    the rewritten text and the improvements applied.
    """
    text = prompt
    improvements: list[str] = []

    if analysis.grammar_issues:
        # Informal phrasing is rewritten first so the article rule sees "create"
        for issue, pattern, replacement, improvement in REWRITE_RULES:
            text = pattern.sub(replacement, text)
            if issue in analysis.grammar_issues:
                improvements.append(improvement)

    punctuated = ensure_terminal_punctuation(text)
    if punctuated != text.strip():
        improvements.append("Added proper punctuation")
    text = capitalize_first(punctuated)

    if not improvements:
        improvements.append("Applied basic formatting")
    return text, improvements


def preview_rewrite(prompt: str, analysis: PromptAnalysis) -> str:
    """The lightweight rewrite shown alongside premium questions."""
    if not analysis.grammar_issues:
        return prompt
    text = capitalize_first(_INFORMAL_REQUEST.sub("create ", prompt))
    return ensure_terminal_punctuation(text)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in ("false", "no", "0")
    return value is not False


@dataclass
class QuickRewrite:
    """Outcome of one quick rewrite."""

    optimized_prompt: str
    used_ai: bool
    improvements: list[str] = field(default_factory=list)
    quality_score: Any = None
    validation_message: Optional[str] = None


def quick_cache_key(prompt: str, target_model: str, media_type: MediaType) -> str:
    return fingerprint("quick", prompt, target_model, media_type)


class QuickRewriter:
    """Single-shot AI rewrite that falls back to local rules.

    Any technical AI failure falls back. An explicit "invalid prompt"
    verdict from the AI is raised as a ValidationError.
    """

    def __init__(
        self,
        gateway: AIGateway,
        cache: Optional[CacheStore] = None,
        fallback: Callable[[str, PromptAnalysis], tuple[str, list[str]]] = rule_based_rewrite,
    ):
        self.gateway = gateway
        self.cache = cache
        self.fallback = fallback

    async def rewrite(
        self,
        prompt: str,
        target_model: str,
        media_type: MediaType,
        analysis: PromptAnalysis,
    ) -> QuickRewrite:
        if self.gateway.is_available:
            try:
                result = await self._rewrite_with_ai(prompt, target_model, media_type)
            except AIServiceError as e:
                logger.warning(
                    f"AI optimization failed, falling back to rule-based optimization: {e}"
                )
            else:
                if result is not None:
                    return result

        text, improvements = self.fallback(prompt, analysis)
        logger.info(
            f"Quick optimization completed using rule-based fallback "
            f"({len(prompt)} -> {len(text)} chars)"
        )
        return QuickRewrite(optimized_prompt=text, used_ai=False, improvements=improvements)

    async def _rewrite_with_ai(
        self, prompt: str, target_model: str, media_type: MediaType
    ) -> Optional[QuickRewrite]:
        cache_key = quick_cache_key(prompt, target_model, media_type)
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Analysis cache hit for {cache_key[:12]}")
                return cached

        data = await self.gateway.generate_json(
            self._optimization_prompt(prompt, target_model, media_type),
            OPTIMIZATION_FIELDS,
        )

        message = data.get("validationMessage") or None
        if not _as_bool(data.get("isValid", True)):
            raise ValidationError(message or INVALID_PROMPT_MESSAGE)

        optimized = str(data.get("optimizedPrompt") or "").strip()
        if not optimized:
            logger.warning("AI returned an empty rewrite, using rule-based fallback")
            return None

        improvements = data.get("improvements") or []
        if not isinstance(improvements, list):
            improvements = [str(improvements)]

        result = QuickRewrite(
            optimized_prompt=optimized,
            used_ai=True,
            improvements=[str(item) for item in improvements if str(item).strip()],
            quality_score=data.get("qualityScore"),
            validation_message=message,
        )
        logger.info(
            f"Quick optimization completed using AI ({len(prompt)} -> {len(optimized)} chars, "
            f"reported score {result.quality_score})"
        )
        if self.cache is not None:
            self.cache.set(cache_key, result)
        return result

    def _optimization_prompt(self, prompt: str, target_model: str, media_type: MediaType) -> str:
        guidance = select_guidance(target_model, media_type)
        return f"""You are a prompt engineering expert. Optimize this prompt for {target_model} ({media_type}).

Original prompt: "{prompt}"

{guidance.questions}

Rules:
1. Fix grammar, spelling and informal phrasing
2. Improve structure and clarity
3. Keep the user's intent; do not invent colors, backgrounds, moods or styles
4. If the prompt is nonsensical or cannot be optimized, set isValid to false and explain why in validationMessage

Return your response as valid JSON in this exact format:
{{
  "optimizedPrompt": "the optimized prompt",
  "isValid": true,
  "validationMessage": "",
  "improvements": ["what was improved"],
  "qualityScore": 85
}}

Only return the JSON, no other text."""
