"""Pre-validation gate run before any paid work."""

import re
from dataclasses import dataclass, field
from typing import Optional

EMPTY_MESSAGE = "Prompt cannot be empty."
SHORT_MESSAGE = "Prompt is very short. Consider adding more details for better results."
GIBBERISH_MESSAGE = (
    "Prompt contains too many non-alphanumeric characters and appears nonsensical."
)
NONSENSE_MESSAGE = "Prompt appears to be nonsensical or invalid."
VAGUE_MESSAGE = (
    "Prompt is quite vague. Consider adding more details for better optimization results."
)

GIBBERISH_MIN_LENGTH = 10
GIBBERISH_MAX_RATIO = 0.5
VAGUE_MAX_LENGTH = 20

NONSENSE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^[^a-zA-Z0-9\s]+$"),  # only punctuation/symbols
    re.compile(r"(.)\1{10,}"),  # one character repeated
    re.compile(r"[a-z]{20,}", re.IGNORECASE),  # implausibly long word
)

INAPPROPRIATE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(hack|exploit|illegal|harmful|violent|explicit)\b", re.IGNORECASE),
)

_ALNUM = re.compile(r"[a-zA-Z0-9]")


@dataclass
class PromptValidationResult:
    """Outcome of pre-validation.

    ``is_acceptable`` False means the prompt must not reach the analyzer or
    the AI gateway.
    """

    is_valid: bool = True
    is_acceptable: bool = True
    validation_message: Optional[str] = None
    issues: list[str] = field(default_factory=list)


def non_alphanumeric_ratio(text: str) -> float:
    if not text:
        return 0.0
    alphanumeric = len(_ALNUM.findall(text))
    return (len(text) - alphanumeric) / len(text)


def matches_nonsense(text: str) -> bool:
    return any(pattern.search(text) for pattern in NONSENSE_PATTERNS)


def flags_inappropriate(text: str) -> bool:
    return any(pattern.search(text) for pattern in INAPPROPRIATE_PATTERNS)


def _reject(result: PromptValidationResult, issue: str, message: str) -> PromptValidationResult:
    result.is_valid = False
    result.is_acceptable = False
    result.issues.append(issue)
    result.validation_message = message
    return result


def pre_validate_prompt(prompt: str) -> PromptValidationResult:
    """Check a raw prompt for obviously unusable input.

    Hard failures (empty, gibberish, nonsense) short-circuit. Warnings
    (very short, vague, possibly inappropriate) leave the prompt acceptable.
    """
    trimmed = prompt.strip()
    result = PromptValidationResult()

    if not trimmed:
        return _reject(result, "Prompt is empty", EMPTY_MESSAGE)

    if len(trimmed) < 2:
        result.issues.append("Prompt is extremely short")
        result.validation_message = SHORT_MESSAGE

    if (
        len(trimmed) > GIBBERISH_MIN_LENGTH
        and non_alphanumeric_ratio(trimmed) > GIBBERISH_MAX_RATIO
    ):
        return _reject(
            result,
            "Prompt appears to be gibberish or random characters",
            GIBBERISH_MESSAGE,
        )

    if matches_nonsense(trimmed):
        return _reject(result, "Prompt matches nonsense pattern", NONSENSE_MESSAGE)

    # Not blocking: the AI stage judges these
    if flags_inappropriate(trimmed):
        result.issues.append("Potentially inappropriate content detected")

    words = trimmed.split()
    if len(words) == 1 and len(trimmed) < VAGUE_MAX_LENGTH:
        result.issues.append("Prompt is very vague")
        result.validation_message = VAGUE_MESSAGE

    return result
