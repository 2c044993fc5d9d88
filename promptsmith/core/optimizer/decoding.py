"""Tolerant decoding of structured (JSON) model responses.

Decoding is an ordered ladder of strategies. Each strategy returns a
``DecodeResult``; the first success wins. Field extraction only runs when
the caller describes the fields it expects.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Optional

FieldKind = Literal["string", "bool", "number", "string_list"]


@dataclass
class DecodeResult:
    """Outcome of one decode strategy (or of the whole ladder)."""

    ok: bool
    value: Optional[dict[str, Any]] = None
    stage: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class FieldSpec:
    """Keys a structured response is expected to carry.

    ``mandatory`` keys must be present for any strategy to succeed; other
    keys in ``kinds`` fall back to ``defaults`` during field extraction.
    """

    kinds: dict[str, FieldKind]
    mandatory: tuple[str, ...]
    defaults: dict[str, Any] = field(default_factory=dict)


OPTIMIZATION_FIELDS = FieldSpec(
    kinds={
        "optimizedPrompt": "string",
        "isValid": "bool",
        "validationMessage": "string",
        "improvements": "string_list",
        "qualityScore": "number",
    },
    mandatory=("optimizedPrompt",),
    defaults={
        "isValid": True,
        "validationMessage": None,
        "improvements": [],
        "qualityScore": None,
    },
)

_FENCE = re.compile(r"```(?:json|JSON)?")
_KEY_AHEAD = r'(?=\s*,\s*"[A-Za-z_]\w*"\s*:|\s*[}\]])'
_STRING_VALUE = re.compile(
    r'("[A-Za-z_]\w*"\s*:\s*")(.*?)("' + _KEY_AHEAD + ")",
    re.DOTALL,
)
_UNESCAPED_QUOTE = re.compile(r'(?<!\\)"')
_QUOTED_ITEM = re.compile(r'"((?:[^"\\]|\\.)*)"', re.DOTALL)


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text).strip()


def outermost_object(text: str) -> Optional[str]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def _missing_mandatory(value: dict[str, Any], fields: Optional[FieldSpec]) -> list[str]:
    if fields is None:
        return []
    return [key for key in fields.mandatory if value.get(key) in (None, "")]


def _loads_object(candidate: str, stage: str, fields: Optional[FieldSpec]) -> DecodeResult:
    try:
        value = json.loads(candidate, strict=False)
    except json.JSONDecodeError as e:
        return DecodeResult(ok=False, stage=stage, error=f"{stage}: {e}")

    if not isinstance(value, dict):
        return DecodeResult(ok=False, stage=stage, error=f"{stage}: top-level value is not an object")

    missing = _missing_mandatory(value, fields)
    if missing:
        return DecodeResult(ok=False, stage=stage, error=f"{stage}: missing {', '.join(missing)}")
    return DecodeResult(ok=True, value=value, stage=stage)


def decode_direct(text: str, fields: Optional[FieldSpec] = None) -> DecodeResult:
    """Strip fences, take the outermost ``{...}`` and parse it."""
    candidate = outermost_object(strip_code_fences(text))
    if candidate is None:
        return DecodeResult(ok=False, stage="direct", error="direct: no JSON object found")
    return _loads_object(candidate, "direct", fields)


def repair_inner_quotes(candidate: str) -> str:
    """Escape quotation marks that sit inside string values.

    A string value ends at the first quote followed by another key or by a
    closing bracket; every unescaped quote before that is escaped.
    """

    def escape(match: re.Match[str]) -> str:
        inner = _UNESCAPED_QUOTE.sub(r'\\"', match.group(2))
        return f"{match.group(1)}{inner}{match.group(3)}"

    return _STRING_VALUE.sub(escape, candidate)


def decode_quote_repair(text: str, fields: Optional[FieldSpec] = None) -> DecodeResult:
    candidate = outermost_object(strip_code_fences(text))
    if candidate is None:
        return DecodeResult(ok=False, stage="quote_repair", error="quote_repair: no JSON object found")
    return _loads_object(repair_inner_quotes(candidate), "quote_repair", fields)


def _unescape(raw: str) -> str:
    try:
        return json.loads(f'"{raw}"', strict=False)
    except json.JSONDecodeError:
        return raw.replace('\\"', '"').replace("\\n", "\n")


def _extract_field(text: str, key: str, kind: FieldKind) -> Any:
    prefix = rf'"{re.escape(key)}"\s*:\s*'

    if kind == "string":
        if re.search(prefix + "null", text):
            return None
        match = re.search(prefix + r'"(.*?)"' + _KEY_AHEAD, text, re.DOTALL)
        return _unescape(match.group(1)) if match else None

    if kind == "bool":
        match = re.search(prefix + r"(true|false)", text, re.IGNORECASE)
        return match.group(1).lower() == "true" if match else None

    if kind == "number":
        match = re.search(prefix + r"(-?\d+(?:\.\d+)?)", text)
        return float(match.group(1)) if match else None

    match = re.search(prefix + r"\[(.*?)\]", text, re.DOTALL)
    if not match:
        return None
    return [_unescape(item) for item in _QUOTED_ITEM.findall(match.group(1))]


def decode_field_extraction(text: str, fields: Optional[FieldSpec] = None) -> DecodeResult:
    """Pull known keys out one by one, filling defaults for optional ones."""
    if fields is None:
        return DecodeResult(ok=False, stage="field_extraction", error="field_extraction: no fields described")

    cleaned = strip_code_fences(text)
    value: dict[str, Any] = {}
    for key, kind in fields.kinds.items():
        extracted = _extract_field(cleaned, key, kind)
        value[key] = fields.defaults.get(key) if extracted is None else extracted

    missing = _missing_mandatory(value, fields)
    if missing:
        return DecodeResult(
            ok=False,
            stage="field_extraction",
            error=f"field_extraction: could not locate {', '.join(missing)}",
        )
    return DecodeResult(ok=True, value=value, stage="field_extraction")


DecodeStrategy = Callable[[str, Optional[FieldSpec]], DecodeResult]

DECODE_LADDER: tuple[DecodeStrategy, ...] = (
    decode_direct,
    decode_quote_repair,
    decode_field_extraction,
)


def decode_json(
    text: str,
    fields: Optional[FieldSpec] = None,
    strategies: tuple[DecodeStrategy, ...] = DECODE_LADDER,
) -> DecodeResult:
    """Run the decode ladder until one strategy succeeds.

    Args:
        text: Raw model response
        fields: Expected keys; enables field extraction as the last resort
        strategies: Ordered strategies to try

    Returns:
        The first successful DecodeResult, or a failed one listing every error
    """
    errors: list[str] = []
    for strategy in strategies:
        result = strategy(text, fields)
        if result.ok:
            return result
        if result.error:
            errors.append(result.error)
    return DecodeResult(ok=False, error="; ".join(errors))
