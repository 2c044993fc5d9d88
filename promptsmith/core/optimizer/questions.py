"""Clarifying question generation for premium optimization."""

import logging
import re
from typing import Any, Optional

from ..cache import CacheStore, fingerprint
from ..exceptions import AIServiceError, DecodeFailure
from .gateway import AIGateway
from .guidance import select_guidance
from .types import (
    AdditionalDetailsField,
    MediaType,
    Question,
    QuestionOption,
    QuestionSet,
)

logger = logging.getLogger(__name__)

MAX_QUESTIONS = 5

CUSTOM_OPTION = QuestionOption(value="custom", label="Other (describe)", allows_text_input=True)
NO_PREFERENCE_OPTION = QuestionOption(value="no_preference", label="No preference")

_QUESTION_TYPES = {"select", "select_or_text", "textarea"}
_PRIORITIES = {"high", "medium", "low"}
_SLUG = re.compile(r"[^a-z0-9]+")


def _options(*pairs: tuple[str, str]) -> list[QuestionOption]:
    return [QuestionOption(value=value, label=label) for value, label in pairs]


IMAGE_TEMPLATE = QuestionSet(
    source="template",
    questions=[
        Question(
            id="style",
            question="What style do you prefer?",
            type="select_or_text",
            priority="high",
            options=_options(
                ("photorealistic", "Photorealistic"),
                ("cartoon", "Cartoon/Illustration"),
                ("artistic", "Artistic/Painting"),
                ("abstract", "Abstract"),
                ("minimalist", "Minimalist"),
            ) + [CUSTOM_OPTION, NO_PREFERENCE_OPTION],
            default="photorealistic",
        ),
        Question(
            id="composition",
            question="How should the subject be positioned?",
            type="select_or_text",
            priority="medium",
            options=_options(
                ("centered", "Centered"),
                ("rule_of_thirds", "Rule of thirds"),
                ("close_up", "Close-up"),
                ("full_body", "Full body"),
                ("portrait", "Portrait style"),
            ) + [CUSTOM_OPTION, NO_PREFERENCE_OPTION],
            default="centered",
        ),
        Question(
            id="background",
            question="What background do you want?",
            type="select_or_text",
            priority="medium",
            options=_options(
                ("indoor", "Indoor"),
                ("outdoor", "Outdoor"),
                ("studio", "Studio/Plain"),
                ("transparent", "Transparent"),
                ("natural", "Natural environment"),
            ) + [CUSTOM_OPTION, NO_PREFERENCE_OPTION],
            default="natural",
        ),
        Question(
            id="quality",
            question="What quality level?",
            type="select",
            priority="low",
            options=_options(
                ("standard", "Standard"),
                ("high", "High quality"),
                ("professional", "Professional/8K"),
            ) + [NO_PREFERENCE_OPTION],
            default="high",
        ),
    ],
    additional_details_field=AdditionalDetailsField(
        question="Any additional details you'd like to include?",
        placeholder="E.g., colors, moods, specific details, references - Add anything else you want!",
    ),
)

GENERIC_TEMPLATE = QuestionSet(
    source="template",
    questions=[
        Question(
            id="tone",
            question="What tone do you prefer?",
            type="select_or_text",
            priority="high",
            options=_options(
                ("professional", "Professional"),
                ("casual", "Casual"),
                ("formal", "Formal"),
                ("friendly", "Friendly"),
            ) + [CUSTOM_OPTION, NO_PREFERENCE_OPTION],
            default="professional",
        ),
    ],
    additional_details_field=AdditionalDetailsField(
        question="Any additional details?",
        placeholder="Add any specific requirements or details",
    ),
)


def template_questions(media_type: MediaType) -> QuestionSet:
    """Hand-authored fallback questions (image vs. everything else)."""
    template = IMAGE_TEMPLATE if media_type == "image" else GENERIC_TEMPLATE
    return template.model_copy(deep=True)


def question_cache_key(prompt: str, media_type: MediaType, target_model: str) -> str:
    return fingerprint("questions", prompt, media_type, target_model)


def _parse_option(raw: Any) -> Optional[QuestionOption]:
    if isinstance(raw, str) and raw.strip():
        return QuestionOption(value=raw.strip(), label=raw.strip())
    if not isinstance(raw, dict):
        return None

    value = str(raw.get("value") or "").strip()
    if not value:
        return None
    return QuestionOption(
        value=value,
        label=str(raw.get("label") or value).strip(),
        allows_text_input=bool(raw.get("allowsTextInput") or raw.get("allows_text_input")),
    )


def normalize_question(raw: Any, position: int) -> Optional[Question]:
    """Coerce one AI-generated question into a complete Question.

    Questions without text, or with wrongly typed fields, are dropped.
    Every kept question ends up with an id, a type, a priority, a default,
    and both the free-text and no-preference options.
    """
    if not isinstance(raw, dict):
        return None
    raw_text = raw.get("question")
    raw_type = raw.get("type", "select_or_text")
    raw_priority = raw.get("priority", "medium")
    raw_options = raw.get("options") or []
    # Wrongly typed fields mean the question was not understood; drop it
    if not (
        isinstance(raw_text, str)
        and isinstance(raw_type, (str, type(None)))
        and isinstance(raw_priority, (str, type(None)))
        and isinstance(raw_options, list)
    ):
        return None
    text = raw_text.strip()
    if not text:
        return None

    question_id = _SLUG.sub("_", str(raw.get("id") or "").lower()).strip("_")
    question_type = raw_type if raw_type in _QUESTION_TYPES else "select_or_text"
    priority = raw_priority if raw_priority in _PRIORITIES else "medium"

    options = [
        option
        for option in (_parse_option(item) for item in raw_options)
        if option is not None
    ]
    values = {option.value for option in options}
    if CUSTOM_OPTION.value not in values:
        options.append(CUSTOM_OPTION.model_copy())
    if NO_PREFERENCE_OPTION.value not in values:
        options.append(NO_PREFERENCE_OPTION.model_copy())

    raw_default = raw.get("default")
    default = raw_default.strip() if isinstance(raw_default, str) else ""
    default = default or options[0].value

    return Question(
        id=question_id or f"question_{position + 1}",
        question=text,
        type=question_type,
        priority=priority,
        options=options,
        default=default,
        required=bool(raw.get("required", False)),
    )


def _parse_details_field(raw: Any) -> AdditionalDetailsField:
    if not isinstance(raw, dict):
        return AdditionalDetailsField()
    defaults = AdditionalDetailsField()
    return AdditionalDetailsField(
        question=str(raw.get("question") or defaults.question),
        placeholder=str(raw.get("placeholder") or defaults.placeholder),
    )


class QuestionGenerator:
    """Produces clarifying questions, from the AI when possible.

    Only AI-sourced question sets are cached, so a template fallback during
    an outage does not block a later AI-capable call.
    """

    def __init__(self, gateway: AIGateway, cache: Optional[CacheStore] = None):
        self.gateway = gateway
        self.cache = cache

    async def generate(
        self, prompt: str, media_type: MediaType, target_model: str
    ) -> QuestionSet:
        cache_key = question_cache_key(prompt, media_type, target_model)
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Question cache hit for {cache_key[:12]}")
                return cached.model_copy(deep=True)

        if not self.gateway.is_available:
            return template_questions(media_type)

        try:
            question_set = await self._generate_with_ai(prompt, media_type, target_model)
        except AIServiceError as e:
            logger.error(f"Failed to generate questions with AI, using template: {e}")
            return template_questions(media_type)

        if self.cache is not None:
            self.cache.set(cache_key, question_set.model_copy(deep=True))
        return question_set

    async def _generate_with_ai(
        self, prompt: str, media_type: MediaType, target_model: str
    ) -> QuestionSet:
        data = await self.gateway.generate_json(
            self._questions_prompt(prompt, media_type, target_model)
        )

        raw_questions = data.get("questions") or []
        if not isinstance(raw_questions, list):
            raise DecodeFailure(
                "AI questions payload is not a list", excerpt=repr(raw_questions)[:300]
            )

        questions: list[Question] = []
        seen_ids: set[str] = set()
        for position, raw in enumerate(raw_questions):
            question = normalize_question(raw, position)
            if question is None or question.id in seen_ids:
                continue
            seen_ids.add(question.id)
            questions.append(question)
            if len(questions) == MAX_QUESTIONS:
                break

        if not questions:
            raise AIServiceError("AI returned no usable questions")

        return QuestionSet(
            questions=questions,
            additional_details_field=_parse_details_field(data.get("additionalDetailsField")),
            source="ai",
        )

    def _questions_prompt(self, prompt: str, media_type: MediaType, target_model: str) -> str:
        guidance = select_guidance(target_model, media_type)
        return f"""You are a prompt optimization expert. Analyze this prompt and generate 3-5 essential questions to help create a premium optimized prompt.

Original prompt: "{prompt}"
Media type: {media_type}
Target model: {target_model}

{guidance.questions}

Based on prompt engineering best practices for {target_model}, identify what's missing that would significantly improve this prompt.

Generate 3-5 essential questions. Each question should:
1. Address a critical missing element
2. Have clear, simple options
3. Include a sensible default
4. Be optional (user can skip)
5. Include an "Other" option with text input capability for flexibility

Return your response as valid JSON in this exact format:
{{
  "questions": [
    {{
      "id": "style",
      "question": "What style do you prefer?",
      "type": "select_or_text",
      "priority": "high",
      "options": [
        {{"value": "photorealistic", "label": "Photorealistic"}},
        {{"value": "cartoon", "label": "Cartoon/Illustration"}},
        {{"value": "custom", "label": "Other (describe)", "allowsTextInput": true}},
        {{"value": "no_preference", "label": "No preference"}}
      ],
      "default": "photorealistic",
      "required": false
    }}
  ],
  "additionalDetailsField": {{
    "question": "Any additional details you'd like to include?",
    "placeholder": "E.g., colors, moods, specific details, references - Add anything else you want!"
  }}
}}

Only return the JSON, no other text."""
