"""Data models for the prompt optimization pipeline."""

from datetime import datetime, timezone
from typing import Any, Literal, Optional, TypeVar
from uuid import uuid4

import pydantic
from pydantic import BaseModel, Field, field_validator

from ..exceptions import ValidationError

MediaType = Literal["text", "image", "video", "audio"]
OptimizationType = Literal["quick", "premium"]
OptimizationMode = Literal["analyze", "build", "complete"]
OptimizationStatus = Literal[
    "pending", "analyzing", "questions_ready", "building", "completed", "failed"
]
QuestionType = Literal["select", "select_or_text", "textarea"]
QuestionPriority = Literal["high", "medium", "low"]
AnswerType = Literal["option", "custom", "default", "skipped"]

# Answer values that carry no user content
NON_CONTENT_VALUES = frozenset({"no_preference", "default", "skipped"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuestionOption(BaseModel):
    """A selectable answer to a clarifying question."""

    value: str
    label: str
    allows_text_input: bool = False


class UserAnswer(BaseModel):
    """The user's answer to one clarifying question."""

    type: AnswerType
    value: str = ""
    custom_text: Optional[str] = None

    @property
    def effective_value(self) -> str:
        """Free text wins over the structured value."""
        return (self.custom_text or self.value or "").strip()

    @property
    def carries_content(self) -> bool:
        """True when the answer adds something the user actually specified."""
        if self.type == "skipped":
            return False
        value = self.effective_value
        return bool(value) and value.lower() not in NON_CONTENT_VALUES


class Question(BaseModel):
    """A clarifying question shown during premium optimization."""

    id: str
    question: str
    type: QuestionType = "select_or_text"
    priority: QuestionPriority = "medium"
    options: list[QuestionOption] = []
    default: str = "no_preference"
    required: bool = False
    answered: bool = False
    answer: Optional[UserAnswer] = None


class AdditionalDetailsField(BaseModel):
    """Descriptor for the free-form details textarea."""

    question: str = "Any additional details you'd like to include?"
    type: Literal["textarea"] = "textarea"
    placeholder: str = "Add any specific requirements or details"
    required: bool = False


class QuestionSet(BaseModel):
    """Questions produced for one (prompt, media type, model) triple."""

    questions: list[Question]
    additional_details_field: AdditionalDetailsField = Field(
        default_factory=AdditionalDetailsField
    )
    source: Literal["ai", "template"] = "template"


class ComprehensiveScore(BaseModel):
    """Breakdown behind a premium build's composite score."""

    overall: int = Field(ge=0, le=100)
    clarity: int = Field(ge=0, le=100)
    specificity: int = Field(ge=0, le=100)
    structure: int = Field(ge=0, le=100)
    completeness: int = Field(ge=0, le=100)
    intent_preservation: int = Field(ge=0, le=100)


class QualityScore(BaseModel):
    """Before/after quality of an optimization."""

    before: int = Field(ge=0, le=100)
    after: Optional[int] = Field(default=None, ge=0, le=100)
    improvements: list[str] = []
    intent_preserved: bool = True
    intent_preservation_score: int = Field(default=100, ge=0, le=100)
    comprehensive: Optional[ComprehensiveScore] = None


class ScoreDelta(BaseModel):
    before: float
    after: float


class OptimizationMetadata(BaseModel):
    """Analyzer measurements of the original and optimized texts."""

    word_count: ScoreDelta
    clarity_score: ScoreDelta
    specificity_score: ScoreDelta
    structure_score: ScoreDelta
    completeness_score: float
    used_ai: bool = False
    validation_message: Optional[str] = None


class AnalysisSummary(BaseModel):
    """Heuristic analysis of the original prompt."""

    completeness_score: float
    missing_elements: list[str] = []
    grammar_fixed: bool = False
    structure_improved: bool = False


class Feedback(BaseModel):
    """User feedback appended after completion. Never affects scoring."""

    rating: int = Field(ge=1, le=5)
    was_helpful: bool
    comments: Optional[str] = Field(default=None, max_length=1000)
    submitted_at: datetime = Field(default_factory=_utcnow)


class Optimization(BaseModel):
    """The central optimization record."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str

    original_prompt: str
    optimized_prompt: str = ""
    target_model: str
    media_type: MediaType

    optimization_type: OptimizationType = "quick"
    optimization_mode: OptimizationMode = "complete"
    status: OptimizationStatus = "pending"
    error: Optional[str] = None

    questions: list[Question] = []
    user_answers: dict[str, UserAnswer] = {}
    additional_details: Optional[str] = None
    parsed_details: dict[str, str] = {}

    quality_score: Optional[QualityScore] = None
    metadata: Optional[OptimizationMetadata] = None
    analysis: Optional[AnalysisSummary] = None
    feedback: Optional[Feedback] = None

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class _PromptRequest(BaseModel):
    # Emptiness is reported by the pre-validator, which has the user-facing message
    original_prompt: str = Field(max_length=5000)
    target_model: str = Field(min_length=1, max_length=100)
    media_type: MediaType

    @field_validator("original_prompt", "target_model", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class QuickOptimizeRequest(_PromptRequest):
    """Single-pass rewrite request."""


class AnalyzeRequest(_PromptRequest):
    """Premium step one: analyze and generate questions."""

    original_prompt: str = Field(min_length=5, max_length=5000)


class BuildRequest(_PromptRequest):
    """Premium step two: build from answers and details."""

    original_prompt: str = Field(min_length=5, max_length=5000)
    answers: dict[str, UserAnswer] = {}
    additional_details: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("additional_details", mode="before")
    @classmethod
    def _strip_details(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class PublishOutput(BaseModel):
    content: str
    label: Optional[str] = None


class ApplyRequest(BaseModel):
    """Turn a completed optimization into a published prompt."""

    title: str = Field(min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    tags: list[str] = Field(default=[], max_length=10)
    is_public: bool = True
    sample_output: Optional[str] = None
    image_url: Optional[str] = None
    outputs: list[PublishOutput] = []


class FeedbackRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    was_helpful: bool
    comments: Optional[str] = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class AnalyzeResult(BaseModel):
    """Outcome of the premium analyze step."""

    optimization: Optimization
    questions: list[Question]
    additional_details_field: AdditionalDetailsField
    quick_optimized: str


class HistoryStats(BaseModel):
    avg_quality_improvement: float = 0.0
    total_optimizations: int = 0
    quick_count: int = 0
    premium_count: int = 0


class OptimizationHistory(BaseModel):
    """One page of a user's completed optimizations."""

    optimizations: list[Optimization]
    total: int
    page: int
    total_pages: int
    limit: int
    stats: HistoryStats


RequestT = TypeVar("RequestT", bound=BaseModel)


def parse_request(model: type[RequestT], data: dict[str, Any]) -> RequestT:
    """Validate a raw payload, converting pydantic errors to ValidationError."""
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        message = first.get("msg", "Invalid request")
        raise ValidationError(f"{field}: {message}" if field else message) from e
