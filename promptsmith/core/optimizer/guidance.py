"""Model-specific guidance selected by substring match on the target model."""

from dataclasses import dataclass
from typing import Optional

from .types import MediaType


@dataclass(frozen=True)
class ModelGuidance:
    """Advice blocks for one family of target models."""

    name: str
    markers: tuple[str, ...]
    media_type: MediaType
    questions: str
    formatting: str


MODEL_GUIDANCE: tuple[ModelGuidance, ...] = (
    ModelGuidance(
        name="DALL-E",
        markers=("dall-e", "dalle"),
        media_type="image",
        questions="""DALL-E specific guidance:
- Focus on clear, descriptive language
- DALL-E works best with comma-separated descriptors
- Include style, composition, and quality indicators
- Consider aspect ratio and detail level""",
        formatting="""- Write one flowing descriptive sentence followed by comma-separated descriptors
- Lead with the subject, then style, composition and quality terms""",
    ),
    ModelGuidance(
        name="Midjourney",
        markers=("midjourney",),
        media_type="image",
        questions="""Midjourney specific guidance:
- Focus on artistic style and composition
- Consider aspect ratios and quality parameters
- Include style modifiers and artistic references
- Think about lighting and mood""",
        formatting="""- Use short comma-separated phrases, most important first
- Only append parameters such as --ar when the user asked for an aspect ratio""",
    ),
    ModelGuidance(
        name="Stable Diffusion",
        markers=("stable diffusion", "stable-diffusion", "sdxl"),
        media_type="image",
        questions="""Stable Diffusion specific guidance:
- Include quality tags and style modifiers
- Consider negative prompts (what to avoid)
- Focus on technical parameters and style
- Include composition and framing details""",
        formatting="""- Use comma-separated tags ordered by importance
- Only add a "Negative prompt:" line for exclusions the user stated""",
    ),
    ModelGuidance(
        name="GPT",
        markers=("gpt", "chatgpt"),
        media_type="text",
        questions="""GPT specific guidance:
- Focus on role, context, and output format
- Include examples when helpful
- Specify tone and style preferences
- Consider token limits and response length""",
        formatting="""- Open with the task, then context, constraints and the expected output format
- Use short labelled sections or bullet points when there are several requirements""",
    ),
    ModelGuidance(
        name="Claude",
        markers=("claude",),
        media_type="text",
        questions="""Claude specific guidance:
- Emphasize clarity and structure
- Include context and constraints
- Specify output format and style
- Consider conversation context if applicable""",
        formatting="""- State the task plainly, then give context and constraints in clear sections
- Describe the expected output format explicitly""",
    ),
)

GENERAL_GUIDANCE = ModelGuidance(
    name="General",
    markers=(),
    media_type="text",
    questions="""General guidance:
- Focus on clarity, specificity, and structure
- Include relevant context and constraints
- Consider output format and quality requirements""",
    formatting="""- Keep the prompt clear and well structured
- Put the main subject or task first""",
)


def select_guidance(target_model: str, media_type: Optional[MediaType] = None) -> ModelGuidance:
    """Pick the guidance block for a target model.

    When a media type is given, families only match within it. Anything
    unmatched gets the general block.
    """
    model_lower = target_model.lower()
    for guidance in MODEL_GUIDANCE:
        if media_type is not None and guidance.media_type != media_type:
            continue
        if any(marker in model_lower for marker in guidance.markers):
            return guidance
    return GENERAL_GUIDANCE
