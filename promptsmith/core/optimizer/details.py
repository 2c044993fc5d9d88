"""Free-form detail extraction."""

import logging
from typing import Any, Optional

from ..exceptions import AIServiceError
from .gateway import AIGateway
from .types import MediaType

logger = logging.getLogger(__name__)

DETAIL_CATEGORIES = (
    "style",
    "colors",
    "lighting",
    "mood",
    "details",
    "background",
    "composition",
    "quality",
    "other",
)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item).strip() for item in value if str(item).strip())
    return str(value).strip()


def clean_parsed_details(parsed: dict[str, Any], original_text: str) -> dict[str, str]:
    """Keep known, non-empty categories; fall back to the raw text under 'other'."""
    cleaned = {
        category: _as_text(parsed.get(category))
        for category in DETAIL_CATEGORIES
    }
    cleaned = {category: value for category, value in cleaned.items() if value}
    if not cleaned:
        return {"other": original_text}
    return cleaned


class DetailParser:
    """Turns open-ended user text into categorized attributes."""

    def __init__(self, gateway: AIGateway):
        self.gateway = gateway

    async def parse(self, text: str, media_type: Optional[MediaType] = None) -> dict[str, str]:
        """Extract only what the user stated.

        Without the AI (or when it fails) the whole input is kept under
        'other'; no local extraction is attempted.
        """
        text = text.strip()
        if not text:
            return {}

        if not self.gateway.is_available:
            return {"other": text}

        try:
            parsed = await self.gateway.generate_json(self._extraction_prompt(text, media_type))
        except AIServiceError as e:
            logger.error(f"Failed to parse free-form input: {e}")
            return {"other": text}

        return clean_parsed_details(parsed, text)

    def _extraction_prompt(self, text: str, media_type: Optional[MediaType]) -> str:
        media_context = (
            f"Media type: {media_type}. Focus on {media_type}-specific details."
            if media_type
            else ""
        )
        return f"""You are an expert at parsing user input for prompt optimization. Extract structured information from this user input: "{text}"

{media_context}

Extract and categorize:
- Style/artistic direction (photorealistic, cartoon, artistic, etc.)
- Colors/color palette (specific colors, warm/cool tones, etc.)
- Lighting conditions (natural, studio, golden hour, etc.)
- Mood/atmosphere (cozy, dramatic, peaceful, etc.)
- Specific details (breed, pose, accessories, etc.)
- Setting/background (indoor, outdoor, specific locations, etc.)
- Composition elements (centered, rule of thirds, close-up, etc.)
- Quality indicators (high-resolution, professional, etc.)
- Any other relevant characteristics

IMPORTANT: Only extract what is explicitly mentioned. Do not infer or add details.

Return as valid JSON with these categories. Use an empty string for anything not mentioned. If something doesn't fit a category, include it in "other".

Format:
{{
  "style": "...",
  "colors": "...",
  "lighting": "...",
  "mood": "...",
  "details": "...",
  "background": "...",
  "composition": "...",
  "quality": "...",
  "other": "..."
}}

Only return the JSON, no other text."""
