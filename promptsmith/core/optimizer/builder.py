"""Premium prompt building from answers and details."""

import json
import re
from typing import Optional

from ..exceptions import DependencyUnavailable, GenerationFailed
from .gateway import UNAVAILABLE_MESSAGE, AIGateway
from .guidance import select_guidance
from .intent import AllowList, build_allow_list
from .types import MediaType, UserAnswer

_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```$")


def clean_prompt_output(content: str) -> str:
    """Trim the response and drop a wrapping code fence or quotes."""
    text = content.strip()
    text = _FENCE_OPEN.sub("", text)
    text = _FENCE_CLOSE.sub("", text).strip()
    if len(text) >= 2 and text[0] == text[-1] == '"':
        text = text[1:-1].strip()
    return text


class PromptBuilder:
    """Combines the prompt, answers and details into one optimized prompt.

    Building is AI-only; there is no offline fallback.
    """

    def __init__(self, gateway: AIGateway):
        self.gateway = gateway

    async def build(
        self,
        original_prompt: str,
        answers: Optional[dict[str, UserAnswer]],
        additional_details: Optional[str],
        target_model: str,
        parsed_details: Optional[dict[str, str]] = None,
        media_type: Optional[MediaType] = None,
    ) -> str:
        """
        Build the optimized prompt.

        Args:
            original_prompt: The user's prompt
            answers: Answers keyed by question id
            additional_details: Free-form details text
            target_model: Model the prompt is written for
            parsed_details: Categorized details from the detail parser
            media_type: Narrows model-specific formatting conventions

        Returns:
            The optimized prompt text

        Raises:
            DependencyUnavailable: AI gateway not configured
            GenerationFailed: The model returned an empty prompt
        """
        if not self.gateway.is_available:
            raise DependencyUnavailable(UNAVAILABLE_MESSAGE)

        allow_list = build_allow_list(original_prompt, answers, additional_details)
        instruction = self._build_prompt(allow_list, target_model, media_type, parsed_details)

        content = await self.gateway.generate(instruction)
        optimized = clean_prompt_output(content)
        if not optimized:
            raise GenerationFailed("AI returned an empty prompt. Please try again.")
        return optimized

    def _build_prompt(
        self,
        allow_list: AllowList,
        target_model: str,
        media_type: Optional[MediaType],
        parsed_details: Optional[dict[str, str]],
    ) -> str:
        guidance = select_guidance(target_model, media_type)
        details_block = (
            json.dumps(parsed_details, ensure_ascii=False) if parsed_details else "None"
        )

        return f"""You are a prompt optimization expert. Build an optimized prompt from the following information.

Target Model: {target_model}

USER SPECIFIED DETAILS (ONLY USE THESE):
{allow_list.describe()}

ADDITIONAL DETAILS BY CATEGORY (a restatement of the additional details above, not new content):
{details_block}
Use this only to organize the additional details. Ignore any entry that is not stated in USER SPECIFIED DETAILS.

CRITICAL RULES - INTENT PRESERVATION:
1. ONLY use information the user provided (original prompt + answers + additional details)
2. DO NOT add creative details (colors, backgrounds, styles, moods) NOT in the "USER SPECIFIED DETAILS" above
3. DO NOT assume preferences - if user didn't specify a color, don't add one
4. DO NOT add backgrounds, settings, or environments not mentioned by the user
5. DO NOT add moods, emotions, or atmospheres not specified
6. Maintain the user's original intent and simplicity level - if they wanted simple, keep it simple
7. Structure the prompt for {target_model} best practices
8. Combine all user inputs intelligently
9. Fix any grammar issues
10. Improve structure and clarity WITHOUT adding unsolicited details

FORMATTING CONVENTIONS ({guidance.name}):
{guidance.formatting}

VALIDATION CHECKLIST:
- Every color mentioned must be in USER SPECIFIED DETAILS
- Every style mentioned must be in USER SPECIFIED DETAILS
- Every background mentioned must be in USER SPECIFIED DETAILS
- Every mood mentioned must be in USER SPECIFIED DETAILS

Return ONLY the optimized prompt text, nothing else. No explanations, no JSON, just the prompt."""
