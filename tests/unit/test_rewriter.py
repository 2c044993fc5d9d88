"""Tests for the quick rewriter and its rule-based fallback."""

import json
from datetime import timedelta

import pytest

from promptsmith.core.cache import MemoryCache
from promptsmith.core.exceptions import RateLimited, ValidationError
from promptsmith.core.optimizer.analyzer import analyze_prompt
from promptsmith.core.optimizer.rewriter import (
    QuickRewriter,
    preview_rewrite,
    rule_based_rewrite,
)
from tests.fixtures import MockLLMProvider


def _rewrite(prompt: str, media_type: str = "image"):
    return rule_based_rewrite(prompt, analyze_prompt(prompt, media_type))


class TestRuleBasedRewrite:
    """Local fixes applied when the AI is unavailable."""

    def test_informal_request(self):
        text, improvements = _rewrite("draw me a very very nice cat image please")

        assert text == "Create a very very nice cat image please."
        assert text.startswith("Create")
        assert text.endswith(".")
        assert improvements == [
            "Fixed informal language",
            "Added missing articles",
            "Added proper punctuation",
        ]

    def test_missing_articles(self):
        text, _ = _rewrite("make me image of dog")

        assert text == "Create an image of a dog."

    def test_clean_prompt_gets_basic_formatting(self):
        text, improvements = _rewrite("A cat.")

        assert text == "A cat."
        assert improvements == ["Applied basic formatting"]

    def test_existing_punctuation_kept(self):
        text, improvements = _rewrite("the cat sleeps on the sofa!", "text")

        assert text == "The cat sleeps on the sofa!"
        assert "Added proper punctuation" not in improvements


def test_preview_only_touches_prompts_with_grammar_issues():
    prompt = "the cat sleeps on the sofa"

    assert preview_rewrite(prompt, analyze_prompt(prompt, "image")) == prompt

    informal = "draw me a cat"
    assert preview_rewrite(informal, analyze_prompt(informal, "image")) == "Create a cat."


def _ai_reply(**overrides) -> str:
    data = {
        "optimizedPrompt": "Create an image of a cat.",
        "isValid": True,
        "validationMessage": "",
        "improvements": ["Formalized request"],
        "qualityScore": 88,
    }
    data.update(overrides)
    return json.dumps(data)


@pytest.fixture
def cache(clock):
    return MemoryCache(ttl=timedelta(minutes=30), clock=clock)


class TestQuickRewriter:
    """AI rewrite with fallback."""

    @pytest.mark.asyncio
    async def test_ai_rewrite_is_cached(self, make_gateway, cache):
        provider = MockLLMProvider([_ai_reply()])
        rewriter = QuickRewriter(make_gateway(provider), cache)
        analysis = analyze_prompt("draw me a cat", "image")

        result = await rewriter.rewrite("draw me a cat", "dall-e-3", "image", analysis)

        assert result.used_ai is True
        assert result.optimized_prompt == "Create an image of a cat."
        assert result.improvements == ["Formalized request"]
        assert result.quality_score == 88
        assert result.validation_message is None

        again = await rewriter.rewrite("draw me a cat", "dall-e-3", "image", analysis)
        assert again == result
        assert len(provider.prompts) == 1

    @pytest.mark.asyncio
    async def test_invalid_verdict_is_raised(self, make_gateway, cache):
        provider = MockLLMProvider(
            [_ai_reply(isValid=False, validationMessage="This is not a prompt.")]
        )
        rewriter = QuickRewriter(make_gateway(provider), cache)

        with pytest.raises(ValidationError, match="This is not a prompt."):
            await rewriter.rewrite("qwerty", "gpt-4", "text", analyze_prompt("qwerty", "text"))
        assert len(cache) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply", [RateLimited(), "no json here", _ai_reply(optimizedPrompt="   ")]
    )
    async def test_ai_problems_fall_back(self, make_gateway, cache, reply):
        provider = MockLLMProvider([reply])
        rewriter = QuickRewriter(make_gateway(provider), cache)
        prompt = "draw me a cat"

        result = await rewriter.rewrite(prompt, "dall-e-3", "image", analyze_prompt(prompt, "image"))

        assert result.used_ai is False
        assert result.optimized_prompt == "Create a cat."
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_unavailable_uses_rules(self, make_gateway):
        rewriter = QuickRewriter(make_gateway(None))
        prompt = "draw me a cat"

        result = await rewriter.rewrite(prompt, "dall-e-3", "image", analyze_prompt(prompt, "image"))

        assert result.used_ai is False
        assert "Fixed informal language" in result.improvements
