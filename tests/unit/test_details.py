"""Tests for free-form detail parsing."""

import json

import pytest

from promptsmith.core.exceptions import GenerationFailed
from promptsmith.core.optimizer.details import DetailParser, clean_parsed_details
from tests.fixtures import MockLLMProvider


@pytest.mark.asyncio
async def test_empty_text_skips_ai(make_gateway):
    provider = MockLLMProvider([])

    assert await DetailParser(make_gateway(provider)).parse("   ") == {}
    assert provider.prompts == []


@pytest.mark.asyncio
async def test_unavailable_keeps_raw_text(make_gateway):
    result = await DetailParser(make_gateway(None)).parse("soft light, calm mood")

    assert result == {"other": "soft light, calm mood"}


@pytest.mark.asyncio
async def test_ai_extraction(make_gateway):
    reply = json.dumps(
        {"style": "watercolor", "colors": "", "mood": "calm", "unknown": "dropped"}
    )
    provider = MockLLMProvider([reply])

    result = await DetailParser(make_gateway(provider)).parse("watercolor, calm", "image")

    assert result == {"style": "watercolor", "mood": "calm"}
    assert "Media type: image" in provider.prompts[0]


@pytest.mark.asyncio
async def test_ai_failure_keeps_raw_text(make_gateway):
    provider = MockLLMProvider([GenerationFailed("boom")])

    result = await DetailParser(make_gateway(provider)).parse("golden hour")

    assert result == {"other": "golden hour"}


def test_all_empty_categories_fall_back():
    assert clean_parsed_details({"style": "", "mood": None}, "text") == {"other": "text"}


def test_list_values_are_joined():
    assert clean_parsed_details({"colors": ["red", " blue "]}, "x") == {"colors": "red, blue"}
