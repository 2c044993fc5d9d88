"""Tests for the rule-based prompt analyzer."""

import pytest

from promptsmith.core.optimizer.analyzer import (
    INFORMAL_ISSUE,
    MISSING_ARTICLE_ISSUE,
    NO_PUNCTUATION_ISSUE,
    TOO_SHORT_ISSUE,
    analyze_prompt,
    baseline_score,
    check_grammar,
    check_structure,
    find_missing_elements,
)


def test_analysis_is_deterministic():
    prompt = "draw me a very very nice cat image please"

    assert analyze_prompt(prompt, "image") == analyze_prompt(prompt, "image")


def test_informal_image_prompt():
    analysis = analyze_prompt("draw me a cat", "image")

    assert analysis.word_count == 4
    assert analysis.missing_elements == [
        "style",
        "composition",
        "background",
        "quality_indicators",
    ]
    assert analysis.completeness_score == 0
    assert analysis.grammar_issues == [INFORMAL_ISSUE]
    assert analysis.structure_issues == []
    assert analysis.clarity_score == 85
    assert analysis.specificity_score == 20
    assert analysis.structure_score == 100
    assert baseline_score(analysis) == 68


def test_complete_text_prompt():
    prompt = "Write a formal essay about climate change policy in Europe for university students."
    analysis = analyze_prompt(prompt, "text")

    assert analysis.missing_elements == []
    assert analysis.completeness_score == 100


def test_missing_elements_for_video():
    assert find_missing_elements("a short clip", "video") == ["style", "technical_specs"]


def test_missing_article_detected():
    assert MISSING_ARTICLE_ISSUE in check_grammar("create image of dog")
    assert MISSING_ARTICLE_ISSUE not in check_grammar("create an image of a dog")


def test_structure_issues():
    assert check_structure("cat") == [TOO_SHORT_ISSUE]
    assert check_structure("a cat sitting on a sunny windowsill") == [NO_PUNCTUATION_ISSUE]
    assert check_structure("a cat sitting on a sunny windowsill.") == []


@pytest.mark.parametrize(
    "prompt,media_type",
    [
        ("x", "text"),
        ("draw me image", "image"),
        ("A detailed, specific, precise and exact clear beautiful description " * 5, "image"),
        ("A thirty second promo video in 4k at 60 fps, cinematic style.", "video"),
        ("Compose a calm ambient track", "audio"),
    ],
)
def test_scores_stay_in_range(prompt, media_type):
    analysis = analyze_prompt(prompt, media_type)

    for score in (
        analysis.completeness_score,
        analysis.clarity_score,
        analysis.specificity_score,
        analysis.structure_score,
        baseline_score(analysis),
    ):
        assert 0 <= score <= 100
        assert isinstance(score, int)
