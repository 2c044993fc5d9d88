"""Tests for quality scoring."""

import pytest

from promptsmith.core.optimizer.analyzer import analyze_prompt, baseline_score
from promptsmith.core.optimizer.intent import IntentCheck
from promptsmith.core.optimizer.scoring import (
    DEFAULT_IMPROVEMENT,
    INTENT_WARNING,
    PREMIUM_WEIGHTS,
    clamp_score,
    detect_improvements,
    score_quality,
)
from promptsmith.core.optimizer.types import UserAnswer


@pytest.mark.parametrize(
    "value,expected",
    [
        (85, 85),
        (72.6, 73),
        ("90", 90),
        ("88%", 88),
        (150, 100),
        (-5, 0),
        ("abc", None),
        (None, None),
        (True, None),
        (float("nan"), None),
    ],
)
def test_clamp_score(value, expected):
    assert clamp_score(value) == expected


def test_clamp_score_default():
    assert clamp_score("n/a", default=42) == 42


def test_weights_sum_to_one():
    assert sum(PREMIUM_WEIGHTS.values()) == pytest.approx(1.0)


class TestPremium:
    """Premium scoring uses the weighted composite."""

    original = "draw me a cat"
    optimized = "Create a detailed watercolor painting of a cat, centered, in a studio setting."

    def test_composite_after_score(self):
        quality, metadata = score_quality(
            self.original,
            self.optimized,
            "image",
            "premium",
            intent=IntentCheck(preserved=True, score=100),
        )

        after = analyze_prompt(self.optimized, "image")
        expected = round(
            0.25 * after.clarity_score
            + 0.25 * after.specificity_score
            + 0.20 * after.structure_score
            + 0.15 * after.completeness_score
            + 0.15 * 100
        )
        assert quality.after == expected
        assert quality.comprehensive.overall == expected
        assert quality.before == baseline_score(analyze_prompt(self.original, "image"))
        assert quality.intent_preserved is True
        assert metadata.completeness_score == after.completeness_score
        assert metadata.word_count.before == 4

    def test_intent_violation_recorded(self):
        quality, _ = score_quality(
            self.original,
            self.optimized,
            "image",
            "premium",
            intent=IntentCheck(preserved=False, score=80, violations=["x"]),
        )

        assert quality.intent_preserved is False
        assert quality.intent_preservation_score == 80
        assert quality.comprehensive.intent_preservation == 80
        assert quality.improvements[-1] == INTENT_WARNING

    def test_user_inputs_reported(self):
        quality, _ = score_quality(
            self.original,
            self.optimized,
            "image",
            "premium",
            answers={"style": UserAnswer(type="option", value="watercolor")},
            additional_details="in a studio",
        )

        assert "Applied user preferences" in quality.improvements
        assert "Incorporated additional details" in quality.improvements
        assert "Fixed informal language" in quality.improvements

    def test_default_improvement_when_nothing_changed(self):
        quality, _ = score_quality("A cat.", "A cat.", "image", "premium")

        assert quality.improvements == [DEFAULT_IMPROVEMENT]


class TestQuick:
    """Quick scoring trusts the AI score only when the AI rewrote the prompt."""

    def test_ai_score_used(self):
        quality, metadata = score_quality(
            "draw me a cat", "Create an image of a cat.", "image", "quick",
            used_ai=True, ai_score=92, reported_improvements=["Formalized request"],
        )

        assert quality.after == 92
        assert quality.improvements == ["Formalized request"]
        assert metadata.used_ai is True

    def test_unusable_ai_score_falls_back_to_baseline(self):
        quality, _ = score_quality(
            "draw me a cat", "Create an image of a cat.", "image", "quick",
            used_ai=True, ai_score="great",
        )

        assert quality.after == baseline_score(analyze_prompt("Create an image of a cat.", "image"))

    def test_rule_based_uses_baseline(self):
        quality, metadata = score_quality(
            "draw me a cat", "Create a cat.", "image", "quick", ai_score=99,
        )

        assert quality.after == baseline_score(analyze_prompt("Create a cat.", "image"))
        assert quality.after != 99
        assert metadata.used_ai is False
        assert metadata.completeness_score == analyze_prompt("draw me a cat", "image").completeness_score

    def test_issue_list_as_last_resort(self):
        quality, _ = score_quality("cat", "cat", "image", "quick")

        assert quality.improvements == [
            "Fixed: Missing article (a/an/the)",
            "Fixed: Prompt is too short",
        ]


def test_detect_improvements_missing_elements():
    before = analyze_prompt("a cat", "image")
    after = analyze_prompt("a cat, photorealistic, centered", "image")

    improvements = detect_improvements(before, after)

    assert "Added missing elements: style, composition" in improvements
