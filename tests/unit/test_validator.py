"""Tests for prompt pre-validation."""

import pytest

from promptsmith.core.optimizer.validator import (
    GIBBERISH_MESSAGE,
    NONSENSE_MESSAGE,
    VAGUE_MESSAGE,
    matches_nonsense,
    non_alphanumeric_ratio,
    pre_validate_prompt,
)


class TestHardFailures:
    """Prompts that must never reach the analyzer."""

    @pytest.mark.parametrize("prompt", ["", "   ", "\n\t"])
    def test_empty_prompt_rejected(self, prompt):
        result = pre_validate_prompt(prompt)

        assert result.is_acceptable is False
        assert result.is_valid is False
        assert result.validation_message.startswith("Prompt cannot be empty.")

    def test_symbol_soup_rejected_as_gibberish(self):
        result = pre_validate_prompt("!!!@@@###$$$%%%")

        assert result.is_acceptable is False
        assert result.validation_message == GIBBERISH_MESSAGE

    def test_long_character_run_rejected(self):
        result = pre_validate_prompt("a" * 15)

        assert result.is_acceptable is False
        assert result.validation_message == NONSENSE_MESSAGE

    def test_two_hundred_character_run_rejected(self):
        result = pre_validate_prompt("x" * 200)

        assert result.is_acceptable is False
        assert result.is_valid is False
        assert result.issues == ["Prompt matches nonsense pattern"]
        assert result.validation_message == NONSENSE_MESSAGE

    def test_ten_repeats_is_not_a_run(self):
        # The run pattern needs one character followed by ten more
        assert pre_validate_prompt("a" * 10).is_acceptable is True
        assert pre_validate_prompt("a" * 11).is_acceptable is False

    def test_implausibly_long_word_rejected(self):
        result = pre_validate_prompt("draw supercalifragilisticexpialidocious")

        assert result.is_acceptable is False
        assert "Prompt matches nonsense pattern" in result.issues


class TestWarnings:
    """Prompts that pass with a warning."""

    def test_single_character_is_short_and_vague(self):
        result = pre_validate_prompt("x")

        assert result.is_acceptable is True
        assert "Prompt is extremely short" in result.issues
        assert "Prompt is very vague" in result.issues
        assert result.validation_message == VAGUE_MESSAGE

    def test_single_word_is_vague(self):
        result = pre_validate_prompt("cat")

        assert result.is_acceptable is True
        assert result.validation_message == VAGUE_MESSAGE

    def test_inappropriate_keywords_do_not_block(self):
        result = pre_validate_prompt("explain how attackers exploit weak passwords")

        assert result.is_acceptable is True
        assert "Potentially inappropriate content detected" in result.issues

    def test_clean_prompt_has_no_issues(self):
        result = pre_validate_prompt("A watercolor painting of a cat on a windowsill.")

        assert result.is_acceptable is True
        assert result.is_valid is True
        assert result.issues == []
        assert result.validation_message is None


def test_non_alphanumeric_ratio():
    assert non_alphanumeric_ratio("") == 0.0
    assert non_alphanumeric_ratio("abcd") == 0.0
    assert non_alphanumeric_ratio("ab!!") == 0.5


def test_nonsense_patterns():
    assert matches_nonsense("?!?!")
    assert not matches_nonsense("a cat on a mat")
