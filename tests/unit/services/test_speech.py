"""Speech normalization unit tests."""

import pytest

from civicprep.services.speech import normalize_for_speech, number_to_words


@pytest.mark.parametrize(
    ("value", "words"),
    [
        (0, "zero"),
        (13, "thirteen"),
        (27, "twenty-seven"),
        (50, "fifty"),
        (100, "one hundred"),
        (435, "four hundred thirty-five"),
        (1776, "one thousand seven hundred seventy-six"),
        (2000, "two thousand"),
    ],
)
def test_number_to_words(value: int, words: str) -> None:
    assert number_to_words(value) == words


class TestNormalizeForSpeech:
    def test_form_name(self) -> None:
        assert normalize_for_speech("Let's review your N-400.") == "Let's review your N four hundred."
        assert normalize_for_speech("your n400 form") == "your N four hundred form"

    def test_small_numbers_become_words(self) -> None:
        assert normalize_for_speech("There are 9 justices and 50 states.") == (
            "There are nine justices and fifty states."
        )

    def test_long_runs_read_digit_by_digit(self) -> None:
        assert normalize_for_speech("ZIP 90012") == "ZIP nine zero zero one two"

    def test_leading_zero_read_digit_by_digit(self) -> None:
        assert normalize_for_speech("Apartment 05") == "Apartment zero five"

    def test_text_without_digits_unchanged(self) -> None:
        assert normalize_for_speech("Good morning.") == "Good morning."
