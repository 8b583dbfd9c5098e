"""Speech output preparation."""

import re
from typing import Protocol

_ONES = (
    "zero",
    "one",
    "two",
    "three",
    "four",
    "five",
    "six",
    "seven",
    "eight",
    "nine",
    "ten",
    "eleven",
    "twelve",
    "thirteen",
    "fourteen",
    "fifteen",
    "sixteen",
    "seventeen",
    "eighteen",
    "nineteen",
)
_TENS = ("", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety")

# Longer digit runs (phone numbers, ZIP codes) are read digit by digit.
MAX_SPOKEN_NUMBER = 9999

_FORM_NAME = re.compile(r"\bN-?400\b", re.IGNORECASE)
_DIGITS = re.compile(r"\d+")


class SpeechSynthesizer(Protocol):
    """Text-to-speech output. Receives text already passed through ``normalize_for_speech``."""

    async def speak(self, text: str) -> None: ...


def number_to_words(value: int) -> str:
    """English words for 0..9999."""
    if value < 20:
        return _ONES[value]
    if value < 100:
        tens, ones = divmod(value, 10)
        return _TENS[tens] if ones == 0 else f"{_TENS[tens]}-{_ONES[ones]}"
    if value < 1000:
        hundreds, rest = divmod(value, 100)
        head = f"{_ONES[hundreds]} hundred"
        return head if rest == 0 else f"{head} {number_to_words(rest)}"
    thousands, rest = divmod(value, 1000)
    head = f"{number_to_words(thousands)} thousand"
    return head if rest == 0 else f"{head} {number_to_words(rest)}"


def _speak_digits(match: re.Match[str]) -> str:
    run = match.group(0)
    value = int(run)
    if value > MAX_SPOKEN_NUMBER or (len(run) > 1 and run.startswith("0")):
        return " ".join(_ONES[int(d)] for d in run)
    return number_to_words(value)


def normalize_for_speech(text: str) -> str:
    """Rewrite officer text so a synthesizer reads it naturally.

    >>> normalize_for_speech("Your N-400 lists 27 amendments")
    'Your N four hundred lists twenty-seven amendments'
    """
    text = _FORM_NAME.sub("N four hundred", text)
    return _DIGITS.sub(_speak_digits, text)
