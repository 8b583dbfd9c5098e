"""Text matching helpers shared by the answer validators."""

import re
from collections.abc import Iterable

_ONES = ["one", "two", "three", "four", "five", "six", "seven", "eight", "nine"]
_TEENS = [
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
]


def _build_number_words() -> dict[str, int]:
    words = {word: i + 1 for i, word in enumerate(_ONES)}
    words.update({word: i + 10 for i, word in enumerate(_TEENS)})
    words["twenty"] = 20
    for i, word in enumerate(_ONES):
        words[f"twenty-{word}"] = 21 + i
    words.update({"thirty": 30, "fifty": 50, "hundred": 100})
    return words


NUMBER_WORDS: dict[str, int] = _build_number_words()

# Spellings checked when the word table has no literal hit.
SPELLED_NUMBERS: dict[int, tuple[str, ...]] = {
    27: ("twenty seven", "twenty-seven"),
    9: ("nine",),
    50: ("fifty",),
    10: ("ten",),
}

# Shorter words (articles, "i", "a") never count as occupation evidence.
MIN_COMPARABLE_WORD_LENGTH = 3
STRING_MATCH_RATIO = 0.7

_DIGITS = re.compile(r"\d+")
_NON_WORD = re.compile(r"[^\w\s'-]")
_SPACES = re.compile(r"\s+")


def digit_runs(text: str) -> list[str]:
    return _DIGITS.findall(text)


def has_digit(text: str) -> bool:
    return _DIGITS.search(text) is not None


def normalize_phrase(text: str) -> str:
    """Lowercase text for phrase lookups, keeping apostrophes and hyphens."""
    text = text.lower().replace("’", "'")
    text = _NON_WORD.sub(" ", text)
    return _SPACES.sub(" ", text).strip()


def contains_phrase(text: str, phrase: str) -> bool:
    """Whole-word phrase search on text already passed through ``normalize_phrase``."""
    pattern = r"(?<![\w'-])" + re.escape(phrase) + r"(?![\w'-])"
    return re.search(pattern, text) is not None


def first_phrase(text: str, phrases: Iterable[str]) -> str | None:
    normalized = normalize_phrase(text)
    for phrase in phrases:
        if contains_phrase(normalized, phrase.lower()):
            return phrase
    return None


def number_word_value(text: str, expected: int) -> str | None:
    """Return the number word in ``text`` that spells ``expected``, if any."""
    letters = re.sub(r"[^a-z\s-]", "", text.lower()).strip()
    for word, value in NUMBER_WORDS.items():
        if value == expected and contains_phrase(letters, word):
            return word
    for variant in SPELLED_NUMBERS.get(expected, ()):
        if contains_phrase(letters, variant):
            return variant
    return None


def _comparable_words(text: str) -> list[str]:
    return [w for w in text.split(" ") if len(w) >= MIN_COMPARABLE_WORD_LENGTH]


def _related(a: str, b: str) -> bool:
    return a.startswith(b) or b.startswith(a)


def strings_match(reference: str, candidate: str) -> bool:
    """Flexible comparison used for occupations.

    Equal strings match, as does one side appearing as whole words inside the
    other. Otherwise at least 70% of the shorter side's words must share a
    prefix with a word on the other side ("engineer" and "engineering").
    Words shorter than MIN_COMPARABLE_WORD_LENGTH are ignored, so a side made
    only of such words never matches.
    """
    ref = normalize_phrase(reference)
    cand = normalize_phrase(candidate)
    ref_words = _comparable_words(ref)
    cand_words = _comparable_words(cand)
    if not ref_words or not cand_words:
        return False
    if ref == cand or contains_phrase(cand, ref) or contains_phrase(ref, cand):
        return True

    matched = [w for w in ref_words if any(_related(w, c) for c in cand_words)]
    return len(matched) >= min(len(ref_words), len(cand_words)) * STRING_MATCH_RATIO


def shared_words(a: str, b: str, min_length: int = 3) -> set[str]:
    """Words of at least ``min_length`` characters present in both strings."""
    words_a = {w for w in a.split() if len(w) >= min_length}
    words_b = {w for w in b.split() if len(w) >= min_length}
    return words_a & words_b
