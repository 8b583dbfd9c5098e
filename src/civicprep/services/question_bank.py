"""Civics question bank: selection without repetition and the answer oracle."""

import logging
import random
import re
from collections.abc import Collection
from pathlib import Path

import yaml
from pydantic import ValidationError

from civicprep.models.errors import QuestionBankError
from civicprep.models.question import Question

logger = logging.getLogger(__name__)

QUESTIONS_FILE = "civics-questions.yaml"

# Important questions get this chance while they still make up more than
# IMPORTANT_POOL_RATIO of the remaining pool.
IMPORTANT_PICK_PROBABILITY = 0.7
IMPORTANT_POOL_RATIO = 0.3

SHORT_ANSWER_LENGTH = 30
MIN_WORD_LENGTH = 2
IMPORTANT_KEYWORD_LENGTH = 4
LONG_KEYWORD_LENGTH = 3
VARIABLE_ANSWER_MIN_LENGTH = 2
# Quotes are stripped as well, so "don't" normalizes to "dont".
# Quotes are stripped too, so "don't" and "dont" or a quoted phrase compare equal.
_PUNCTUATION = re.compile(r"[.,;:!?()\[\]{}'\"]")
_DASHES = re.compile(r"[-–—]")
_WHITESPACE = re.compile(r"\s+")
_INTEGER = re.compile(r"\d+")


def normalize_answer(text: str) -> str:
    """Lowercase, drop punctuation, turn dashes into spaces and collapse whitespace."""
    text = _PUNCTUATION.sub("", text.lower())
    text = _DASHES.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def extract_integers(text: str) -> set[int]:
    return {int(m) for m in _INTEGER.findall(text)}


def _words(text: str, min_length: int) -> list[str]:
    return [w for w in text.split(" ") if len(w) > min_length]


def _mutual_substring(a: str, b: str) -> bool:
    return a == b or a in b or b in a


def matches_phrasing(candidate: str, phrasing: str) -> bool:
    """Decide whether a normalized candidate matches one normalized phrasing."""
    candidate_numbers = extract_integers(candidate)
    phrasing_numbers = extract_integers(phrasing)
    if candidate_numbers and phrasing_numbers and candidate_numbers & phrasing_numbers:
        return True

    if candidate == phrasing:
        return True

    if len(phrasing) < SHORT_ANSWER_LENGTH:
        phrasing_words = _words(phrasing, MIN_WORD_LENGTH)
        candidate_words = _words(candidate, MIN_WORD_LENGTH)
        if phrasing_words and all(
            any(_mutual_substring(cw, pw) for cw in candidate_words) for pw in phrasing_words
        ):
            return True
        return any(pw in candidate for pw in phrasing_words if len(pw) > IMPORTANT_KEYWORD_LENGTH)

    return any(kw in candidate for kw in _words(phrasing, LONG_KEYWORD_LENGTH))


class QuestionBank:
    """The fixed civics corpus.

    Questions are read once from ``civics-questions.yaml`` on first use and never
    mutated afterwards. Randomness comes from the injected ``rng`` so selection is
    reproducible under a fixed seed.
    """

    def __init__(self, config_dir: Path, rng: random.Random | None = None) -> None:
        self._config_dir = config_dir
        self._rng = rng or random.Random()
        self._questions: list[Question] | None = None
        self._by_id: dict[int, Question] = {}

    def _load_questions(self) -> list[Question]:
        """Load and validate the question corpus."""
        if self._questions is None:
            questions_file = self._config_dir / QUESTIONS_FILE
            try:
                with open(questions_file, encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except FileNotFoundError:
                raise QuestionBankError(str(questions_file), "file not found") from None
            try:
                questions = [Question.model_validate(q) for q in data["questions"]]
            except (KeyError, TypeError, ValidationError) as e:
                raise QuestionBankError(str(questions_file), str(e)) from e
            by_id = {q.id: q for q in questions}
            if len(by_id) != len(questions):
                raise QuestionBankError(str(questions_file), "duplicate question ids")
            self._questions = questions
            self._by_id = by_id
            logger.info("Loaded %d civics questions from %s", len(questions), questions_file)
        return self._questions

    def get_all_questions(self) -> list[Question]:
        return list(self._load_questions())

    def get_question(self, question_id: int) -> Question | None:
        self._load_questions()
        return self._by_id.get(question_id)

    def get_total_questions(self) -> int:
        return len(self._load_questions())

    def _available(self, exclude_ids: Collection[int]) -> list[Question]:
        excluded = set(exclude_ids)
        return [q for q in self._load_questions() if q.id not in excluded]

    def get_random_question(
        self,
        exclude_ids: Collection[int] = (),
        prioritize_important: bool = False,
    ) -> Question | None:
        """Pick one question not in ``exclude_ids``.

        Args:
            exclude_ids: Ids already asked.
            prioritize_important: Favor questions flagged ``important``.

        Returns:
            A question, or None once every question has been excluded.
        """
        available = self._available(exclude_ids)
        if not available:
            return None

        if prioritize_important:
            important = [q for q in available if q.important]
            if important and len(important) / len(available) > IMPORTANT_POOL_RATIO:
                if self._rng.random() < IMPORTANT_PICK_PROBABILITY:
                    return self._rng.choice(important)

        return self._rng.choice(available)

    def get_random_questions(self, count: int, exclude_ids: Collection[int] = ()) -> list[Question]:
        """Pick up to ``count`` distinct questions not in ``exclude_ids``."""
        available = self._available(exclude_ids)
        if count <= 0 or not available:
            return []
        return self._rng.sample(available, min(count, len(available)))

    def validate_answer(self, question_id: int, candidate: str) -> bool:
        """Check a free-form answer against a question's acceptable phrasings.

        Unknown question ids fail closed.
        """
        question = self.get_question(question_id)
        if question is None:
            return False

        normalized = normalize_answer(candidate)
        if question.variable_answer:
            return len(normalized) > VARIABLE_ANSWER_MIN_LENGTH
        if not normalized:
            return False

        return any(matches_phrasing(normalized, normalize_answer(a)) for a in question.answers)
