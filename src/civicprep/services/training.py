"""Interview training corpus lookups."""

import logging
import random
from pathlib import Path

import yaml
from pydantic import ValidationError

from civicprep.models.errors import QuestionBankError
from civicprep.models.question import (
    ReviewItem,
    TermDefinition,
    TrainingCorpus,
    TrainingQuestion,
)

logger = logging.getLogger(__name__)

TRAINING_FILE = "interview-training.yaml"


class TrainingService:
    """Read-only access to ``interview-training.yaml``.

    The corpus provides matching hints to the validator, the fallback N-400
    question sequence and the reading and writing sentence pools.
    """

    def __init__(self, config_dir: Path, rng: random.Random | None = None) -> None:
        self._config_dir = config_dir
        self._rng = rng or random.Random()
        self._corpus: TrainingCorpus | None = None

    def _load_corpus(self) -> TrainingCorpus:
        if self._corpus is None:
            training_file = self._config_dir / TRAINING_FILE
            try:
                with open(training_file, encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except FileNotFoundError:
                raise QuestionBankError(str(training_file), "file not found") from None
            try:
                self._corpus = TrainingCorpus.model_validate(data)
            except ValidationError as e:
                raise QuestionBankError(str(training_file), str(e)) from e
            logger.info("Loaded interview training corpus from %s", training_file)
        return self._corpus

    @property
    def corpus(self) -> TrainingCorpus:
        return self._load_corpus()

    def questions_by_category(self, category: str) -> list[TrainingQuestion]:
        """Reference questions of one category, or an empty list for unknown categories."""
        for entry in self._load_corpus().categories:
            if entry.category == category:
                return list(entry.questions)
        return []

    def find_question_by_text(self, text: str) -> TrainingQuestion | None:
        """First reference question whose text or a variation contains ``text``."""
        needle = text.lower()
        for entry in self._load_corpus().categories:
            for question in entry.questions:
                if any(needle in phrasing.lower() for phrasing in question.phrasings()):
                    return question
        return None

    def get_definition(self, term: str) -> TermDefinition | None:
        return self._load_corpus().definitions.get(term)

    def marital_statuses(self) -> dict[str, list[str]]:
        return self._load_corpus().marital_status

    def affirmative_phrases(self) -> list[str]:
        return self._load_corpus().yes_no.affirmative

    def negative_phrases(self) -> list[str]:
        return self._load_corpus().yes_no.negative

    def travel_purposes(self) -> list[str]:
        return self._load_corpus().travel_purposes

    def review_item(self, index: int) -> ReviewItem | None:
        """The fallback N-400 review question at ``index``, wrapping around."""
        sequence = self._load_corpus().n400_review_sequence
        if not sequence:
            return None
        return sequence[index % len(sequence)]

    def random_reading_sentence(self) -> str:
        return self._rng.choice(self._load_corpus().reading_sentences)

    def random_writing_sentence(self) -> str:
        return self._rng.choice(self._load_corpus().writing_sentences)
