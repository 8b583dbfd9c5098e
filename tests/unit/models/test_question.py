"""Question model unit tests."""

import pytest
from pydantic import ValidationError

from civicprep.models.question import Question, TrainingQuestion
from civicprep.models.validation import ValidationResult


class TestQuestion:
    def test_single_answer_becomes_tuple(self) -> None:
        question = Question(id=1, question_en="Q?", answers="Republic", category="government")
        assert question.answers == ("Republic",)

    def test_answer_list(self) -> None:
        question = Question(id=1, question_en="Q?", answers=["A", "B"], category="history")
        assert question.answers == ("A", "B")

    def test_no_answers_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Question(id=1, question_en="Q?", answers=[], category="government")

    def test_is_immutable(self) -> None:
        question = Question(id=1, question_en="Q?", answers="A", category="government")
        with pytest.raises(ValidationError):
            question.id = 2  # type: ignore[misc]

    def test_unknown_category_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Question(id=1, question_en="Q?", answers="A", category="geography")


class TestTrainingQuestion:
    def test_phrasings(self) -> None:
        question = TrainingQuestion(question="What is your name?", variations=["Your name, please?"])
        assert question.phrasings() == ["What is your name?", "Your name, please?"]


class TestValidationResult:
    def test_accept_advances(self) -> None:
        result = ValidationResult.accept(0.9, "ok")
        assert result.is_valid is True
        assert result.should_advance is True

    def test_reject_does_not_advance(self) -> None:
        result = ValidationResult.reject(0.1, "no")
        assert result.is_valid is False
        assert result.should_advance is False

    def test_confidence_bounds(self) -> None:
        with pytest.raises(ValidationError):
            ValidationResult.accept(1.5, "too high")
