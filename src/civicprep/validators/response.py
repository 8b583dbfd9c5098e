"""Applicant answer validation.

The validator looks at the last officer line to decide what kind of answer is
expected, then scores the applicant's utterance for that kind. It never raises:
anything it cannot classify or match comes back as a rejected result with low
confidence, and the caller decides what to do next.
"""

import logging
import re

from civicprep.models.session import InterviewSession
from civicprep.models.validation import ExpectedAnswer, ValidationResult
from civicprep.services.question_bank import QuestionBank, normalize_answer
from civicprep.services.training import TrainingService
from civicprep.validators.address import compare_addresses
from civicprep.validators.matching import (
    digit_runs,
    first_phrase,
    has_digit,
    number_word_value,
    strings_match,
)

logger = logging.getLogger(__name__)

# Confidence levels per answer kind.
CIVICS_CORRECT = 0.9
CIVICS_INCORRECT = 0.1
NUMBER_DIGITS = 0.95
NUMBER_WORDS = 0.9
NUMBER_WRONG = 0.2
ADDRESS_LENIENT = 0.9
ADDRESS_INCOMPLETE = 0.3
IDENTITY = 0.8
OCCUPATION_LENIENT = 0.7
OCCUPATION_MATCH = 0.9
OCCUPATION_MISMATCH = 0.3
MARITAL_SAME = 0.95
MARITAL_DIFFERENT = 0.7
MARITAL_NO_REFERENCE = 0.85
MARITAL_UNRECOGNIZED = 0.3
TRAVEL_DIGITS = 0.85
TRAVEL_PURPOSE = 0.8
TRAVEL_WEAK = 0.6
FAMILY_DIGITS = 0.9
FAMILY_TEXT = 0.8
FAMILY_WEAK = 0.7
YES_NO_MATCH = 0.9
YES_NO_UNCLEAR = 0.3
DICTATION_WEAK = 0.6
DICTATION_TOO_SHORT = 0.3
UNCLASSIFIED = 0.0

DICTATION_MIN_OVERLAP = 0.5
DICTATION_MIN_LENGTH = 10
FAMILY_MIN_TEXT_LENGTH = 3

_DICTATION_PROMPT = re.compile(r"\b(read|write) (?:this|the following) sentence\b")
_QUOTED = re.compile(r"[\"“]([^\"”]+)[\"”]")
_ALPHA_RUN = re.compile(r"[a-z]{2,}")

# Numeric civics facts the officer may ask about outside the civics stage.
_NUMERIC_FACTS: tuple[tuple[tuple[str, ...], tuple[str, ...], int], ...] = (
    # (all of, any of, expected)
    (("amendments", "constitution"), (), 27),
    ((), ("how many amendments",), 27),
    ((), ("justices", "supreme court"), 9),
    ((), ("states", "how many states"), 50),
    ((), ("amend", "bill of rights"), 10),
)

_OTHER_TOPICS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("travel", "trip"), "travel"),
    (("family", "children", "spouse"), "family"),
    (("legal", "arrest", "citizen"), "yes_no"),
    (("tax",), "yes_no"),
    (("constitution", "loyalty", "oath"), "yes_no"),
)


def _contains_any(text: str, needles: tuple[str, ...]) -> bool:
    return any(n in text for n in needles)


class ResponseValidator:
    """Classifies the expected answer and scores applicant utterances."""

    def __init__(self, question_bank: QuestionBank, training: TrainingService) -> None:
        self._question_bank = question_bank
        self._training = training

    def detect_expected_answer(self, session: InterviewSession) -> ExpectedAnswer | None:
        """Infer the expected answer kind from the last officer line.

        Returns:
            The expected answer, or None if the officer has not spoken yet.
        """
        last = session.last_officer_message()
        if last is None:
            return None
        message = last.content
        lower = message.lower()

        current = session.current_civics_question
        if current is not None and current.question.lower() in lower:
            return ExpectedAnswer(kind="civics", question_id=current.id)

        if _DICTATION_PROMPT.search(lower):
            quoted = _QUOTED.findall(message)
            return ExpectedAnswer(kind="dictation", sentence=quoted[-1] if quoted else None)

        for required, any_of, expected in _NUMERIC_FACTS:
            if required and all(w in lower for w in required):
                return ExpectedAnswer(kind="number", expected_number=expected)
            if any_of and _contains_any(lower, any_of):
                return ExpectedAnswer(kind="number", expected_number=expected)

        if _contains_any(lower, ("address", "where do you live")):
            return ExpectedAnswer(kind="address")
        if _contains_any(lower, ("name", "date of birth", "birthday")):
            return ExpectedAnswer(kind="identity")
        if _contains_any(lower, ("occupation", "work", "job")):
            return ExpectedAnswer(kind="occupation")
        if _contains_any(lower, ("marital", "married", "single")):
            return ExpectedAnswer(kind="marital_status")

        if "how many" in lower:
            digits = digit_runs(message)
            if digits:
                return ExpectedAnswer(kind="number", expected_number=int(digits[0]))

        topic = ""
        for keywords, name in _OTHER_TOPICS:
            if _contains_any(lower, keywords):
                topic = name
                break
        return ExpectedAnswer(kind="other", topic=topic)

    def validate_response(self, session: InterviewSession, candidate: str) -> ValidationResult:
        """Score an applicant utterance against what the officer last asked."""
        expected = self.detect_expected_answer(session)
        if expected is None:
            return ValidationResult.reject(UNCLASSIFIED, "no officer question to answer")

        if expected.kind == "civics":
            result = self._validate_civics(expected, candidate)
        elif expected.kind == "dictation":
            result = self._validate_dictation(expected, candidate)
        elif expected.kind == "number":
            result = self._validate_number(expected, candidate)
        elif expected.kind == "address":
            result = self._validate_address(session, candidate)
        elif expected.kind == "identity":
            result = ValidationResult.accept(IDENTITY, "identity information accepted")
        elif expected.kind == "occupation":
            result = self._validate_occupation(session, candidate)
        elif expected.kind == "marital_status":
            result = self._validate_marital_status(session, candidate)
        else:
            result = self._validate_other(expected, candidate)

        logger.debug(
            "Session %s: %s answer valid=%s confidence=%.2f (%s)",
            session.id,
            expected.kind,
            result.is_valid,
            result.confidence,
            result.reason,
        )
        return result

    def _validate_civics(self, expected: ExpectedAnswer, candidate: str) -> ValidationResult:
        if expected.question_id is not None and self._question_bank.validate_answer(
            expected.question_id, candidate
        ):
            return ValidationResult.accept(CIVICS_CORRECT, "correct civics answer")
        return ValidationResult.reject(CIVICS_INCORRECT, "incorrect or unrecognized civics answer")

    def _validate_number(self, expected: ExpectedAnswer, candidate: str) -> ValidationResult:
        target = expected.expected_number
        if target is None:
            return ValidationResult.reject(UNCLASSIFIED, "no expected number")

        if any(int(d) == target for d in digit_runs(candidate)):
            return ValidationResult.accept(NUMBER_DIGITS, f"correct number: {target}")

        word = number_word_value(candidate, target)
        if word is not None:
            return ValidationResult.accept(NUMBER_WORDS, f"correct number ({word} = {target})")

        return ValidationResult.reject(NUMBER_WRONG, f"expected number: {target}")

    def _validate_address(self, session: InterviewSession, candidate: str) -> ValidationResult:
        form = session.form_data
        reference = form.full_address() if form is not None else None
        if not reference:
            if has_digit(candidate) and _ALPHA_RUN.search(candidate.lower()):
                return ValidationResult.accept(ADDRESS_LENIENT, "address looks complete")
            return ValidationResult.reject(ADDRESS_INCOMPLETE, "answer does not look like an address")
        return compare_addresses(reference, candidate)

    def _validate_occupation(self, session: InterviewSession, candidate: str) -> ValidationResult:
        form = session.form_data
        reference = form.current_occupation if form is not None else None
        reference = reference or session.context.current_occupation
        if not reference:
            return ValidationResult.accept(OCCUPATION_LENIENT, "no occupation on file")
        if strings_match(reference, candidate):
            return ValidationResult.accept(OCCUPATION_MATCH, "occupation matches")
        return ValidationResult.reject(OCCUPATION_MISMATCH, "occupation does not match")

    def classify_marital_status(self, text: str) -> str | None:
        """Marital status category named in ``text``, checked in corpus order."""
        for status, phrasings in self._training.marital_statuses().items():
            if first_phrase(text, phrasings) is not None:
                return status
        return None

    def _validate_marital_status(self, session: InterviewSession, candidate: str) -> ValidationResult:
        answered = self.classify_marital_status(candidate)
        if answered is None:
            return ValidationResult.reject(MARITAL_UNRECOGNIZED, "marital status not recognized")

        form = session.form_data
        reference = form.marital_status if form is not None else None
        reference = reference or session.context.marital_status
        if not reference:
            return ValidationResult.accept(MARITAL_NO_REFERENCE, f"marital status: {answered}")
        if self.classify_marital_status(reference) == answered:
            return ValidationResult.accept(MARITAL_SAME, "marital status matches")
        return ValidationResult.accept(MARITAL_DIFFERENT, f"marital status {answered} differs from form")

    def classify_yes_no(self, text: str) -> str | None:
        """'no', 'yes' or None. Negative phrases are checked first."""
        if first_phrase(text, self._training.negative_phrases()) is not None:
            return "no"
        if first_phrase(text, self._training.affirmative_phrases()) is not None:
            return "yes"
        return None

    def _validate_other(self, expected: ExpectedAnswer, candidate: str) -> ValidationResult:
        if expected.topic == "travel":
            if has_digit(candidate):
                return ValidationResult.accept(TRAVEL_DIGITS, "travel answer with numbers")
            if first_phrase(candidate, self._training.travel_purposes()) is not None:
                return ValidationResult.accept(TRAVEL_PURPOSE, "travel purpose given")
            return ValidationResult.accept(TRAVEL_WEAK, "travel answer accepted")

        if expected.topic == "family":
            if has_digit(candidate):
                return ValidationResult.accept(FAMILY_DIGITS, "family answer with numbers")
            text = normalize_answer(candidate)
            if len(text) > FAMILY_MIN_TEXT_LENGTH and self.classify_yes_no(text) is None:
                return ValidationResult.accept(FAMILY_TEXT, "family details given")
            return ValidationResult.accept(FAMILY_WEAK, "family answer accepted")

        if expected.topic == "yes_no":
            answer = self.classify_yes_no(candidate)
            if answer is not None:
                return ValidationResult.accept(YES_NO_MATCH, f"answered {answer}")
            return ValidationResult.reject(YES_NO_UNCLEAR, "expected a yes or no answer")

        return ValidationResult.reject(UNCLASSIFIED, "question type not recognized")

    def _validate_dictation(self, expected: ExpectedAnswer, candidate: str) -> ValidationResult:
        text = normalize_answer(candidate)
        if expected.sentence is None:
            if len(text) > DICTATION_MIN_LENGTH:
                return ValidationResult.accept(DICTATION_WEAK, "sentence attempt accepted")
            return ValidationResult.reject(DICTATION_TOO_SHORT, "sentence attempt too short")

        target_words = normalize_answer(expected.sentence).split()
        candidate_words = set(text.split())
        if not target_words:
            return ValidationResult.reject(UNCLASSIFIED, "empty sentence")
        overlap = sum(1 for w in target_words if w in candidate_words) / len(target_words)
        if overlap >= DICTATION_MIN_OVERLAP:
            return ValidationResult.accept(overlap, f"sentence matches ({overlap:.0%} of words)")
        return ValidationResult.reject(overlap, f"sentence does not match ({overlap:.0%} of words)")
