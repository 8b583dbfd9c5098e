"""Officer dialogue: stage prompts, completion glue and fallback templates."""

import logging
import random
from typing import Any

from pydantic import ValidationError

from civicprep.llm.completion import ChatMessage, CompletionClient
from civicprep.models.interview import OfficerReply
from civicprep.models.session import FluencyEvaluation, InterviewSession, InterviewStage, N400FormData

logger = logging.getLogger(__name__)

ACKNOWLEDGEMENT = "Thank you, that's correct."
RETRY_PREFIX = "I'm sorry, I didn't catch that."
MOVE_ON = "Let's move on."
CLOSING_REPLY = "The interview has concluded. Thank you for your time."
CORRECT_FEEDBACK = "That is correct. Well done."
INCORRECT_FEEDBACK = "That is not quite correct. The correct answer is: {answer}"
NEXT_QUESTION = "Next question: {question}"

# Used when no completion service is configured or it fails.
FALLBACK_TEMPLATES: dict[InterviewStage, str] = {
    "greeting": (
        "Good morning, {name}. Welcome to your naturalization interview. I will be conducting "
        "your interview today. We will go through several sections including identity "
        "verification, questions about your application, the oath of allegiance, civics "
        "questions, and reading and writing tests. Please answer my questions clearly and "
        "honestly. Are you ready to begin?"
    ),
    "identity": (
        "First, I need to verify your identity. Can you please confirm your full name and "
        "date of birth?"
    ),
    "n400_review": "Now I'd like to review your N-400 application with you. {question}",
    "oath": (
        "Now I will administer the Oath of Allegiance. This is an important step in becoming "
        "a U.S. citizen. Do you understand the Oath of Allegiance, and are you willing to take it?"
    ),
    "civics": (
        "Now we will move to the civics questions. Please listen carefully and answer each "
        "question. {question}"
    ),
    "reading": 'Now I will test your ability to read in English. Please read this sentence: "{sentence}"',
    "writing": 'Now I will test your ability to write in English. Please write this sentence: "{sentence}"',
    "closing": (
        "Thank you for your cooperation during this interview, {name}. We have completed all "
        "sections. You will be notified of the results in due course. Have a good day."
    ),
}

FLUENCY_TIPS: tuple[str, ...] = (
    "Intenta responder con oraciones completas.",
    "Habla más claro y pausado.",
    "Practica la pronunciación de palabras clave.",
    "Mantén tus respuestas concisas pero completas.",
)

# Keywords in a completion reply that mean the officer accepted the answer.
ACCEPTANCE_KEYWORDS: tuple[str, ...] = ("correct", "thank you", "good", "that's right")

_RESPONSE_FORMAT = """
Respond ONLY with a JSON object of this shape:
{"official_response": "<what the officer says next>",
 "fluency_evaluation": {"score": "<1-10>/10", "tip": "<short improvement tip in Spanish>"},
 "answer_accepted": <true if the applicant's last answer was acceptable, else false>}"""

_FLUENCY_PROMPT = """You are evaluating the English fluency of a citizenship interview applicant.
The applicant responded: "{text}"

Rate their pronunciation and grammar from 1 to 10 and give one helpful suggestion in Spanish.
Respond ONLY with a JSON object: {{"score": "<1-10>/10", "tip": "<suggestion in Spanish>"}}"""

_FLEXIBLE_MATCHING = """
Be VERY flexible when comparing answers with the form:
1. Ignore case, punctuation and extra words ("My address is 123 Main Street" matches "123 Main Street").
2. Treat abbreviations as equal ("St" = "Street", "CA" = "California", "LA" = "Los Angeles").
3. Ignore word order ("Los Angeles, California" = "California, Los Angeles").
4. Accept natural answers in English or Spanish ("I am married" = "Married" = "Estoy casado").
5. Accept numbers as digits or words ("3 trips" = "three trips").
6. Accept all yes/no variations ("Yes I do", "I am willing", "Si", "No I have not", "Never").
If the answer matches, say "Thank you, that's correct" and move on. Never repeat the exact same question."""

_TOPIC_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("address", ("address",)),
    ("occupation", ("occupation", "work", "job")),
    ("marital status", ("marital", "married")),
    ("travel", ("travel", "trip")),
    ("family", ("children", "spouse", "family")),
    ("taxes", ("tax",)),
)


def basic_fluency(text: str, rng: random.Random) -> FluencyEvaluation:
    """Length-based fluency score used without a completion service."""
    length = len(text.strip())
    score = 5
    if length > 20:
        score += 1
    if length > 50:
        score += 1
    if length < 5:
        score -= 2
    score = max(1, min(10, score))
    return FluencyEvaluation(score=f"{score}/10", tip=rng.choice(FLUENCY_TIPS))


def civics_feedback(is_correct: bool, answers: list[str]) -> str:
    if is_correct:
        return CORRECT_FEEDBACK
    answer = " / ".join(answers) if answers else "Please review the study materials."
    return INCORRECT_FEEDBACK.format(answer=answer)


def reply_accepts_answer(reply: OfficerReply) -> bool:
    """Whether a completion reply accepted the applicant's answer."""
    if reply.answer_accepted is not None:
        return reply.answer_accepted
    lower = reply.official_response.lower()
    return any(keyword in lower for keyword in ACCEPTANCE_KEYWORDS)


def asked_topics(session: InterviewSession, window: int = 10) -> list[str]:
    """Topics the officer already raised in the last ``window`` messages."""
    topics: list[str] = []
    for message in session.messages[-window:]:
        if message.role != "officer":
            continue
        content = message.content.lower()
        for topic, keywords in _TOPIC_KEYWORDS:
            if topic not in topics and any(k in content for k in keywords):
                topics.append(topic)
    return topics


def _format_form_data(form: N400FormData) -> str:
    lines: list[str] = []
    for field, value in form.model_dump(exclude={"extra_fields"}).items():
        if value is None or value == []:
            continue
        label = field.replace("_", " ").capitalize()
        if isinstance(value, list):
            lines.append(f"- {label}: {len(value)} record(s)")
        elif isinstance(value, bool):
            lines.append(f"- {label}: {'yes' if value else 'no'}")
        else:
            lines.append(f"- {label}: {value}")
    for key, value in form.extra_fields.items():
        lines.append(f"- {key}: {value}")
    return "\n".join(lines) if lines else "- (no fields provided)"


def _history(session: InterviewSession, limit: int) -> list[ChatMessage]:
    history: list[ChatMessage] = []
    for message in session.messages[-limit:]:
        if message.role == "officer":
            history.append({"role": "assistant", "content": message.content})
        elif message.role == "applicant":
            history.append({"role": "user", "content": message.content})
    return history


class OfficerGenerator:
    """Produces officer lines, through the completion service when one is configured."""

    def __init__(
        self,
        completion: CompletionClient | None = None,
        rng: random.Random | None = None,
        history_limit: int = 10,
    ) -> None:
        self._completion = completion
        self._rng = rng or random.Random()
        self._history_limit = history_limit

    @property
    def available(self) -> bool:
        return self._completion is not None

    def fallback_line(
        self,
        stage: InterviewStage,
        session: InterviewSession,
        *,
        question: str = "",
        sentence: str = "",
    ) -> str:
        template = FALLBACK_TEMPLATES[stage]
        return template.format(
            name=session.context.applicant_name,
            question=question,
            sentence=sentence,
        ).strip()

    def get_stage_prompt(self, stage: InterviewStage, session: InterviewSession) -> str:
        """Instruction text for the completion service at ``stage``."""
        name = session.context.applicant_name or "the applicant"
        base = (
            "You are a professional, friendly and respectful USCIS immigration officer conducting "
            "a naturalization interview. Speak clear, professional English. Be concise but warm. "
            "Ask ONE question at a time.\n\n"
            f"Applicant name: {name}\nCurrent stage: {stage}\n"
        )
        return base + self._stage_instructions(stage, session) + "\n" + _RESPONSE_FORMAT

    def _stage_instructions(self, stage: InterviewStage, session: InterviewSession) -> str:
        if stage == "greeting":
            return (
                "Greet the applicant by name and explain that the interview covers identity "
                "verification, the N-400 review, the oath of allegiance, civics questions and "
                "English reading and writing tests. Ask whether they are ready to begin."
            )
        if stage == "identity":
            return (
                "Verify the applicant's identity. Ask them to confirm their full legal name and "
                "date of birth (Month, Day, Year). Accept verbal descriptions of documents."
            )
        if stage == "n400_review":
            return self._n400_instructions(session)
        if stage == "oath":
            return (
                "Administer the Oath of Allegiance before the civics and English tests. Ask: "
                '"Do you understand the full oath of allegiance to the United States, and are you '
                'willing to take it?" Once they confirm, proceed to the civics test.'
            )
        if stage == "civics":
            current = session.current_civics_question
            if current is None:
                question = "A civics question will be provided to you. Ask it exactly as given."
            else:
                question = (
                    f'The current civics question is: "{current.question}"\n'
                    f"The correct answer(s) are: {' OR '.join(current.answers)}\n"
                    "Ask THIS EXACT question. Do not create or modify questions."
                )
            return (
                f"You are conducting the civics test.\n{question}\n"
                "If the answer is correct, briefly confirm it. Ignore punctuation and accept "
                'variations ("Twenty-seven" = "27").'
            )
        if stage == "reading":
            return (
                "Conduct the English reading test. Ask the applicant to read one sentence aloud. "
                'If they read it correctly say "Good, thank you" and move on to the writing test.'
            )
        if stage == "writing":
            return (
                "Conduct the English writing test. Dictate one sentence for the applicant to write. "
                'If they write it correctly say "Perfect, thank you."'
            )
        return (
            "Conclude the interview. Thank the applicant for their cooperation, explain that they "
            "will receive a notice by mail about the next steps, and say goodbye."
        )

    def _n400_instructions(self, session: InterviewSession) -> str:
        asked = session.n400_questions_asked
        total = session.total_n400_questions
        remaining = max(0, total - asked)
        if remaining == 0:
            return (
                f"You have completed the N-400 review ({asked} questions asked). Thank the "
                "applicant and prepare to administer the oath."
            )
        topics = asked_topics(session)
        topics_line = (
            f"You have already asked about: {', '.join(topics)}"
            if topics
            else "You have not asked any specific questions yet."
        )
        form = session.form_data
        form_block = f"\nN-400 form data (for verification):\n{_format_form_data(form)}\n" if form else ""
        return (
            "Review the N-400 form with the applicant: address, work, marital status, travel and "
            "family.\n"
            f"- You have already asked {asked} out of {total} N-400 questions.\n"
            f"- You can ask at most {remaining} more before moving to the oath.\n"
            f"- {topics_line}\n"
            "- Do not repeat topics you have already covered.\n"
            "Priority: current address, then occupation, then marital status, then travel, then family."
            f"{form_block}{_FLEXIBLE_MATCHING}"
        )

    async def generate_officer_response(
        self,
        session: InterviewSession,
        prompt: str,
        user_message: str | None = None,
    ) -> OfficerReply | None:
        """Ask the completion service for the next officer line.

        Returns:
            The parsed reply, or None when the service is not configured or fails.
        """
        if self._completion is None:
            return None
        data = await self._completion.complete(
            prompt, _history(session, self._history_limit), user_message
        )
        if data is None:
            return None
        return self._parse_reply(data)

    def _parse_reply(self, data: dict[str, Any]) -> OfficerReply | None:
        fluency = data.pop("fluency_evaluation", None)
        try:
            reply = OfficerReply.model_validate(data)
        except ValidationError as e:
            logger.warning("Discarding malformed officer reply: %s", e)
            return None
        if isinstance(fluency, dict):
            try:
                reply.fluency_evaluation = FluencyEvaluation.model_validate(fluency)
            except ValidationError:
                logger.warning("Discarding malformed fluency evaluation: %s", fluency)
        return reply

    async def evaluate_fluency(self, text: str) -> FluencyEvaluation:
        """Score an applicant utterance. Never fails."""
        if self._completion is not None:
            data = await self._completion.complete(_FLUENCY_PROMPT.format(text=text), [], text)
            if data is not None:
                try:
                    return FluencyEvaluation.model_validate(data)
                except ValidationError:
                    logger.warning("Discarding malformed fluency evaluation: %s", data)
        return basic_fluency(text, self._rng)
