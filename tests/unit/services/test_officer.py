"""OfficerGenerator unit tests."""

import random
from collections.abc import Callable

import pytest
from conftest import FakeCompletionClient

from civicprep.models.interview import OfficerReply
from civicprep.models.session import (
    STAGE_ORDER,
    CivicsQuestionRef,
    InterviewMessage,
    InterviewSession,
    N400FormData,
)
from civicprep.services.officer import (
    FLUENCY_TIPS,
    OfficerGenerator,
    asked_topics,
    basic_fluency,
    civics_feedback,
    reply_accepts_answer,
)

MakeSession = Callable[..., InterviewSession]


class TestFallbackLines:
    @pytest.mark.parametrize("stage", STAGE_ORDER)
    def test_every_stage_has_a_line(self, officer: OfficerGenerator, make_session: MakeSession, stage: str) -> None:
        line = officer.fallback_line(stage, make_session(), question="Q?", sentence="S.")
        assert line

    def test_greeting_uses_name(self, officer: OfficerGenerator, make_session: MakeSession) -> None:
        assert "Maria Lopez" in officer.fallback_line("greeting", make_session())

    def test_reading_quotes_sentence(self, officer: OfficerGenerator, make_session: MakeSession) -> None:
        line = officer.fallback_line("reading", make_session(), sentence="Who was the first president?")
        assert 'read this sentence: "Who was the first president?"' in line


class TestStagePrompt:
    def test_embeds_name_and_format(self, officer: OfficerGenerator, make_session: MakeSession) -> None:
        prompt = officer.get_stage_prompt("identity", make_session())
        assert "Maria Lopez" in prompt
        assert "official_response" in prompt

    def test_n400_prompt_lists_form_and_topics(
        self, officer: OfficerGenerator, make_session: MakeSession, form_data: N400FormData
    ) -> None:
        session = make_session(
            "Can you confirm your current address?",
            form=form_data,
            stage="n400_review",
            total_n400_questions=6,
            n400_questions_asked=1,
        )
        prompt = officer.get_stage_prompt("n400_review", session)
        assert "Current address: 123 Main Street" in prompt
        assert "Current occupation: Software Engineer" in prompt
        assert "already asked 1 out of 6" in prompt
        assert "at most 5 more" in prompt
        assert "You have already asked about: address" in prompt

    def test_n400_prompt_when_budget_spent(self, officer: OfficerGenerator, make_session: MakeSession) -> None:
        session = make_session(stage="n400_review", total_n400_questions=3, n400_questions_asked=3)
        assert "completed the N-400 review" in officer.get_stage_prompt("n400_review", session)

    def test_civics_prompt_embeds_question(self, officer: OfficerGenerator, make_session: MakeSession) -> None:
        session = make_session(
            stage="civics",
            current_civics_question=CivicsQuestionRef(
                id=1, question="What is the form of government?", answers=["Republic", "Representative democracy"]
            ),
        )
        prompt = officer.get_stage_prompt("civics", session)
        assert '"What is the form of government?"' in prompt
        assert "Republic OR Representative democracy" in prompt


class TestAskedTopics:
    def test_only_officer_messages_in_window(self, make_session: MakeSession) -> None:
        session = make_session("Can you confirm your current address?")
        session.messages.append(InterviewMessage(role="applicant", content="I travel a lot for work"))
        session.messages.append(InterviewMessage(role="officer", content="What is your marital status?"))
        assert asked_topics(session) == ["address", "marital status"]


class TestGenerateOfficerResponse:
    async def test_without_completion_returns_none(self, officer: OfficerGenerator, make_session: MakeSession) -> None:
        assert await officer.generate_officer_response(make_session(), "prompt") is None
        assert officer.available is False

    async def test_maps_history_roles(self, make_session: MakeSession) -> None:
        client = FakeCompletionClient([{"official_response": "Next question."}])
        officer = OfficerGenerator(client, history_limit=2)
        session = make_session("first officer line")
        session.messages.append(InterviewMessage(role="applicant", content="answer one"))
        session.messages.append(InterviewMessage(role="officer", content="second officer line"))

        reply = await officer.generate_officer_response(session, "system prompt", "latest")

        assert reply is not None
        assert reply.official_response == "Next question."
        call = client.calls[0]
        assert call["system_prompt"] == "system prompt"
        assert call["latest_user_turn"] == "latest"
        assert call["history"] == [
            {"role": "user", "content": "answer one"},
            {"role": "assistant", "content": "second officer line"},
        ]

    async def test_failure_returns_none(self, make_session: MakeSession) -> None:
        officer = OfficerGenerator(FakeCompletionClient([None]))
        assert await officer.generate_officer_response(make_session(), "prompt") is None

    async def test_malformed_reply_returns_none(self, make_session: MakeSession) -> None:
        officer = OfficerGenerator(FakeCompletionClient([{"something": "else"}]))
        assert await officer.generate_officer_response(make_session(), "prompt") is None

    async def test_bad_fluency_is_dropped(self, make_session: MakeSession) -> None:
        client = FakeCompletionClient(
            [{"official_response": "Thank you.", "fluency_evaluation": {"score": "N/A", "tip": "?"}}]
        )
        reply = await OfficerGenerator(client).generate_officer_response(make_session(), "prompt")
        assert reply is not None
        assert reply.fluency_evaluation is None

    async def test_fluency_is_parsed(self, make_session: MakeSession) -> None:
        client = FakeCompletionClient(
            [{"respuesta_oficial": "Thank you.", "fluency_evaluation": {"score": "8/10", "tip": "Muy bien"}}]
        )
        reply = await OfficerGenerator(client).generate_officer_response(make_session(), "prompt")
        assert reply is not None
        assert reply.fluency_evaluation is not None
        assert reply.fluency_evaluation.score == "8/10"


class TestFluency:
    @pytest.mark.parametrize(
        ("text", "score"),
        [("hi", "3/10"), ("I am fine", "5/10"), ("I have lived here for ten years", "6/10"), ("x" * 60, "7/10")],
    )
    def test_basic_fluency_by_length(self, text: str, score: str) -> None:
        evaluation = basic_fluency(text, random.Random(0))
        assert evaluation.score == score
        assert evaluation.tip in FLUENCY_TIPS

    async def test_evaluate_without_completion(self, officer: OfficerGenerator) -> None:
        evaluation = await officer.evaluate_fluency("I am ready for my interview")
        assert evaluation.score == "6/10"

    async def test_evaluate_with_completion(self) -> None:
        client = FakeCompletionClient([{"score": "9/10", "tip": "Excelente"}])
        evaluation = await OfficerGenerator(client).evaluate_fluency("Yes, I am ready")
        assert evaluation.score == "9/10"
        assert evaluation.tip == "Excelente"

    async def test_evaluate_falls_back_on_bad_score(self) -> None:
        client = FakeCompletionClient([{"score": "excellent", "tip": "?"}])
        evaluation = await OfficerGenerator(client, rng=random.Random(0)).evaluate_fluency("Yes")
        assert evaluation.score == "3/10"


class TestReplies:
    def test_civics_feedback(self) -> None:
        assert civics_feedback(True, ["Republic"]) == "That is correct. Well done."
        assert civics_feedback(False, ["Republic", "Democracy"]) == (
            "That is not quite correct. The correct answer is: Republic / Democracy"
        )

    def test_explicit_acceptance_wins(self) -> None:
        reply = OfficerReply(official_response="That's correct.", answer_accepted=False)
        assert reply_accepts_answer(reply) is False

    @pytest.mark.parametrize(
        ("text", "accepted"),
        [
            ("Thank you, that's correct.", True),
            ("Good. Next question.", True),
            ("Could you repeat that please?", False),
        ],
    )
    def test_keyword_heuristic(self, text: str, accepted: bool) -> None:
        assert reply_accepts_answer(OfficerReply(official_response=text)) is accepted
