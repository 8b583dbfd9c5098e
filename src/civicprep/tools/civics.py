"""MCP tools for studying the civics question bank."""

from typing import Any

from fastmcp import FastMCP

from civicprep.models.errors import CivicPrepError
from civicprep.services.question_bank import QuestionBank


def register_civics_tools(mcp: FastMCP, question_bank: QuestionBank) -> None:
    """Register the civics study MCP tools."""

    @mcp.tool()
    async def get_civics_question(question_id: int) -> dict[str, Any]:
        """Get one civics question with its acceptable answers.

        Args:
            question_id: Question number, 1 to 128.
        """
        try:
            question = question_bank.get_question(question_id)
        except CivicPrepError as e:
            return {"error": type(e).__name__, "message": str(e)}
        if question is None:
            return {"question_id": question_id, "found": False}
        return {"found": True, **question.model_dump(mode="json")}

    @mcp.tool()
    async def check_civics_answer(question_id: int, answer: str) -> dict[str, Any]:
        """Check a free-form answer to a civics question.

        Matching is lenient: numbers, key words and partial phrasings are accepted.

        Args:
            question_id: Question number, 1 to 128.
            answer: The applicant's answer.
        """
        try:
            question = question_bank.get_question(question_id)
            if question is None:
                return {"question_id": question_id, "found": False}
            return {
                "question_id": question_id,
                "found": True,
                "is_correct": question_bank.validate_answer(question_id, answer),
                "answers": list(question.answers),
            }
        except CivicPrepError as e:
            return {"error": type(e).__name__, "message": str(e)}
