"""MCP tools for running an interview."""

from typing import Any

from fastmcp import FastMCP

from civicprep.models.errors import CivicPrepError
from civicprep.services.interview import InterviewService


def register_interview_tools(mcp: FastMCP, interview_service: InterviewService) -> None:
    """Register the interview MCP tools."""

    @mcp.tool()
    async def init_interview(
        applicant_name: str,
        applicant_age: int | None = None,
        country_of_origin: str | None = None,
        years_in_us: int | None = None,
        current_occupation: str | None = None,
        marital_status: str | None = None,
        children: int | None = None,
        n400_form_data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Start a practice naturalization interview.

        The officer greets the applicant by name. Keep the returned session_id and
        pass it to every other interview tool. When N-400 form data is supplied the
        officer reviews it with the applicant; otherwise that stage is skipped.

        Args:
            applicant_name: Applicant's full name. Must not be empty.
            applicant_age: Age in years.
            country_of_origin: Country of birth or citizenship.
            years_in_us: Years of residence in the United States.
            current_occupation: Current job.
            marital_status: Marital status (single, married, divorced, ...).
            children: Number of children.
            n400_form_data: N-400 answers keyed by field name (current_address, city,
                state, zip_code, current_occupation, marital_status, ...).
        """
        context = {
            "applicant_name": applicant_name,
            "applicant_age": applicant_age,
            "country_of_origin": country_of_origin,
            "years_in_us": years_in_us,
            "current_occupation": current_occupation,
            "marital_status": marital_status,
            "children": children,
            "n400_form_data": n400_form_data,
        }
        try:
            result = await interview_service.init_interview(context)
            return result.model_dump(mode="json")
        except CivicPrepError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def submit_response(session_id: str, response: str) -> dict[str, Any]:
        """Submit the applicant's answer and get the officer's next line.

        During the civics test the result also carries is_correct and feedback.

        Args:
            session_id: Session ID returned by init_interview.
            response: What the applicant said or typed.
        """
        try:
            result = await interview_service.submit_applicant_response(session_id, response)
            return result.model_dump(mode="json")
        except CivicPrepError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def request_auto_message(session_id: str) -> dict[str, Any]:
        """Ask the officer to continue without an applicant answer.

        Returns available=false when nothing is pending; that is not an error.

        Args:
            session_id: Session ID.
        """
        try:
            result = await interview_service.request_auto_message(session_id)
            return result.model_dump(mode="json")
        except CivicPrepError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def get_messages(session_id: str) -> dict[str, Any]:
        """Get the interview transcript in order.

        Args:
            session_id: Session ID.
        """
        try:
            messages = await interview_service.get_messages(session_id)
            return {
                "session_id": session_id,
                "messages": [m.model_dump(mode="json", exclude_none=True) for m in messages],
            }
        except CivicPrepError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def get_session_status(session_id: str) -> dict[str, Any]:
        """Get the current stage and progress counters of an interview.

        Args:
            session_id: Session ID.
        """
        try:
            status = await interview_service.get_session_status(session_id)
            return status.model_dump(mode="json")
        except CivicPrepError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def end_interview(session_id: str) -> dict[str, Any]:
        """End an interview and delete its session.

        Args:
            session_id: Session ID.
        """
        try:
            await interview_service.end_interview(session_id)
            return {"session_id": session_id, "deleted": True}
        except CivicPrepError as e:
            return {"error": type(e).__name__, "message": str(e)}
