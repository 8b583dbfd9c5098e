"""MCP prompts guiding a client through an interview."""

from fastmcp import FastMCP


def register_interview_prompts(mcp: FastMCP) -> None:
    """Register the interview MCP prompts."""

    @mcp.prompt()
    async def start_interview(applicant_name: str) -> str:
        """Prompt for starting a new practice interview.

        Args:
            applicant_name: Name the officer greets the applicant with.
        """
        return (
            f"Start a practice U.S. naturalization interview for {applicant_name}.\n\n"
            "## Steps\n\n"
            f"1. Call `init_interview` with applicant_name=\"{applicant_name}\". If the applicant "
            "has N-400 form answers, pass them as `n400_form_data`.\n"
            "2. **Show the returned `session_id` to the applicant.** Every later call needs it.\n"
            "3. Relay `officer_response` to the applicant exactly as given.\n"
            "4. Send each applicant answer with `submit_response` and relay the officer's reply. "
            "During the civics test also show `feedback`.\n"
            "5. If the applicant has nothing to say but the officer should continue, call "
            "`request_auto_message`.\n"
            "6. Stop when `stage` is `closing` and the officer has said goodbye.\n\n"
            "## Notes\n\n"
            "- Do not answer for the applicant and do not reveal civics answers before they reply.\n"
            "- Show `fluency_evaluation` (score and tip) after each answer when it is present.\n"
            "- Answers may be in English or Spanish; pass them through unchanged.\n"
        )

    @mcp.prompt()
    async def resume_interview(session_id: str) -> str:
        """Prompt for resuming an existing interview.

        Args:
            session_id: ID of the session to resume.
        """
        return (
            f"Resume practice interview `{session_id}`.\n\n"
            "## Steps\n\n"
            "1. Call `get_session_status` to see the current stage and progress.\n"
            "2. Call `get_messages` and repeat the officer's most recent line to the applicant.\n"
            "3. Continue with `submit_response` for each applicant answer.\n\n"
            "## Notes\n\n"
            "- If the session is not found it has expired; start over with `start_interview`.\n"
        )
