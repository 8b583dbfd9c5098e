"""FastMCP server entry point."""

import random

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from civicprep.config import ServerConfig
from civicprep.llm.completion import create_completion_client
from civicprep.prompts.interview import register_interview_prompts
from civicprep.resources.interview import register_interview_resources
from civicprep.services.interview import InterviewService
from civicprep.services.officer import OfficerGenerator
from civicprep.services.question_bank import QuestionBank
from civicprep.services.sessions import SessionManager
from civicprep.services.speech import SpeechSynthesizer
from civicprep.services.training import TrainingService
from civicprep.storage.service import create_session_store
from civicprep.tools.civics import register_civics_tools
from civicprep.tools.interview import register_interview_tools
from civicprep.validators.response import ResponseValidator


def create_server(
    config: ServerConfig | None = None,
    speech: SpeechSynthesizer | None = None,
) -> FastMCP:
    """Build the civicprep MCP server and register its tools, resources and prompts.

    Args:
        config: Server settings. Defaults are used when None.
        speech: Optional speech output for officer lines.

    Returns:
        The configured FastMCP instance.
    """
    if config is None:
        config = ServerConfig()

    mcp = FastMCP("civicprep")
    rng = random.Random(config.random_seed)

    # Data access
    store = create_session_store(config.session_backend, config.data_dir)
    sessions = SessionManager(store)

    # Corpora and validation
    question_bank = QuestionBank(config.config_dir, rng=rng)
    training = TrainingService(config.config_dir, rng=rng)
    validator = ResponseValidator(question_bank, training)

    # Officer dialogue
    completion = create_completion_client(
        config.openai_api_key, config.openai_model, config.completion_timeout
    )
    officer = OfficerGenerator(completion, rng=rng, history_limit=config.history_limit)

    interview_service = InterviewService(
        sessions=sessions,
        question_bank=question_bank,
        training=training,
        validator=validator,
        officer=officer,
        config=config,
        speech=speech,
    )

    register_interview_tools(mcp, interview_service)
    register_civics_tools(mcp, question_bank)
    register_interview_resources(mcp, config.config_dir)
    register_interview_prompts(mcp)

    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return mcp
