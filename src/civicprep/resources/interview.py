"""MCP resources exposing the interview corpora."""

from pathlib import Path

import yaml
from fastmcp import FastMCP

from civicprep.services.question_bank import QUESTIONS_FILE
from civicprep.services.training import TRAINING_FILE


def _dump(path: Path) -> str:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return yaml.dump(data, allow_unicode=True, default_flow_style=False, sort_keys=False)


def register_interview_resources(mcp: FastMCP, config_dir: Path) -> None:
    """Register the corpus MCP resources."""

    @mcp.resource("civicprep://civics/questions")
    async def civics_questions() -> str:
        """The 128 civics questions with their acceptable answers, in English and Spanish."""
        return _dump(config_dir / QUESTIONS_FILE)

    @mcp.resource("civicprep://interview/training")
    async def interview_training() -> str:
        """Reference officer questions, phrase tables, test sentences and term definitions."""
        return _dump(config_dir / TRAINING_FILE)
