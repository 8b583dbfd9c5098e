"""civicprep server configuration."""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

_PACKAGE_ROOT = Path(__file__).parent
_REPO_ROOT = _PACKAGE_ROOT.parent.parent


class ServerConfig(BaseSettings):
    """Server settings. Read from CIVICPREP_* environment variables."""

    model_config = {"env_prefix": "CIVICPREP_", "populate_by_name": True}

    config_dir: Path = _REPO_ROOT / "config"
    data_dir: Path = _REPO_ROOT / ".civicprep"
    session_backend: Literal["memory", "file"] = "memory"
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Completion capability. Empty key means the capability is not configured.
    openai_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("CIVICPREP_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    openai_model: str = "gpt-4o-mini"
    completion_timeout: float = 15.0
    history_limit: int = 10

    # Interview protocol
    total_civics_questions: int = 10
    n400_questions_with_form: int = 6
    n400_questions_without_form: int = 3
    local_trust_threshold: float = 0.7
    max_stage_attempts: int = 3
    session_max_age_seconds: int = 24 * 60 * 60
    random_seed: int | None = None
