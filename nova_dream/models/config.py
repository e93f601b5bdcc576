"""Runtime configuration."""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class ReconcileConfig(BaseModel):
    """Configuration for roadmap reconciliation."""

    similarity_threshold: float = Field(ge=0, le=1, default=0.85)


class AssistantConfig(BaseModel):
    """Configuration for the conversational assistant."""

    api_url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    api_key: Optional[str] = None
    model: str = "google/gemini-3-flash-preview"
    timeout_seconds: float = 60.0
    annual_goal: float = 1_000_000
    intermediate_goal: float = 100_000


class Settings(BaseModel):
    reconcile: ReconcileConfig = ReconcileConfig()
    assistant: AssistantConfig = AssistantConfig()
    signed_url_ttl_seconds: int = 3600
    max_boards: int = Field(ge=1, default=1000)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """Build settings from NOVA_* environment variables (and a .env file)."""
        load_dotenv(dotenv_path)
        assistant = AssistantConfig()
        reconcile = ReconcileConfig()

        assistant_overrides = {}
        if os.getenv("NOVA_LLM_API_URL"):
            assistant_overrides["api_url"] = os.environ["NOVA_LLM_API_URL"]
        if os.getenv("NOVA_LLM_API_KEY"):
            assistant_overrides["api_key"] = os.environ["NOVA_LLM_API_KEY"]
        if os.getenv("NOVA_LLM_MODEL"):
            assistant_overrides["model"] = os.environ["NOVA_LLM_MODEL"]
        if os.getenv("NOVA_LLM_TIMEOUT"):
            assistant_overrides["timeout_seconds"] = os.environ["NOVA_LLM_TIMEOUT"]
        if assistant_overrides:
            assistant = AssistantConfig.model_validate(
                {**assistant.model_dump(), **assistant_overrides}
            )

        if os.getenv("NOVA_SIMILARITY_THRESHOLD"):
            reconcile = ReconcileConfig(
                similarity_threshold=os.environ["NOVA_SIMILARITY_THRESHOLD"]
            )

        return cls(
            reconcile=reconcile,
            assistant=assistant,
            signed_url_ttl_seconds=int(os.getenv("NOVA_SIGNED_URL_TTL", "3600")),
            max_boards=int(os.getenv("NOVA_MAX_BOARDS", "1000")),
            log_level=os.getenv("NOVA_LOG_LEVEL", "INFO"),
        )
