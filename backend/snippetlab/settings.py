from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


class LLMProviderEnum(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SNIPPETLAB_", extra="ignore")

    repo_root: Path = Field(default_factory=_default_repo_root)
    data_dir: Path | None = None

    # LLM Provider Configuration
    llm_provider: LLMProviderEnum = LLMProviderEnum.OPENAI
    llm_model: str | None = None
    llm_temperature: float = 0.3

    # Ollama settings
    ollama_base_url: str = "http://localhost:11434"

    # Analysis round-trip
    analysis_timeout_s: float = 60.0
    analysis_max_retries: int = 1

    # Language defaults
    default_language_code: str = "en"
    default_base_language: str = "en"

    # HTTP surface
    cors_origins: list[str] = ["http://127.0.0.1:5173", "http://localhost:5173"]
    request_timeout_s: float = 120.0
    # Optional cap on list responses; unset returns every match
    snippet_list_limit: int | None = None

    def get_default_model_for_provider(self) -> str:
        """Get the default model name for the configured provider."""
        defaults = {
            LLMProviderEnum.OPENAI: "gpt-4o-mini",
            LLMProviderEnum.ANTHROPIC: "claude-3-5-haiku-20241022",
            LLMProviderEnum.OLLAMA: "llama3.1",
        }
        return defaults.get(self.llm_provider, "gpt-4o-mini")

    @property
    def resolved_llm_model(self) -> str:
        return self.llm_model or self.get_default_model_for_provider()

    @property
    def resolved_data_dir(self) -> Path:
        return self.data_dir or (self.repo_root / "data")

    @property
    def db_path(self) -> Path:
        return self.resolved_data_dir / "index" / "snippets.sqlite3"


# Singleton instance - import this instead of creating Settings()
settings = Settings()
