"""
Centralized configuration for CREsolver.

All configuration values are defined here. Locally they come from the .env
file; in a deployment they come from the process environment.
"""
from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=True, alias="DEBUG")

    # ==========================================================================
    # LLM EVALUATOR (any OpenAI-compatible endpoint)
    # ==========================================================================
    llm_api_key: str = Field(default="", alias="LLM_API_KEY")
    llm_base_url: str = Field(default="https://integrate.api.nvidia.com/v1", alias="LLM_BASE_URL")
    evaluation_model: str = Field(default="meta/llama-3.3-70b-instruct", alias="EVALUATION_MODEL")
    llm_max_tokens: int = Field(default=16_384, alias="LLM_MAX_TOKENS")
    llm_max_retries: int = Field(default=3, alias="LLM_MAX_RETRIES")

    # "heuristic" or "llm"
    evaluator: str = Field(default="heuristic", alias="EVALUATOR")

    # ==========================================================================
    # MODEL PRICING (per 1M tokens)
    # ==========================================================================
    @property
    def model_config_map(self) -> dict:
        """Model-specific pricing used for usage reporting."""
        return {
            "meta/llama-3.3-70b-instruct": {
                "pricing": {"input": 0.0, "output": 0.0},
            },
            "gpt-4o-mini": {
                "pricing": {"input": 0.15, "output": 0.60},
            },
            "gpt-4o": {
                "pricing": {"input": 2.50, "output": 10.00},
            },
        }

    def get_model_config(self, model: str) -> dict:
        """Get configuration for a specific model."""
        return self.model_config_map.get(model, {"pricing": {"input": 0.0, "output": 0.0}})

    # ==========================================================================
    # WORKER AGENT HTTP CONTRACT
    # ==========================================================================
    liveness_path: str = Field(default="/.well-known/agent.json", alias="LIVENESS_PATH")
    resolve_path: str = Field(default="/a2a/resolve", alias="RESOLVE_PATH")
    challenge_path: str = Field(default="/a2a/challenge", alias="CHALLENGE_PATH")

    # ==========================================================================
    # TIMEOUTS (seconds)
    # ==========================================================================
    liveness_timeout: float = Field(default=10.0, alias="LIVENESS_TIMEOUT")
    resolve_timeout: float = Field(default=60.0, alias="RESOLVE_TIMEOUT")
    challenge_timeout: float = Field(default=15.0, alias="CHALLENGE_TIMEOUT")
    llm_timeout: float = Field(default=60.0, alias="LLM_TIMEOUT")

    # ==========================================================================
    # FAN-OUT
    # ==========================================================================
    max_concurrency: int = Field(default=10, alias="MAX_CONCURRENCY")
    max_workers: int = Field(default=10, alias="MAX_WORKERS")

    # ==========================================================================
    # RESOLUTION MODES
    # ==========================================================================
    mock_agent_responses: bool = Field(default=False, alias="MOCK_AGENT_RESPONSES")
    ledger_fixture: str = Field(default="data/ledger.json", alias="LEDGER_FIXTURE")

    # ==========================================================================
    # PATHS
    # ==========================================================================
    @property
    def project_root(self) -> Path:
        """Get the project root directory."""
        return Path(__file__).parent.parent

    @property
    def ledger_fixture_path(self) -> Path:
        """Ledger fixture path, resolved against the project root if relative."""
        path = Path(self.ledger_fixture)
        return path if path.is_absolute() else self.project_root / path

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
