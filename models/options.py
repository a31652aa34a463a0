"""
Resolution options - the typed configuration a caller passes to the engine.

Defaults come from config/settings.py; callers may override any field.
"""

from typing import Literal
from pydantic import BaseModel, Field

from config.settings import Settings, settings as default_settings


class ResolutionOptions(BaseModel):
    """Timeouts, caps and scoring weights for one resolution attempt."""

    # Worker contract
    liveness_path: str = "/.well-known/agent.json"
    resolve_path: str = "/a2a/resolve"
    challenge_path: str = "/a2a/challenge"

    # Timeouts (seconds)
    liveness_timeout: float = Field(default=10.0, gt=0)
    resolve_timeout: float = Field(default=60.0, gt=0)
    challenge_timeout: float = Field(default=15.0, gt=0)
    llm_timeout: float = Field(default=60.0, gt=0)

    # Fan-out and caps
    max_concurrency: int = Field(default=10, ge=1)
    max_workers: int = Field(default=10, ge=1, le=10)

    # Scoring
    evaluator: Literal["heuristic", "llm"] = "heuristic"
    quality_weights: tuple[float, float, float] = (0.4, 0.3, 0.3)
    correct_multiplier: int = 200
    incorrect_multiplier: int = 50
    llm_neutral_score: int = Field(default=50, ge=0, le=100)
    evaluation_model: str = "meta/llama-3.3-70b-instruct"
    llm_max_tokens: int = 16_384
    llm_max_retries: int = Field(default=3, ge=1)

    # Modes
    mock_agent_responses: bool = False

    @classmethod
    def from_settings(cls, settings: Settings = None, **overrides) -> "ResolutionOptions":
        """Build options from environment settings, then apply overrides."""
        s = settings or default_settings
        values = dict(
            liveness_path=s.liveness_path,
            resolve_path=s.resolve_path,
            challenge_path=s.challenge_path,
            liveness_timeout=s.liveness_timeout,
            resolve_timeout=s.resolve_timeout,
            challenge_timeout=s.challenge_timeout,
            llm_timeout=s.llm_timeout,
            max_concurrency=s.max_concurrency,
            max_workers=s.max_workers,
            evaluator=s.evaluator,
            evaluation_model=s.evaluation_model,
            llm_max_tokens=s.llm_max_tokens,
            llm_max_retries=s.llm_max_retries,
            mock_agent_responses=s.mock_agent_responses,
        )
        values.update(overrides)
        return cls(**values)
