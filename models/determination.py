"""
Determination models - what workers answered.

These models represent:
- Output of the Ask phase (query_workers.py): Determination
- Output of the Challenge phase (query_workers.py): ChallengeResult

The *Response schemas validate raw worker payloads before they are turned
into the shared models.
"""

from pydantic import BaseModel, ConfigDict, Field, StrictBool


# =============================================================================
# WORKER PAYLOAD SCHEMAS
# =============================================================================

class ResolveResponse(BaseModel):
    """Body of a worker's POST /a2a/resolve reply."""
    determination: StrictBool
    confidence: float = Field(ge=0.0, le=1.0)
    evidence: str
    sources: list[str]


class ChallengeResponse(BaseModel):
    """Body of a worker's POST /a2a/challenge reply."""
    responses: list[str]


# =============================================================================
# SHARED MODELS
# =============================================================================

class Determination(BaseModel):
    """One worker's answer. Never mutated after creation."""
    model_config = ConfigDict(frozen=True)

    worker_address: str
    determination: bool  # True = YES
    confidence: float = Field(ge=0.0, le=1.0)
    evidence: str
    sources: list[str] = Field(default_factory=list)

    @classmethod
    def from_response(cls, worker_address: str, response: ResolveResponse) -> "Determination":
        """Create a Determination from a validated worker reply."""
        return cls(
            worker_address=worker_address,
            determination=response.determination,
            confidence=response.confidence,
            evidence=response.evidence,
            sources=list(response.sources),
        )

    @property
    def label(self) -> str:
        return "YES" if self.determination else "NO"


class ChallengeResult(BaseModel):
    """
    Challenges sent to a worker and the defenses it returned.

    responses may be shorter than challenges (or empty) when the worker did
    not answer; that is not an error.
    """
    model_config = ConfigDict(frozen=True)

    worker_address: str
    challenges: list[str]
    responses: list[str] = Field(default_factory=list)

    @property
    def fully_answered(self) -> bool:
        return len(self.responses) >= len(self.challenges)
