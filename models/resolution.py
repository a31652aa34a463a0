"""
Resolution models - the final decision and what is published.

These models represent:
- Output of compute_resolution.py: ResolutionResult
- Output of build_report.py: ResolutionReport
- Output of orchestrator.py: ResolutionOutcome
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from models.determination import Determination, ChallengeResult
from models.evaluation import WorkerEvaluation
from models.worker import DiscoveryReport


class ResolutionResult(BaseModel):
    """
    Weighted-majority decision plus per-worker reward weights.

    dim_scores is flat: three values per worker, in the same order as workers.
    """
    model_config = ConfigDict(frozen=True)

    resolution: bool
    workers: list[str]
    weights: list[int]
    dim_scores: list[int]

    @model_validator(mode="after")
    def _check_shape(self) -> "ResolutionResult":
        if len(self.weights) != len(self.workers):
            raise ValueError(
                f"weights length {len(self.weights)} != workers length {len(self.workers)}"
            )
        if len(self.dim_scores) != 3 * len(self.workers):
            raise ValueError(
                f"dim_scores length {len(self.dim_scores)} != 3 * {len(self.workers)} workers"
            )
        return self


class ResolutionReport(BaseModel):
    """
    Payload handed to the signing/publication collaborator.

    Encoded downstream as
    (uint256 marketId, address[] workers, uint256[] weights, uint8[] dimScores, bool resolution).
    """
    model_config = ConfigDict(frozen=True)

    market_id: int = Field(ge=0)
    workers: list[str]
    weights: list[int]
    dim_scores: list[int]
    resolution: bool

    def as_tuple(self) -> tuple:
        return (self.market_id, self.workers, self.weights, self.dim_scores, self.resolution)


class ResolutionOutcome(BaseModel):
    """
    Complete output of a resolution attempt.

    Wraps the published report with the intermediate artifacts and the
    discovery report, so the caller sees degraded participation alongside
    the decision.
    """
    market_id: int
    question: str
    evaluator: str
    total_workers: int  # Workers queried in the Ask phase
    quorum: int
    discovery: DiscoveryReport
    determinations: list[Determination]
    challenge_results: list[ChallengeResult]
    evaluations: list[WorkerEvaluation]
    result: ResolutionResult
    report: ResolutionReport
    published: bool = False
    resolved_at: str  # ISO timestamp
    cost_usd: Optional[float] = None
