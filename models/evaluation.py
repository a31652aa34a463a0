"""
Evaluation models - per-worker quality scores.

WorkerEvaluation is the output of both scoring strategies
(evaluate_heuristic.py and evaluate_llm.py).
"""

from pydantic import BaseModel, ConfigDict, Field


class WorkerEvaluation(BaseModel):
    """The three on-chain dimensions plus the blended overall score."""
    model_config = ConfigDict(frozen=True)

    worker_address: str
    quality_score: int = Field(ge=0, le=100)
    resolution_quality: int = Field(ge=0, le=100)
    source_quality: int = Field(ge=0, le=100)
    analysis_depth: int = Field(ge=0, le=100)

    @property
    def dim_scores(self) -> tuple[int, int, int]:
        return (self.resolution_quality, self.source_quality, self.analysis_depth)


# =============================================================================
# LLM OUTPUT SCHEMAS
# =============================================================================

class LLMWorkerScores(BaseModel):
    """
    Eight raw dimensions for one worker, as returned by the model.

    No range constraints here: values are clamped after parsing so that an
    out-of-range number degrades the score instead of failing the run.
    """
    worker_address: str
    resolution_quality: float
    source_quality: float
    analysis_depth: float
    reasoning_clarity: float
    evidence_strength: float
    bias_awareness: float
    timeliness: float
    collaboration: float


class LLMEvaluationResponse(BaseModel):
    """Top-level JSON object the model must return."""
    workers: list[LLMWorkerScores]
