"""
Shared Pydantic models for the CREsolver resolution pipeline.

These models define the data structures that flow between pipeline steps,
ensuring type safety and validation across the entire system.
"""

from models.worker import (
    WorkerReputation,
    Worker,
    MarketState,
    DiscardReason,
    DiscardedWorker,
    WorkerFailure,
    DiscoveryReport,
)
from models.determination import (
    ResolveResponse,
    ChallengeResponse,
    Determination,
    ChallengeResult,
)
from models.evaluation import (
    WorkerEvaluation,
    LLMWorkerScores,
    LLMEvaluationResponse,
)
from models.resolution import (
    ResolutionResult,
    ResolutionReport,
    ResolutionOutcome,
)
from models.options import ResolutionOptions

__all__ = [
    # Worker
    "WorkerReputation",
    "Worker",
    "MarketState",
    "DiscardReason",
    "DiscardedWorker",
    "WorkerFailure",
    "DiscoveryReport",
    # Determination
    "ResolveResponse",
    "ChallengeResponse",
    "Determination",
    "ChallengeResult",
    # Evaluation
    "WorkerEvaluation",
    "LLMWorkerScores",
    "LLMEvaluationResponse",
    # Resolution
    "ResolutionResult",
    "ResolutionReport",
    "ResolutionOutcome",
    # Options
    "ResolutionOptions",
]
