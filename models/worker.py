"""
Worker models - participants discovered from the ledger.

These models represent the output of read_workers.py and
validate_endpoints.py: the workers that will be queried, and the report of
everyone who was left out along the way.
"""

from enum import Enum
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field


class WorkerReputation(BaseModel):
    """Historical averages for a worker, as stored on-chain."""
    model_config = ConfigDict(frozen=True)

    res_quality: int = 0
    src_quality: int = 0
    analysis_depth: int = 0
    count: int = 0  # Prior resolutions; 0 means no history

    @property
    def has_history(self) -> bool:
        return self.count > 0

    @property
    def average(self) -> float:
        """Mean of the three historical dimensions (0-100)."""
        return (self.res_quality + self.src_quality + self.analysis_depth) / 3


class Worker(BaseModel):
    """A registered worker agent for one market. Identity is the address."""
    model_config = ConfigDict(frozen=True)

    address: str
    endpoint: str  # Base URL of the worker's A2A service
    stake: int = 0
    reputation: WorkerReputation = Field(default_factory=WorkerReputation)


class MarketState(BaseModel):
    """Market struct as read from the ledger."""
    question: str
    reward_pool: int = 0
    deadline: int = 0
    creator: str = ""
    resolved: bool = False


# =============================================================================
# DISCOVERY REPORT
# =============================================================================

class DiscardReason(str, Enum):
    """Why a worker candidate was dropped before querying."""
    ENDPOINT_LOOKUP_FAILED = "endpoint_lookup_failed"
    MALFORMED_METADATA = "malformed_metadata"
    NO_SERVICE_DECLARED = "no_a2a_service"
    ENDPOINT_UNREACHABLE = "endpoint_unreachable"


class DiscardedWorker(BaseModel):
    """A worker candidate excluded from the resolution attempt."""
    address: str
    reason: DiscardReason
    detail: str = ""


class WorkerFailure(BaseModel):
    """A recovered per-worker failure during the query phases."""
    address: str
    phase: Literal["resolve", "challenge"]
    detail: str = ""


class DiscoveryReport(BaseModel):
    """
    Consolidated view of degraded participation.

    Informational only: entries here never abort a run on their own.
    """
    market_id: int
    total_on_chain: int = 0
    valid_workers: int = 0
    discarded: list[DiscardedWorker] = Field(default_factory=list)
    failures: list[WorkerFailure] = Field(default_factory=list)

    def discard(self, address: str, reason: DiscardReason, detail: str = "") -> None:
        self.discarded.append(DiscardedWorker(address=address, reason=reason, detail=detail))

    def fail(self, address: str, phase: str, detail: str = "") -> None:
        self.failures.append(WorkerFailure(address=address, phase=phase, detail=detail))

    def summary(self) -> str:
        """Return a summary string."""
        return (
            f"On-chain: {self.total_on_chain} | "
            f"Valid: {self.valid_workers} | "
            f"Discarded: {len(self.discarded)} | "
            f"Query failures: {len(self.failures)}"
        )
