"""
Errors raised by the resolution pipeline.

Everything that aborts a resolution attempt derives from ResolutionError and
carries the DiscoveryReport collected up to the point of failure.
Per-worker problems never raise: they are recorded on the report instead.
"""

from typing import Optional

from models.worker import DiscoveryReport


class ResolutionError(Exception):
    """Fatal error: the resolution attempt produced no result."""

    def __init__(self, message: str, report: Optional[DiscoveryReport] = None):
        super().__init__(message)
        self.report = report


class MarketAlreadyResolvedError(ResolutionError):
    """The market is already marked resolved on the ledger."""


class NoWorkersError(ResolutionError):
    """No worker (or no worker with a resolvable endpoint) was discovered."""


class NoReachableWorkersError(ResolutionError):
    """Every discovered worker failed its liveness probe."""


class NoDeterminationsError(ResolutionError):
    """No worker returned a usable determination."""


class QuorumNotMetError(ResolutionError):
    """Fewer determinations than the BFT quorum requires."""

    def __init__(self, received: int, total: int, quorum: int, report: Optional[DiscoveryReport] = None):
        super().__init__(
            f"BFT quorum not met: {received}/{total} responded (need {quorum})",
            report,
        )
        self.received = received
        self.total = total
        self.quorum = quorum


class EvaluationError(ResolutionError):
    """The configured scoring strategy could not produce evaluations."""


class LedgerError(Exception):
    """A ledger read or write failed."""


class EndpointMetadataError(Exception):
    """A worker's identity metadata did not yield a usable endpoint."""

    def __init__(self, reason, detail: str):
        super().__init__(detail)
        self.reason = reason
        self.detail = detail
