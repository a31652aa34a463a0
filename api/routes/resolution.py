"""Resolution trigger endpoints."""
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from chain.ledger import MarketLedger
from models.options import ResolutionOptions
from models.worker import DiscoveryReport
from resolver.errors import LedgerError, MarketAlreadyResolvedError, ResolutionError
from resolver.orchestrator import resolve_market

router = APIRouter()


class ResolutionRequest(BaseModel):
    """Request to resolve one market."""
    market_id: int = Field(ge=0, strict=True)
    evaluator: Optional[Literal["heuristic", "llm"]] = None
    mock: Optional[bool] = None
    dry_run: bool = False


class ResolutionResponse(BaseModel):
    """Outcome of a resolution attempt."""
    market_id: int
    resolution: bool
    workers: list[str]
    weights: list[int]
    dim_scores: list[int]
    quorum: int
    total_workers: int
    published: bool
    resolved_at: str
    discovery: DiscoveryReport


def get_ledger(request: Request) -> MarketLedger:
    """Ledger loaded at startup."""
    return request.app.state.ledger


def _error_detail(e: ResolutionError) -> dict:
    return {
        "error": type(e).__name__,
        "message": str(e),
        "discovery": e.report.model_dump(mode="json") if e.report is not None else None,
    }


@router.post("", response_model=ResolutionResponse)
def create_resolution(
    request: ResolutionRequest,
    ledger: MarketLedger = Depends(get_ledger),
):
    """
    Resolve a market and submit the report.

    Runs synchronously: the response carries the published weights and the
    discovery report. Returns 409 if the market is already resolved, 404 if
    the ledger does not know it, and 422 for any other failed attempt.
    """
    overrides = {}
    if request.evaluator is not None:
        overrides["evaluator"] = request.evaluator
    if request.mock is not None:
        overrides["mock_agent_responses"] = request.mock
    options = ResolutionOptions.from_settings(**overrides)

    try:
        outcome = resolve_market(
            request.market_id,
            ledger,
            options,
            publish=not request.dry_run,
        )
    except MarketAlreadyResolvedError as e:
        raise HTTPException(status_code=409, detail=_error_detail(e))
    except ResolutionError as e:
        raise HTTPException(status_code=422, detail=_error_detail(e))
    except LedgerError as e:
        raise HTTPException(status_code=404, detail={"error": "LedgerError", "message": str(e)})

    return ResolutionResponse(
        market_id=outcome.market_id,
        resolution=outcome.report.resolution,
        workers=outcome.report.workers,
        weights=outcome.report.weights,
        dim_scores=outcome.report.dim_scores,
        quorum=outcome.quorum,
        total_workers=outcome.total_workers,
        published=outcome.published,
        resolved_at=outcome.resolved_at,
        discovery=outcome.discovery,
    )
