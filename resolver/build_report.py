"""
Package the resolution for signed publication.

Functions for pipeline:
    build_report(market_id, result) -> ResolutionReport
    publish_report(ledger, report) -> receipt id
"""

from chain.ledger import MarketLedger
from models.resolution import ResolutionReport, ResolutionResult
from resolver.scoring import clamp_score


def build_report(market_id: int, result: ResolutionResult) -> ResolutionReport:
    """Clamp dimension scores into uint8 [0, 100] and keep worker order."""
    return ResolutionReport(
        market_id=market_id,
        workers=list(result.workers),
        weights=[max(0, int(w)) for w in result.weights],
        dim_scores=[clamp_score(s) for s in result.dim_scores],
        resolution=result.resolution,
    )


def publish_report(ledger: MarketLedger, report: ResolutionReport, verbose: bool = True) -> str:
    """Hand the report to the ledger's signing/publication service."""
    receipt = ledger.submit_resolution(report)
    if verbose:
        print(f"   📝 Resolution submitted for market {report.market_id}: "
              f"{'YES' if report.resolution else 'NO'} with {len(report.workers)} workers ({receipt})")
    return receipt
