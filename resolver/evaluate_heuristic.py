"""
Deterministic heuristic scoring of worker determinations.

Functions for pipeline:
    evaluate_heuristic(question, determinations, challenge_results) -> (list[WorkerEvaluation], UsageStats)

Scores depend only on the determination and its challenge result, using
integer arithmetic until the final blend, which is rounded half-up. Two
nodes scoring the same inputs always get identical evaluations.
"""

from typing import Optional
from urllib.parse import urlparse

from models.determination import ChallengeResult, Determination
from models.evaluation import WorkerEvaluation
from models.options import ResolutionOptions
from resolver.cost_tracker import UsageStats
from resolver.scoring import clamp_score, round_half_up, short_address


# =============================================================================
# DIMENSION SCORERS
# =============================================================================

def score_resolution_quality(det: Determination) -> int:
    """Evidence volume, confidence calibration and source count."""
    score = 40
    evidence_len = len(det.evidence)

    score += min(30, evidence_len // 20)

    if det.confidence > 0.95 and evidence_len < 200:
        score -= 10  # Overconfident on thin evidence
    elif 0.6 <= det.confidence <= 0.9:
        score += 10

    score += min(20, len(det.sources) * 5)

    return clamp_score(score)


def _source_domain(source: str) -> str:
    host = urlparse(source).hostname
    return host or source


def score_source_quality(det: Determination) -> int:
    """Source count, domain diversity and whether the evidence cites anything."""
    score = 30

    score += min(30, len(det.sources) * 10)
    domains = {_source_domain(s) for s in det.sources}
    score += min(20, len(domains) * 7)

    if not det.sources:
        score = 10

    if "http" in det.evidence or "source" in det.evidence:
        score += 10

    return clamp_score(score)


def score_analysis_depth(det: Determination, challenge: Optional[ChallengeResult] = None) -> int:
    """Evidence length plus how well the worker defended itself."""
    score = 30

    score += min(25, len(det.evidence) // 25)

    if challenge is not None and challenge.responses:
        avg_len = sum(len(r) for r in challenge.responses) / len(challenge.responses)
        score += min(25, int(avg_len // 15))

        if challenge.fully_answered:
            score += 10

    return clamp_score(score)


def score_worker(
    det: Determination,
    challenge: Optional[ChallengeResult] = None,
    weights: tuple[float, float, float] = (0.4, 0.3, 0.3),
) -> WorkerEvaluation:
    """Score one worker on the three on-chain dimensions and blend them."""
    resolution_quality = score_resolution_quality(det)
    source_quality = score_source_quality(det)
    analysis_depth = score_analysis_depth(det, challenge)

    w_res, w_src, w_depth = weights
    quality_score = round_half_up(
        resolution_quality * w_res + source_quality * w_src + analysis_depth * w_depth
    )

    return WorkerEvaluation(
        worker_address=det.worker_address,
        quality_score=max(0, min(100, quality_score)),
        resolution_quality=resolution_quality,
        source_quality=source_quality,
        analysis_depth=analysis_depth,
    )


# =============================================================================
# PUBLIC API (for pipeline use)
# =============================================================================

def evaluate_heuristic(
    question: str,
    determinations: list[Determination],
    challenge_results: list[ChallengeResult],
    options: ResolutionOptions = None,
    verbose: bool = True,
    **_,
) -> tuple[list[WorkerEvaluation], UsageStats]:
    """
    Score every worker with a determination.

    The question is unused; it is part of the shared evaluator signature.

    Returns:
        Tuple of (evaluations in determination order, empty UsageStats)
    """
    weights = options.quality_weights if options else (0.4, 0.3, 0.3)
    challenge_map = {cr.worker_address.lower(): cr for cr in challenge_results}

    evaluations = []
    for det in determinations:
        ev = score_worker(det, challenge_map.get(det.worker_address.lower()), weights)
        evaluations.append(ev)
        if verbose:
            print(f"   {short_address(det.worker_address)}: resQ={ev.resolution_quality} "
                  f"srcQ={ev.source_quality} depth={ev.analysis_depth} (overall={ev.quality_score})")

    return evaluations, UsageStats()
