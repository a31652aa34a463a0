"""
Compute the weighted-majority resolution and per-worker reward weights.

Functions for pipeline:
    compute_resolution(determinations, evaluations, workers, on_chain_workers) -> ResolutionResult

Two passes over the evaluated workers:

1. Vote tally: vote_weight = quality_score * rep_factor, summed into YES or
   NO by each worker's determination. resolution = yes_weight >= no_weight,
   so an exact tie resolves YES.
2. Reward weighting: weight = round_half_up(quality_score * multiplier *
   rep_factor), where the multiplier is 200 for workers that matched the
   resolution and 50 otherwise.

The output lists every on-chain worker exactly once, in on-chain order.
Workers with no evaluation (discarded or silent) get weight 0 and scores
[0, 0, 0].
"""

from models.determination import Determination
from models.evaluation import WorkerEvaluation
from models.options import ResolutionOptions
from models.resolution import ResolutionResult
from models.worker import Worker, WorkerReputation
from resolver.scoring import round_half_up


def reputation_factor(reputation: WorkerReputation) -> float:
    """avg/100 + 0.5 for workers with history; 1.0 for newcomers."""
    if reputation.has_history:
        return reputation.average / 100 + 0.5
    return 1.0


def tally_votes(
    determinations: list[Determination],
    evaluations: dict[str, WorkerEvaluation],
    workers: dict[str, Worker],
) -> tuple[float, float]:
    """Sum vote weights into (yes_weight, no_weight)."""
    yes_weight = 0.0
    no_weight = 0.0

    for det in determinations:
        key = det.worker_address.lower()
        ev = evaluations.get(key)
        worker = workers.get(key)
        if ev is None or worker is None:
            continue

        vote_weight = ev.quality_score * reputation_factor(worker.reputation)
        if det.determination:
            yes_weight += vote_weight
        else:
            no_weight += vote_weight

    return yes_weight, no_weight


def compute_resolution(
    determinations: list[Determination],
    evaluations: list[WorkerEvaluation],
    workers: list[Worker],
    on_chain_workers: list[str],
    options: ResolutionOptions = None,
) -> ResolutionResult:
    """
    Decide the market and weight every worker.

    Args:
        determinations: Determinations from the Ask phase
        evaluations: Scores for those determinations
        workers: Queried workers (for reputation)
        on_chain_workers: Every worker address registered for the market
        options: Correctness multipliers

    Returns:
        ResolutionResult covering exactly the on-chain worker set
    """
    correct_mult = options.correct_multiplier if options else 200
    incorrect_mult = options.incorrect_multiplier if options else 50

    eval_map = {e.worker_address.lower(): e for e in evaluations}
    worker_map = {w.address.lower(): w for w in workers}

    yes_weight, no_weight = tally_votes(determinations, eval_map, worker_map)
    resolution = yes_weight >= no_weight

    # Scored entries keyed by address, merged into on-chain order below
    scored: dict[str, tuple[int, tuple[int, int, int]]] = {}
    for det in determinations:
        key = det.worker_address.lower()
        ev = eval_map.get(key)
        worker = worker_map.get(key)
        if ev is None or worker is None or key in scored:
            continue

        multiplier = correct_mult if det.determination == resolution else incorrect_mult
        weight = round_half_up(ev.quality_score * multiplier * reputation_factor(worker.reputation))
        scored[key] = (weight, ev.dim_scores)

    result_workers = []
    result_weights = []
    result_dims = []
    seen = set()
    for address in on_chain_workers:
        key = address.lower()
        if key in seen:
            continue
        seen.add(key)

        weight, dims = scored.get(key, (0, (0, 0, 0)))
        result_workers.append(address)
        result_weights.append(weight)
        result_dims.extend(dims)

    return ResolutionResult(
        resolution=resolution,
        workers=result_workers,
        weights=result_weights,
        dim_scores=result_dims,
    )
