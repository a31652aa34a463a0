from models import WorkerEvaluation, WorkerReputation
from resolver.build_report import build_report
from resolver.compute_resolution import compute_resolution, reputation_factor

from conftest import ADDR_A, ADDR_B, ADDR_C, make_det, make_worker


def _eval(address, quality, dims=None):
    r, s, d = dims or (quality, quality, quality)
    return WorkerEvaluation(
        worker_address=address,
        quality_score=quality,
        resolution_quality=r,
        source_quality=s,
        analysis_depth=d,
    )


def test_reputation_factor():
    assert reputation_factor(WorkerReputation()) == 1.0
    rep = WorkerReputation(res_quality=80, src_quality=70, analysis_depth=60, count=2)
    assert abs(reputation_factor(rep) - 1.2) < 1e-9


def test_unanimous_yes_example():
    addresses = [ADDR_A, ADDR_B, ADDR_C]
    workers = [make_worker(a, 3101 + i) for i, a in enumerate(addresses)]
    dets = [make_det(a, True, confidence=0.8) for a in addresses]
    evals = [_eval(a, 70) for a in addresses]

    result = compute_resolution(dets, evals, workers, addresses)

    assert result.resolution is True
    assert result.workers == addresses
    assert result.weights == [14000, 14000, 14000]
    assert result.dim_scores == [70] * 9


def test_tie_resolves_yes():
    workers = [make_worker(ADDR_A), make_worker(ADDR_B, 3102)]
    dets = [make_det(ADDR_A, True), make_det(ADDR_B, False)]
    evals = [_eval(ADDR_A, 60), _eval(ADDR_B, 60)]

    result = compute_resolution(dets, evals, workers, [ADDR_A, ADDR_B])

    assert result.resolution is True
    assert result.weights == [12000, 3000]


def test_reputation_can_swing_the_vote():
    strong = WorkerReputation(res_quality=90, src_quality=90, analysis_depth=90, count=1)
    workers = [make_worker(ADDR_A), make_worker(ADDR_B, 3102, reputation=strong)]
    dets = [make_det(ADDR_A, True), make_det(ADDR_B, False)]
    evals = [_eval(ADDR_A, 50), _eval(ADDR_B, 45)]

    result = compute_resolution(dets, evals, workers, [ADDR_A, ADDR_B])

    # YES 50 * 1.0 vs NO 45 * 1.4
    assert result.resolution is False
    assert result.weights == [2500, 12600]


def test_non_responders_get_zero_in_on_chain_order():
    workers = [make_worker(ADDR_A), make_worker(ADDR_B, 3102)]
    dets = [make_det(ADDR_A, True), make_det(ADDR_B, True)]
    evals = [_eval(ADDR_A, 70, (72, 80, 55)), _eval(ADDR_B, 60)]
    on_chain = [ADDR_C, ADDR_B, ADDR_A]

    result = compute_resolution(dets, evals, workers, on_chain)

    assert result.workers == on_chain
    assert result.weights == [0, 12000, 14000]
    assert result.dim_scores == [0, 0, 0, 60, 60, 60, 72, 80, 55]


def test_every_on_chain_worker_appears_exactly_once():
    workers = [make_worker(ADDR_A)]
    dets = [make_det(ADDR_A, True)]
    evals = [_eval(ADDR_A, 70)]
    on_chain = [ADDR_A, ADDR_B, ADDR_A.lower()]

    result = compute_resolution(dets, evals, workers, on_chain)

    assert result.workers == [ADDR_A, ADDR_B]
    assert len(result.weights) == len(result.workers)
    assert len(result.dim_scores) == 3 * len(result.workers)


def test_compute_resolution_is_deterministic(options):
    workers = [make_worker(ADDR_A), make_worker(ADDR_B, 3102)]
    dets = [make_det(ADDR_A, True), make_det(ADDR_B, False)]
    evals = [_eval(ADDR_A, 67, (71, 64, 63)), _eval(ADDR_B, 58, (60, 55, 59))]

    first = compute_resolution(dets, evals, workers, [ADDR_A, ADDR_B, ADDR_C], options)
    second = compute_resolution(dets, evals, workers, [ADDR_A, ADDR_B, ADDR_C], options)

    assert first == second
    assert first.model_dump_json() == second.model_dump_json()


def test_build_report_preserves_order():
    workers = [make_worker(ADDR_A)]
    result = compute_resolution([make_det(ADDR_A)], [_eval(ADDR_A, 70)], workers, [ADDR_B, ADDR_A])

    report = build_report(5, result)

    assert report.as_tuple() == (5, [ADDR_B, ADDR_A], [0, 14000], [0, 0, 0, 70, 70, 70], True)
