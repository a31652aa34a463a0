from models import ChallengeResult
from resolver.evaluate_heuristic import (
    evaluate_heuristic,
    score_analysis_depth,
    score_resolution_quality,
    score_source_quality,
    score_worker,
)

from conftest import ADDR_A, ADDR_B, make_det


def _challenge(address=ADDR_A, responses=None):
    return ChallengeResult(
        worker_address=address,
        challenges=["c1", "c2", "c3"],
        responses=responses if responses is not None else ["x" * 150] * 3,
    )


def test_resolution_quality_calibrated():
    # 40 + 143//20 + 10 (calibrated) + 3 sources * 5
    assert score_resolution_quality(make_det(confidence=0.8)) == 72


def test_resolution_quality_overconfidence_penalty():
    assert score_resolution_quality(make_det(confidence=0.99)) == 52


def test_resolution_quality_long_confident_evidence_not_penalized():
    det = make_det(confidence=0.99, evidence="e" * 400, sources=[])
    assert score_resolution_quality(det) == 60


def test_source_quality_counts_distinct_domains():
    assert score_source_quality(make_det()) == 80

    same_domain = make_det(sources=["https://a.com/1", "https://a.com/2"])
    assert score_source_quality(same_domain) == 30 + 20 + 7


def test_source_quality_floor_without_sources():
    assert score_source_quality(make_det(sources=[])) == 10
    assert score_source_quality(make_det(sources=[], evidence="see http://a.com")) == 20


def test_analysis_depth_rewards_answered_challenges():
    det = make_det()
    assert score_analysis_depth(det) == 35
    assert score_analysis_depth(det, _challenge(responses=[])) == 35
    assert score_analysis_depth(det, _challenge(responses=["x" * 150])) == 45
    assert score_analysis_depth(det, _challenge()) == 55


def test_score_worker_blend():
    ev = score_worker(make_det(), _challenge())
    # 72*0.4 + 80*0.3 + 55*0.3 = 69.3
    assert (ev.resolution_quality, ev.source_quality, ev.analysis_depth) == (72, 80, 55)
    assert ev.quality_score == 69


def test_evaluate_heuristic_is_deterministic(options):
    dets = [make_det(ADDR_A, True), make_det(ADDR_B, False, confidence=0.97, sources=[])]
    crs = [_challenge(ADDR_A), _challenge(ADDR_B, responses=[])]

    first, usage = evaluate_heuristic("Q?", dets, crs, options, verbose=False)
    second, _ = evaluate_heuristic("Q?", dets, crs, options, verbose=False)

    assert first == second
    assert [e.worker_address for e in first] == [ADDR_A, ADDR_B]
    assert usage.requests == 0
    for ev in first:
        for value in (ev.quality_score, *ev.dim_scores):
            assert isinstance(value, int)
            assert 0 <= value <= 100


def test_challenge_lookup_is_case_insensitive(options):
    det = make_det(ADDR_A)
    cr = _challenge(ADDR_A.lower())
    [ev], _ = evaluate_heuristic("Q?", [det], [cr], options, verbose=False)
    assert ev.analysis_depth == 55


def test_score_worker_blend_rounds_half_up():
    # One source: resQ 62, srcQ 47, depth 35; (62 + 47) / 2 = 54.5
    det = make_det(sources=["https://a.com/x"])

    ev = score_worker(det, weights=(0.5, 0.5, 0.0))

    assert (ev.resolution_quality, ev.source_quality) == (62, 47)
    assert ev.quality_score == 55
