from resolver.mock_agents import generate_mock_challenge_results, generate_mock_determinations

from conftest import ADDR_A, ADDR_B, ADDR_C, make_worker


def _workers():
    return [make_worker(ADDR_A, 3101), make_worker(ADDR_B, 3102), make_worker(ADDR_C, 3103)]


def test_first_two_workers_disagree():
    dets = generate_mock_determinations(_workers(), 1)

    assert [d.worker_address for d in dets] == [ADDR_A, ADDR_B, ADDR_C]
    assert dets[0].determination is True
    assert dets[1].determination is False


def test_mock_determinations_are_reproducible():
    first = generate_mock_determinations(_workers(), 3)
    second = generate_mock_determinations(_workers(), 3)

    assert first == second
    for det in first:
        assert 0.65 <= det.confidence <= 0.95
        assert 2 <= len(det.sources) <= 4
        assert det.evidence


def test_single_worker_uses_seeded_vote():
    [det] = generate_mock_determinations([make_worker(ADDR_C)], 9)
    [again] = generate_mock_determinations([make_worker(ADDR_C)], 9)
    assert det.determination == again.determination


def test_every_challenge_is_answered():
    dets = generate_mock_determinations(_workers(), 1)

    results = generate_mock_challenge_results(dets)

    assert [r.worker_address for r in results] == [ADDR_A, ADDR_B, ADDR_C]
    for result in results:
        assert len(result.challenges) == 3
        assert result.fully_answered
        # Workers disagree, so nobody gets the devil's advocate set
        assert result.challenges[0].startswith("Other workers reached the opposite conclusion")
