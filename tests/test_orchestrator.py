import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import requests

from models import DiscardReason, ResolutionOptions
from resolver.errors import (
    EvaluationError,
    MarketAlreadyResolvedError,
    NoReachableWorkersError,
    QuorumNotMetError,
    ResolutionError,
)
from resolver.orchestrator import main, resolve_market

from conftest import ADDR_A, ADDR_B, ADDR_C, fake_response

RESOLVE_BODY = {
    "determination": True,
    "confidence": 0.8,
    "evidence": "Closing price from the exchange archive was 4,102 USD. See source feeds.",
    "sources": ["https://api.exchange-a.com/close", "https://feed.oracle-b.io/eth"],
}


def _http(session, down=(), silent=(), votes=None):
    """Wire a fake session: `down` fail liveness, `silent` fail /a2a/resolve."""
    votes = votes or {}

    def get(url, timeout):
        if any(port in url for port in down):
            raise requests.exceptions.ConnectionError("refused")
        return fake_response({"name": "agent"})

    def post(url, json, timeout):
        port = url.split("worker-")[1][:4]
        if url.endswith("/a2a/resolve"):
            if port in silent:
                raise requests.exceptions.ReadTimeout("slow")
            return fake_response(dict(RESOLVE_BODY, determination=votes.get(port, True)))
        return fake_response({"responses": ["Primary data is timestamped." * 5] * len(json["challenges"])})

    session.get.side_effect = get
    session.post.side_effect = post


def test_full_run_publishes_report(ledger, session, options):
    _http(session, votes={"3102": False})

    outcome = resolve_market(1, ledger, options, session=session, verbose=False)

    assert outcome.report.resolution is True
    assert outcome.report.workers == [ADDR_A, ADDR_B, ADDR_C]
    assert len(outcome.report.dim_scores) == 9
    assert outcome.quorum == 2
    assert outcome.total_workers == 3
    assert outcome.published
    assert ledger.submitted == [outcome.report]
    assert ledger.get_market(1).resolved
    # Correct voters earn the 200 multiplier, the dissenter 50
    assert outcome.report.weights[1] < outcome.report.weights[0]


def test_unreachable_worker_is_published_with_zero_weight(ledger, session, options):
    _http(session, down=("3103",))

    outcome = resolve_market(1, ledger, options, session=session, verbose=False)

    assert outcome.total_workers == 2
    assert outcome.report.workers == [ADDR_A, ADDR_B, ADDR_C]
    assert outcome.report.weights[2] == 0
    assert outcome.report.dim_scores[6:] == [0, 0, 0]
    assert outcome.discovery.valid_workers == 2
    assert [d.reason for d in outcome.discovery.discarded] == [DiscardReason.ENDPOINT_UNREACHABLE]
    # Unreachable workers are never queried
    assert not any("3103" in c.args[0] for c in session.post.call_args_list)


def test_no_reachable_workers(ledger, session, options):
    _http(session, down=("3101", "3102", "3103"))

    with pytest.raises(NoReachableWorkersError) as exc:
        resolve_market(1, ledger, options, session=session, verbose=False)

    assert len(exc.value.report.discarded) == 3
    session.post.assert_not_called()


def test_quorum_failure_produces_no_report(ledger, session, options):
    _http(session, silent=("3102", "3103"))

    with pytest.raises(QuorumNotMetError) as exc:
        resolve_market(1, ledger, options, session=session, verbose=False)

    assert exc.value.received == 1
    assert exc.value.quorum == 2
    assert len(exc.value.report.failures) == 2
    assert ledger.submitted == []
    assert not ledger.get_market(1).resolved


def test_resolved_market_fails_before_any_traffic(ledger, session, options):
    with pytest.raises(MarketAlreadyResolvedError):
        resolve_market(2, ledger, options, session=session, verbose=False)

    session.get.assert_not_called()
    session.post.assert_not_called()


def test_second_attempt_fails(ledger, session):
    options = ResolutionOptions(mock_agent_responses=True)
    resolve_market(1, ledger, options, session=session, verbose=False)

    with pytest.raises(MarketAlreadyResolvedError):
        resolve_market(1, ledger, options, session=session, verbose=False)


def test_mock_mode_skips_http(ledger, session):
    options = ResolutionOptions(mock_agent_responses=True)

    first = resolve_market(1, ledger, options, session=session, publish=False, verbose=False)
    second = resolve_market(1, ledger, options, session=session, publish=False, verbose=False)

    session.get.assert_not_called()
    session.post.assert_not_called()
    assert first.report == second.report
    assert first.report.workers == [ADDR_A, ADDR_B, ADDR_C]
    assert not first.published
    assert ledger.submitted == []


def test_llm_evaluator_is_used(ledger, session):
    options = ResolutionOptions(evaluator="llm", mock_agent_responses=True)
    scores = {
        "resolution_quality": 90, "source_quality": 80, "analysis_depth": 70,
        "reasoning_clarity": 90, "evidence_strength": 90, "bias_awareness": 70,
        "timeliness": 80, "collaboration": 70,
    }
    content = json.dumps({"workers": [
        {"worker_address": a, **scores} for a in (ADDR_A, ADDR_B, ADDR_C)
    ]})
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=None,
    )

    outcome = resolve_market(1, ledger, options, session=session, llm_client=client, verbose=False)

    assert outcome.evaluator == "llm"
    assert outcome.report.dim_scores[:3] == [90, 80, 70]
    client.chat.completions.create.assert_called_once()


def test_evaluation_error_carries_discovery_report(ledger, session):
    options = ResolutionOptions(evaluator="llm", mock_agent_responses=True)
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=""))],
        usage=None,
    )

    with pytest.raises(EvaluationError) as exc:
        resolve_market(1, ledger, options, session=session, llm_client=client, verbose=False)

    assert exc.value.report is not None
    assert exc.value.report.market_id == 1
    assert ledger.submitted == []


# =============================================================================
# CLI
# =============================================================================

def _fixture(tmp_path):
    path = tmp_path / "ledger.json"
    path.write_text(json.dumps({"markets": {
        "1": {"question": "Will it rain?", "workers": [
            {"address": ADDR_A, "endpoint": "http://worker-3101.test"},
            {"address": ADDR_B, "endpoint": "http://worker-3102.test"},
        ]},
        "2": {"question": "Done?", "resolved": True, "workers": []},
    }}))
    return path


def test_cli_mock_run_writes_outcome(tmp_path):
    out = tmp_path / "out" / "outcome.json"

    code = main([
        "--market-id", "1", "--ledger", str(_fixture(tmp_path)),
        "--mock", "--evaluator", "heuristic", "--quiet", "--output", str(out),
    ])

    assert code == 0
    saved = json.loads(out.read_text())
    assert saved["report"]["workers"] == [ADDR_A, ADDR_B]
    assert saved["quorum"] == 2


def test_cli_resolved_market_exits_nonzero(tmp_path, capsys):
    code = main(["--market-id", "2", "--ledger", str(_fixture(tmp_path)), "--mock", "--quiet"])

    assert code == 1
    assert "already resolved" in capsys.readouterr().out


def test_cli_missing_ledger(tmp_path):
    assert main(["--market-id", "1", "--ledger", str(tmp_path / "missing.json"), "--quiet"]) == 2


# =============================================================================
# Worker cap
# =============================================================================

def _crowded_market(ledger, count=11):
    ledger.add_market(5, "Too many workers?")
    for i in range(count):
        ledger.add_worker(5, f"0x{i + 1:040x}", endpoint=f"http://worker-{4000 + i}.test")


def test_worker_cap_in_mock_mode(ledger, session):
    _crowded_market(ledger)
    options = ResolutionOptions(mock_agent_responses=True)

    with pytest.raises(ResolutionError) as exc:
        resolve_market(5, ledger, options, session=session, verbose=False)

    assert "exceeds the cap of 10" in str(exc.value)
    assert exc.value.report.valid_workers == 11
    assert ledger.submitted == []


def test_worker_cap_after_validation(ledger, session, options):
    _crowded_market(ledger)
    _http(session)

    with pytest.raises(ResolutionError):
        resolve_market(5, ledger, options, session=session, verbose=False)

    session.post.assert_not_called()


def test_cli_worker_cap_exits_nonzero(tmp_path, capsys):
    path = tmp_path / "crowded.json"
    path.write_text(json.dumps({"markets": {"1": {"question": "Crowded?", "workers": [
        {"address": f"0x{i + 1:040x}", "endpoint": f"http://worker-{4000 + i}.test"}
        for i in range(11)
    ]}}}))

    assert main(["--market-id", "1", "--ledger", str(path), "--mock", "--quiet"]) == 1
    assert "exceeds the cap" in capsys.readouterr().out
