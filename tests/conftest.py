"""Shared fixtures for the resolution pipeline tests."""
from unittest.mock import MagicMock

import pytest
import requests

from chain.ledger import InMemoryLedger
from models import Determination, ResolutionOptions, Worker, WorkerReputation

ADDR_A = "0xAaAaAaAaAaAaAaAaAaAaAaAaAaAaAaAaAaAaAaAa"
ADDR_B = "0xBbBbBbBbBbBbBbBbBbBbBbBbBbBbBbBbBbBbBbBb"
ADDR_C = "0xCcCcCcCcCcCcCcCcCcCcCcCcCcCcCcCcCcCcCcCc"

EVIDENCE = (
    "Official exchange data shows the closing price above the threshold. "
    "Cross-checked against two independent price feeds and the exchange archive."
)


def make_det(address=ADDR_A, determination=True, confidence=0.8, evidence=EVIDENCE, sources=None):
    if sources is None:
        sources = [
            "https://api.exchange-a.com/close",
            "https://feed.oracle-b.io/eth",
            "https://archive.exchange-c.org/2026",
        ]
    return Determination(
        worker_address=address,
        determination=determination,
        confidence=confidence,
        evidence=evidence,
        sources=sources,
    )


def make_worker(address=ADDR_A, port=3101, reputation=None):
    return Worker(
        address=address,
        endpoint=f"http://worker-{port}.test",
        stake=10**16,
        reputation=reputation or WorkerReputation(),
    )


def fake_response(body=None, status=200, json_error=None):
    """A requests.Response stand-in."""
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body
    if response.ok:
        response.raise_for_status.return_value = None
    else:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status} error", response=response
        )
    return response


@pytest.fixture
def options():
    return ResolutionOptions()


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def ledger():
    """Market 1 with three workers, market 2 already resolved."""
    ledger = InMemoryLedger()
    ledger.add_market(1, "Will ETH close above $4,000 on 2026-06-30?")
    ledger.add_worker(1, ADDR_A, endpoint="http://worker-3101.test", stake=10**16)
    ledger.add_worker(1, ADDR_B, endpoint="http://worker-3102.test/", stake=10**16)
    ledger.add_worker(
        1, ADDR_C, endpoint="http://worker-3103.test", stake=10**16,
        reputation=WorkerReputation(res_quality=80, src_quality=70, analysis_depth=60, count=2),
    )
    ledger.add_market(2, "Already settled?", resolved=True)
    ledger.add_worker(2, ADDR_A, endpoint="http://worker-3101.test")
    return ledger
