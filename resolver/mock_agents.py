"""
Synthetic worker responses for dry runs and demos.

Functions for pipeline:
    generate_mock_determinations(workers, market_id) -> list[Determination]
    generate_mock_challenge_results(determinations) -> list[ChallengeResult]

Everything is derived from a SHA-256 of the worker address and market id,
so every node generates the same responses. With two or more workers the
first always answers YES and the second NO, so the challenge phase sees a
disagreement.
"""

import hashlib

from models.determination import ChallengeResult, Determination
from models.worker import Worker
from resolver.query_workers import generate_challenges

# =============================================================================
# TEMPLATES
# =============================================================================

YES_EVIDENCE = [
    "Multiple independent sources confirm this outcome. Official records and primary data "
    "sources consistently support an affirmative determination.",
    "On-chain data and verified external feeds indicate the condition has been met. "
    "Cross-referenced with three independent APIs.",
    "Analysis of publicly available data from official channels strongly supports a YES "
    "determination. Historical patterns align with current observations.",
]

NO_EVIDENCE = [
    "Available evidence does not meet the threshold for an affirmative determination. Key "
    "indicators point to the condition remaining unmet.",
    "Cross-referencing multiple data sources reveals insufficient support. Primary metrics "
    "fall below the required threshold.",
    "Despite some positive signals, the weight of evidence, including official records, "
    "points to a negative determination.",
]

SOURCES = [
    "https://api.example.com/data/v1",
    "https://oracle.example.com/feed/latest",
    "https://registry.example.org/records",
    "https://stats.example.io/metrics",
    "https://archive.example.com/historical",
]

CHALLENGE_RESPONSES = [
    "The evidence I cited is drawn from primary sources with verifiable timestamps. While I "
    "acknowledge the limitation you raise, the core data points remain robust.",
    "I have considered the counterargument carefully. My confidence reflects the balance of "
    "evidence, not certainty. The strongest counter-evidence would be a direct official "
    "statement contradicting the data.",
    "The weakest point in my analysis is the reliance on a single primary feed for the most "
    "recent data point. However, historical consistency across multiple sources provides "
    "additional confidence.",
]


def _seed(address: str) -> int:
    digest = hashlib.sha256(address.lower().encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big")


def _seeded_float(address: str, salt: int) -> float:
    """Deterministic float in [0, 1) for (address, salt)."""
    digest = hashlib.sha256(f"{address.lower()}:{salt}".encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big") % 10_000 / 10_000


# =============================================================================
# PUBLIC API (for pipeline use)
# =============================================================================

def generate_mock_determinations(workers: list[Worker], market_id: int) -> list[Determination]:
    """One synthetic determination per worker, in worker order."""
    determinations = []
    for i, worker in enumerate(workers):
        seed = _seed(worker.address)

        if len(workers) >= 2 and i == 0:
            determination = True
        elif len(workers) >= 2 and i == 1:
            determination = False
        else:
            determination = _seeded_float(worker.address, market_id) > 0.4

        confidence = 0.65 + _seeded_float(worker.address, market_id + 100) * 0.3  # 0.65-0.95
        pool = YES_EVIDENCE if determination else NO_EVIDENCE
        source_count = 2 + seed % 3  # 2-4 sources

        determinations.append(Determination(
            worker_address=worker.address,
            determination=determination,
            confidence=round(confidence, 2),
            evidence=pool[seed % len(pool)],
            sources=[SOURCES[(seed + s) % len(SOURCES)] for s in range(source_count)],
        ))
    return determinations


def generate_mock_challenge_results(determinations: list[Determination]) -> list[ChallengeResult]:
    """Challenge every determination and answer all challenges."""
    results = []
    for det in determinations:
        challenges = generate_challenges(det, determinations)
        seed = _seed(det.worker_address)
        results.append(ChallengeResult(
            worker_address=det.worker_address,
            challenges=challenges,
            responses=[
                CHALLENGE_RESPONSES[(seed + j) % len(CHALLENGE_RESPONSES)]
                for j in range(len(challenges))
            ],
        ))
    return results
