"""
Ask workers for determinations, then challenge them on their answers.

Functions for pipeline:
    query_all_workers(workers, market_id, question) -> (list[Determination], quorum)
    challenge_all_workers(workers, determinations) -> list[ChallengeResult]

Both phases fan out one request per worker over a bounded thread pool. A
worker's outcome is either a value or an absence; nothing is retried and a
slow worker only costs its own timeout. Results are collected in worker
order first and reduced afterwards, so the output never depends on which
request finished first.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import requests
from pydantic import ValidationError

from models.determination import (
    ChallengeResponse,
    ChallengeResult,
    Determination,
    ResolveResponse,
)
from models.options import ResolutionOptions
from models.worker import DiscoveryReport, Worker
from resolver.errors import NoDeterminationsError, QuorumNotMetError
from resolver.quorum import MAX_WORKERS, bft_quorum
from resolver.scoring import short_address


# =============================================================================
# CHALLENGE GENERATION
# =============================================================================

def generate_challenges(
    determination: Determination,
    all_determinations: list[Determination],
) -> list[str]:
    """
    Build the follow-up questions for one worker.

    Deterministic given the full set of determinations: a worker that
    disagrees with anyone is pressed on its evidence; when everyone agrees
    the questions push for the opposite case instead.
    """
    has_disagreement = any(
        d.determination != determination.determination for d in all_determinations
    )

    if has_disagreement:
        return [
            "Other workers reached the opposite conclusion. What specific evidence makes you "
            f"confident that the answer is {determination.label}?",
            f"Your confidence is {determination.confidence * 100:.0f}%. What would need to change "
            "for you to reverse your determination?",
            "Identify the weakest point in your analysis and defend it.",
        ]

    return [
        "All workers agree with your determination. Play devil's advocate: what's the strongest "
        "argument for the opposite conclusion?",
        "What assumptions in your analysis could be wrong?",
        "How would you respond to someone who says your sources are biased or incomplete?",
    ]


# =============================================================================
# INTERNAL FUNCTIONS
# =============================================================================

def _ask_worker(
    session: requests.Session,
    worker: Worker,
    market_id: int,
    question: str,
    options: ResolutionOptions,
) -> tuple[Optional[Determination], str]:
    """POST /a2a/resolve. Returns (determination or None, failure detail)."""
    url = f"{worker.endpoint}{options.resolve_path}"
    try:
        response = session.post(
            url,
            json={"market_id": market_id, "question": question},
            timeout=options.resolve_timeout,
        )
        response.raise_for_status()
        if not 200 <= response.status_code < 300:
            return None, f"HTTP error: {response.status_code}"
        parsed = ResolveResponse.model_validate(response.json())
    except requests.exceptions.Timeout:
        return None, f"timeout after {options.resolve_timeout:.0f}s"
    except requests.exceptions.HTTPError as e:
        return None, f"HTTP error: {e.response.status_code if e.response is not None else e}"
    except (ValueError, ValidationError) as e:
        # ValueError also covers an undecodable JSON body
        return None, f"malformed response: {type(e).__name__}"
    except requests.exceptions.RequestException as e:
        return None, f"request failed: {type(e).__name__}"

    return Determination.from_response(worker.address, parsed), ""


def _challenge_worker(
    session: requests.Session,
    worker: Worker,
    challenges: list[str],
    options: ResolutionOptions,
) -> tuple[list[str], str]:
    """POST /a2a/challenge. Returns (responses, failure detail); [] on failure."""
    url = f"{worker.endpoint}{options.challenge_path}"
    try:
        response = session.post(
            url,
            json={"challenges": challenges},
            timeout=options.challenge_timeout,
        )
        response.raise_for_status()
        if not 200 <= response.status_code < 300:
            return [], f"HTTP error: {response.status_code}"
        parsed = ChallengeResponse.model_validate(response.json())
    except requests.exceptions.Timeout:
        return [], f"timeout after {options.challenge_timeout:.0f}s"
    except requests.exceptions.HTTPError as e:
        return [], f"HTTP error: {e.response.status_code if e.response is not None else e}"
    except (ValueError, ValidationError) as e:
        return [], f"malformed response: {type(e).__name__}"
    except requests.exceptions.RequestException as e:
        return [], f"request failed: {type(e).__name__}"

    return list(parsed.responses), ""


def check_quorum(
    received: int,
    total: int,
    options: ResolutionOptions = None,
    report: DiscoveryReport = None,
) -> int:
    """
    Enforce the post-Ask barrier.

    Returns:
        The quorum that was required

    Raises:
        NoDeterminationsError: nobody answered
        QuorumNotMetError: fewer answers than ceil(2n/3)
    """
    quorum = bft_quorum(total, options.max_workers if options else MAX_WORKERS)

    if received == 0:
        raise NoDeterminationsError("No workers responded successfully", report)
    if received < quorum:
        raise QuorumNotMetError(received, total, quorum, report)
    return quorum


# =============================================================================
# PUBLIC API (for pipeline use)
# =============================================================================

def query_all_workers(
    workers: list[Worker],
    market_id: int,
    question: str,
    options: ResolutionOptions = None,
    session: requests.Session = None,
    report: DiscoveryReport = None,
    verbose: bool = True,
) -> tuple[list[Determination], int]:
    """
    Ask every worker for a determination and enforce BFT quorum.

    This is the main entry point for the Ask phase.

    Args:
        workers: Reachable workers to query
        market_id: Market being resolved
        question: Market question text
        options: Timeouts and caps (defaults from settings)
        session: Optional requests session (created if not provided)
        report: Discovery report that receives per-worker failures
        verbose: Print progress

    Returns:
        Tuple of (determinations in worker order, required quorum)

    Raises:
        NoDeterminationsError, QuorumNotMetError
    """
    options = options or ResolutionOptions.from_settings()
    own_session = session is None
    session = session or requests.Session()

    try:
        with ThreadPoolExecutor(max_workers=options.max_concurrency) as pool:
            outcomes = list(pool.map(
                lambda w: _ask_worker(session, w, market_id, question, options),
                workers,
            ))
    finally:
        if own_session:
            session.close()

    determinations = []
    for worker, (det, detail) in zip(workers, outcomes):
        if det is not None:
            determinations.append(det)
            if verbose:
                print(f"   ✅ {short_address(worker.address)}: {det.label} ({det.confidence * 100:.0f}%)")
        else:
            if report is not None:
                report.fail(worker.address, "resolve", detail)
            if verbose:
                print(f"   ❌ {short_address(worker.address)} failed to respond ({detail})")

    quorum = check_quorum(len(determinations), len(workers), options, report)

    if verbose:
        if len(determinations) < len(workers):
            responded = {d.worker_address.lower() for d in determinations}
            missing = [short_address(w.address) for w in workers if w.address.lower() not in responded]
            print(f"   ⚠️  BFT quorum met with {len(determinations)}/{len(workers)} (need {quorum}). "
                  f"Missing: {', '.join(missing)}")
        print(f"   {len(determinations)}/{len(workers)} workers responded (quorum: {quorum})")

    return determinations, quorum


def challenge_all_workers(
    workers: list[Worker],
    determinations: list[Determination],
    options: ResolutionOptions = None,
    session: requests.Session = None,
    report: DiscoveryReport = None,
    verbose: bool = True,
) -> list[ChallengeResult]:
    """
    Challenge every worker that produced a determination.

    A worker that cannot be reached gets an empty response list; this phase
    never aborts the run.

    Returns:
        ChallengeResults in determination order
    """
    options = options or ResolutionOptions.from_settings()
    worker_map = {w.address.lower(): w for w in workers}

    jobs = []
    for det in determinations:
        worker = worker_map.get(det.worker_address.lower())
        if worker is None:
            continue
        jobs.append((worker, det, generate_challenges(det, determinations)))

    own_session = session is None
    session = session or requests.Session()

    try:
        with ThreadPoolExecutor(max_workers=options.max_concurrency) as pool:
            outcomes = list(pool.map(
                lambda job: _challenge_worker(session, job[0], job[2], options),
                jobs,
            ))
    finally:
        if own_session:
            session.close()

    results = []
    for (worker, det, challenges), (responses, detail) in zip(jobs, outcomes):
        results.append(ChallengeResult(
            worker_address=det.worker_address,
            challenges=challenges,
            responses=responses,
        ))
        if detail:
            if report is not None:
                report.fail(worker.address, "challenge", detail)
            if verbose:
                print(f"   ⚠️  {short_address(worker.address)} challenge failed ({detail})")
        elif verbose:
            print(f"   🛡️  {short_address(worker.address)} defended {len(responses)}/{len(challenges)} challenges")

    return results
