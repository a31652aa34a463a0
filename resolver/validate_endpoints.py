"""
Liveness-check worker endpoints before querying them.

Functions for pipeline:
    validate_endpoints(workers, options) -> (reachable, unreachable)

A worker passes when GET {endpoint}/.well-known/agent.json returns any 2xx
within the liveness timeout. Probes run concurrently; results keep the
input worker order.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import requests

from models.options import ResolutionOptions
from models.worker import DiscardReason, DiscardedWorker, Worker
from resolver.scoring import short_address


def _probe(session: requests.Session, worker: Worker, options: ResolutionOptions) -> Optional[str]:
    """Return None if the worker is reachable, else a failure detail."""
    url = f"{worker.endpoint}{options.liveness_path}"
    try:
        response = session.get(url, timeout=options.liveness_timeout)
    except requests.exceptions.Timeout:
        return f"GET {options.liveness_path} timed out after {options.liveness_timeout:.0f}s"
    except requests.exceptions.RequestException as e:
        return f"network error reaching {options.liveness_path}: {type(e).__name__}"

    if not 200 <= response.status_code < 300:
        return f"GET {options.liveness_path} returned status {response.status_code}"
    return None


def validate_endpoints(
    workers: list[Worker],
    options: ResolutionOptions = None,
    session: requests.Session = None,
    verbose: bool = True,
) -> tuple[list[Worker], list[DiscardedWorker]]:
    """
    Split workers into reachable and unreachable.

    Args:
        workers: Discovered workers
        options: Timeouts and paths (defaults from settings)
        session: Optional requests session (created if not provided)
        verbose: Print progress

    Returns:
        Tuple of (reachable workers, discard entries for the rest)
    """
    options = options or ResolutionOptions.from_settings()
    own_session = session is None
    session = session or requests.Session()

    try:
        with ThreadPoolExecutor(max_workers=options.max_concurrency) as pool:
            details = list(pool.map(lambda w: _probe(session, w, options), workers))
    finally:
        if own_session:
            session.close()

    reachable = []
    unreachable = []
    for worker, detail in zip(workers, details):
        if detail is None:
            reachable.append(worker)
        else:
            unreachable.append(DiscardedWorker(
                address=worker.address,
                reason=DiscardReason.ENDPOINT_UNREACHABLE,
                detail=detail,
            ))
            if verbose:
                print(f"   ⚠️  {short_address(worker.address)} endpoint unreachable ({detail})")

    if verbose:
        print(f"   Endpoint validation: {len(reachable)} reachable, {len(unreachable)} unreachable")

    return reachable, unreachable
