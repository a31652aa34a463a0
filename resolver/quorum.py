"""
BFT quorum for worker consensus.

Uses the ceil(2n/3) supermajority of classic BFT protocols (PBFT, Tendermint,
OCR). With n participants up to f = floor((n-1)/3) may be faulty; the n - f
honest supermajority means two conflicting results can never both reach
quorum, while the run still makes progress with f failures.

Quorum table (max 10 workers):

    Workers   Quorum   Tolerance
       1        1         0
       2        2         0
       3        2         1
       4        3         1
       5        4         1
       6        4         2
       7        5         2
       8        6         2
       9        6         3
      10        7         3
"""

MAX_WORKERS = 10


def _check_range(total_workers: int, max_workers: int) -> None:
    if not 1 <= total_workers <= max_workers:
        raise ValueError(f"Worker count {total_workers} out of range [1, {max_workers}]")


def bft_quorum(total_workers: int, max_workers: int = MAX_WORKERS) -> int:
    """
    Minimum number of responses required to proceed past the Ask phase.

    Raises:
        ValueError: if total_workers is outside [1, max_workers]
    """
    _check_range(total_workers, min(max_workers, MAX_WORKERS))
    # Integer ceil(2n/3)
    return -(-2 * total_workers // 3)


def bft_fault_tolerance(total_workers: int, max_workers: int = MAX_WORKERS) -> int:
    """Maximum number of faulty workers tolerated: floor((n-1)/3)."""
    _check_range(total_workers, min(max_workers, MAX_WORKERS))
    return (total_workers - 1) // 3
