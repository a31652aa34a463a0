#!/usr/bin/env python3
"""
Resolution Orchestrator - runs one market through the full consensus pipeline.

Calls pipeline functions directly with typed data flowing between steps:

    read workers -> validate endpoints -> ask -> challenge -> evaluate
        -> compute resolution -> build + publish report

Usage:
    python -m resolver.orchestrator --market-id 1                 # Resolve market 1
    python -m resolver.orchestrator --market-id 1 --mock          # Synthetic agent responses
    python -m resolver.orchestrator --market-id 1 --evaluator llm # Score with the LLM
    python -m resolver.orchestrator --market-id 1 --dry-run       # Compute, don't publish
"""

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import requests
from openai import OpenAI

from chain.ledger import InMemoryLedger, MarketLedger
from config.settings import settings
from models.options import ResolutionOptions
from models.resolution import ResolutionOutcome
from resolver.build_report import build_report, publish_report
from resolver.compute_resolution import compute_resolution
from resolver.errors import LedgerError, NoReachableWorkersError, ResolutionError
from resolver.evaluate import evaluate_workers
from resolver.mock_agents import generate_mock_challenge_results, generate_mock_determinations
from resolver.query_workers import challenge_all_workers, check_quorum, query_all_workers
from resolver.read_workers import read_market_workers
from resolver.validate_endpoints import validate_endpoints


def _step(title: str, verbose: bool):
    if verbose:
        print(f"\n{'─'*70}")
        print(title)
        print(f"{'─'*70}")


def _check_worker_cap(workers, options: ResolutionOptions, report):
    if len(workers) > options.max_workers:
        raise ResolutionError(
            f"{len(workers)} workers exceeds the cap of {options.max_workers}",
            report,
        )


def resolve_market(
    market_id: int,
    ledger: MarketLedger,
    options: ResolutionOptions = None,
    session: requests.Session = None,
    llm_client: Optional[OpenAI] = None,
    publish: bool = True,
    verbose: bool = True,
) -> ResolutionOutcome:
    """
    Run the full resolution pipeline for one market.

    Args:
        market_id: Market to resolve
        ledger: Ledger collaborator for reads and the final submission
        options: Typed options (defaults from settings)
        session: Optional requests session shared by all worker calls
        llm_client: Optional OpenAI client for the LLM evaluator
        publish: Submit the report to the ledger
        verbose: Print progress

    Returns:
        ResolutionOutcome with the report and the discovery report

    Raises:
        ResolutionError: any fatal condition; the error carries the
        discovery report collected so far
    """
    options = options or ResolutionOptions.from_settings()
    start_time = datetime.now(timezone.utc)

    if verbose:
        print("=" * 70)
        print(f"🚀 CRESOLVER RESOLUTION - market {market_id}")
        print(f"   Started: {start_time.isoformat()}")
        print(f"   Evaluator: {options.evaluator}{' (mock agents)' if options.mock_agent_responses else ''}")
        print("=" * 70)

    # =========================================================================
    # STEP 1: Read market and workers
    # =========================================================================
    _step("📡 STEP 1: Reading market and workers from ledger...", verbose)
    market, workers, on_chain_workers, report = read_market_workers(ledger, market_id, verbose=verbose)

    own_session = session is None
    session = session or requests.Session()

    try:
        if options.mock_agent_responses:
            # =================================================================
            # STEP 2-4 (mock): Synthetic determinations and defenses
            # =================================================================
            _step("🧪 STEPS 2-4: Generating synthetic agent responses...", verbose)
            active_workers = workers
            _check_worker_cap(active_workers, options, report)
            determinations = generate_mock_determinations(active_workers, market_id)
            quorum = check_quorum(len(determinations), len(active_workers), options, report)
            challenge_results = generate_mock_challenge_results(determinations)
        else:
            # =================================================================
            # STEP 2: Validate endpoints
            # =================================================================
            _step("🩺 STEP 2: Validating worker endpoints...", verbose)
            active_workers, unreachable = validate_endpoints(workers, options, session, verbose=verbose)
            report.discarded.extend(unreachable)
            report.valid_workers = len(active_workers)

            if not active_workers:
                raise NoReachableWorkersError("No reachable workers after endpoint validation", report)
            _check_worker_cap(active_workers, options, report)

            # =================================================================
            # STEP 3: Ask
            # =================================================================
            _step("❓ STEP 3: Asking workers for determinations...", verbose)
            determinations, quorum = query_all_workers(
                active_workers, market_id, market.question, options, session, report, verbose=verbose,
            )

            # =================================================================
            # STEP 4: Challenge
            # =================================================================
            _step("⚔️  STEP 4: Challenging workers...", verbose)
            challenge_results = challenge_all_workers(
                active_workers, determinations, options, session, report, verbose=verbose,
            )
    finally:
        if own_session:
            session.close()

    # =========================================================================
    # STEP 5: Evaluate
    # =========================================================================
    _step(f"🧠 STEP 5: Evaluating workers ({options.evaluator})...", verbose)
    extra = {"client": llm_client} if options.evaluator == "llm" else {}
    try:
        evaluations, usage_stats = evaluate_workers(
            market.question, determinations, challenge_results, options, verbose=verbose, **extra,
        )
    except ResolutionError as e:
        e.report = e.report or report
        raise

    # =========================================================================
    # STEP 6: Compute resolution
    # =========================================================================
    _step("⚖️  STEP 6: Computing weighted resolution...", verbose)
    result = compute_resolution(determinations, evaluations, active_workers, on_chain_workers, options)
    resolution_report = build_report(market_id, result)

    if verbose:
        print(f"   Resolution: {'YES' if result.resolution else 'NO'}")
        print(f"   Weights:    [{', '.join(str(w) for w in resolution_report.weights)}]")
        print(f"   DimScores:  [{', '.join(str(s) for s in resolution_report.dim_scores)}]")

    # =========================================================================
    # STEP 7: Publish
    # =========================================================================
    if publish:
        _step("📝 STEP 7: Submitting signed report...", verbose)
        publish_report(ledger, resolution_report, verbose=verbose)

    outcome = ResolutionOutcome(
        market_id=market_id,
        question=market.question,
        evaluator=options.evaluator,
        total_workers=len(active_workers),
        quorum=quorum,
        discovery=report,
        determinations=determinations,
        challenge_results=challenge_results,
        evaluations=evaluations,
        result=result,
        report=resolution_report,
        published=publish,
        resolved_at=datetime.now(timezone.utc).isoformat(),
        cost_usd=usage_stats.estimated_cost if usage_stats.requests else None,
    )

    if verbose:
        duration = (datetime.now(timezone.utc) - start_time).total_seconds()
        print(f"\n{'='*70}")
        print(f"✅ MARKET {market_id} RESOLVED: {'YES' if result.resolution else 'NO'}")
        print(f"{'='*70}")
        print(f"   Duration:   {duration:.1f} seconds")
        print(f"   Responded:  {len(determinations)}/{len(active_workers)} (quorum {quorum})")
        print(f"   📋 {report.summary()}")

    return outcome


def _save_json(data, filepath: Path, verbose: bool = True):
    """Save data to JSON file with feedback."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w") as f:
        json.dump(data, f, indent=2, default=str)
    if verbose:
        print(f"   💾 Saved to {filepath}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Resolve a prediction market through worker consensus"
    )
    parser.add_argument(
        "--market-id", type=int, required=True,
        help="Market to resolve"
    )
    parser.add_argument(
        "--ledger", type=str, default=None,
        help=f"Ledger fixture JSON (default: {settings.ledger_fixture})"
    )
    parser.add_argument(
        "--evaluator", choices=["heuristic", "llm"], default=None,
        help="Scoring strategy (default: EVALUATOR setting)"
    )
    parser.add_argument(
        "--mock", action="store_true",
        help="Use synthetic agent responses instead of HTTP"
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Compute the resolution without submitting it"
    )
    parser.add_argument(
        "--output", type=str, default=None,
        help="Write the full outcome to this JSON file"
    )
    parser.add_argument(
        "--quiet", "-q", action="store_true",
        help="Minimal output"
    )
    args = parser.parse_args(argv)

    overrides = {}
    if args.evaluator:
        overrides["evaluator"] = args.evaluator
    if args.mock:
        overrides["mock_agent_responses"] = True
    options = ResolutionOptions.from_settings(**overrides)

    ledger_path = Path(args.ledger) if args.ledger else settings.ledger_fixture_path
    if not ledger_path.exists():
        print(f"❌ Ledger fixture not found: {ledger_path}")
        return 2
    ledger = InMemoryLedger.from_json(ledger_path)

    try:
        outcome = resolve_market(
            args.market_id,
            ledger,
            options,
            publish=not args.dry_run,
            verbose=not args.quiet,
        )
    except ResolutionError as e:
        print(f"❌ Resolution failed: {e}")
        if e.report is not None:
            print(f"   📋 {e.report.summary()}")
            for d in e.report.discarded:
                print(f"      - {d.address}: {d.reason.value} ({d.detail})")
        return 1
    except LedgerError as e:
        print(f"❌ Ledger error: {e}")
        return 1

    if args.output:
        _save_json(outcome.model_dump(mode="json"), Path(args.output), not args.quiet)

    return 0


if __name__ == "__main__":
    sys.exit(main())
