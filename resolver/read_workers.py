"""
Read a market and its registered workers from the ledger.

Functions for pipeline:
    read_market_workers(ledger, market_id) -> (MarketState, list[Worker], list[str], DiscoveryReport)

Each worker's public endpoint comes from its identity-registry metadata: a
base64 JSON data URI listing the agent's services. Workers whose endpoint
cannot be resolved are discarded with a reason; they still count as on-chain
workers for the final report.
"""

import base64
import binascii
import json

from chain.ledger import MarketLedger, TOKEN_URI_PREFIX
from models.worker import DiscardReason, DiscoveryReport, MarketState, Worker
from resolver.errors import (
    EndpointMetadataError,
    LedgerError,
    MarketAlreadyResolvedError,
    NoWorkersError,
)
from resolver.scoring import short_address

SERVICE_NAME = "A2A"


# =============================================================================
# ENDPOINT METADATA
# =============================================================================

def parse_agent_endpoint(token_uri: str) -> str:
    """
    Extract the A2A service endpoint from a registration data URI.

    Raises:
        EndpointMetadataError: with reason MALFORMED_METADATA or NO_SERVICE_DECLARED
    """
    if not token_uri.startswith(TOKEN_URI_PREFIX):
        raise EndpointMetadataError(
            DiscardReason.MALFORMED_METADATA,
            f"tokenURI is not a base64 JSON data URI: {token_uri[:40]!r}",
        )

    try:
        raw = base64.b64decode(token_uri[len(TOKEN_URI_PREFIX):], validate=True)
        registration = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise EndpointMetadataError(DiscardReason.MALFORMED_METADATA, f"undecodable registration: {e}") from e

    services = registration.get("services") if isinstance(registration, dict) else None
    if not isinstance(services, list):
        raise EndpointMetadataError(DiscardReason.MALFORMED_METADATA, "registration has no services list")

    for service in services:
        if not isinstance(service, dict):
            continue
        name = service.get("name")
        endpoint = service.get("endpoint")
        if isinstance(name, str) and name.upper() == SERVICE_NAME and isinstance(endpoint, str) and endpoint:
            return endpoint.rstrip("/")

    raise EndpointMetadataError(DiscardReason.NO_SERVICE_DECLARED, "no A2A service in registration")


# =============================================================================
# PUBLIC API (for pipeline use)
# =============================================================================

def read_market(ledger: MarketLedger, market_id: int) -> MarketState:
    """
    Read the market struct and fail fast if it can no longer be resolved.

    Raises:
        MarketAlreadyResolvedError: if the market is already resolved
    """
    market = ledger.get_market(market_id)
    if market.resolved:
        raise MarketAlreadyResolvedError(f"Market {market_id} is already resolved")
    return market


def read_market_workers(
    ledger: MarketLedger,
    market_id: int,
    verbose: bool = True,
) -> tuple[MarketState, list[Worker], list[str], DiscoveryReport]:
    """
    Discover the workers that can be queried for a market.

    This is the main entry point for the pipeline.

    Args:
        ledger: Ledger collaborator
        market_id: Market to resolve
        verbose: Print progress

    Returns:
        Tuple of (market state, valid workers, every on-chain worker address
        in ledger order, discovery report)

    Raises:
        MarketAlreadyResolvedError: market already resolved
        NoWorkersError: no workers joined, or none has a resolvable endpoint
    """
    market = read_market(ledger, market_id)
    addresses = ledger.get_market_workers(market_id)
    report = DiscoveryReport(market_id=market_id, total_on_chain=len(addresses))

    if not addresses:
        raise NoWorkersError(f"Market {market_id} has no workers", report)

    workers = []
    for address in addresses:
        try:
            agent_id = ledger.get_agent_id(market_id, address)
            token_uri = ledger.get_token_uri(agent_id)
        except LedgerError as e:
            report.discard(address, DiscardReason.ENDPOINT_LOOKUP_FAILED, str(e))
            if verbose:
                print(f"   ⏭️  {short_address(address)} tokenURI lookup failed, skipping")
            continue

        try:
            endpoint = parse_agent_endpoint(token_uri)
        except EndpointMetadataError as e:
            report.discard(address, e.reason, e.detail)
            if verbose:
                print(f"   ⏭️  {short_address(address)} (agentId={agent_id}): {e.detail}, skipping")
            continue

        workers.append(Worker(
            address=address,
            endpoint=endpoint,
            stake=ledger.get_stake(market_id, address),
            reputation=ledger.get_reputation(address),
        ))

    report.valid_workers = len(workers)

    if not workers:
        raise NoWorkersError(f"Market {market_id} has no workers with a resolvable endpoint", report)

    if verbose:
        q_short = market.question[:60] + "..." if len(market.question) > 60 else market.question
        print(f"   Read {len(workers)} workers for market {market_id}: \"{q_short}\"")
        print(f"   📋 {report.summary()}")

    return market, workers, addresses, report
