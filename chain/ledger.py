"""
Ledger collaborator - market state reads and resolution writes.

The resolution pipeline only talks to the ledger through MarketLedger.
Contract encoding, multicall batching and transaction signing live behind
this interface and are not part of this package.

InMemoryLedger implements the interface for tests, mock runs and JSON
fixture files:

    {
      "markets": {
        "1": {
          "question": "Will X happen by June?",
          "reward_pool": 1000000000000000000,
          "resolved": false,
          "workers": [
            {"address": "0xabc...", "endpoint": "http://localhost:3101",
             "stake": 50000000000000000,
             "reputation": {"res_quality": 80, "src_quality": 75,
                            "analysis_depth": 70, "count": 3}}
          ]
        }
      }
    }

A worker entry may give "token_uri" instead of "endpoint" to exercise the
identity metadata path directly.
"""

import base64
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from models.worker import MarketState, WorkerReputation
from models.resolution import ResolutionReport
from resolver.errors import LedgerError, MarketAlreadyResolvedError

TOKEN_URI_PREFIX = "data:application/json;base64,"


def build_token_uri(endpoint: str, name: str = "agent", service: str = "A2A") -> str:
    """Encode a registration document the way the identity registry serves it."""
    registration = {
        "name": name,
        "services": [{"name": service, "endpoint": endpoint}],
    }
    encoded = base64.b64encode(json.dumps(registration).encode("utf-8")).decode("ascii")
    return TOKEN_URI_PREFIX + encoded


class MarketLedger(ABC):
    """Read market state and submit signed resolution reports."""

    @abstractmethod
    def get_market(self, market_id: int) -> MarketState:
        ...

    @abstractmethod
    def get_market_workers(self, market_id: int) -> list[str]:
        ...

    @abstractmethod
    def get_stake(self, market_id: int, worker: str) -> int:
        ...

    @abstractmethod
    def get_reputation(self, worker: str) -> WorkerReputation:
        ...

    @abstractmethod
    def get_agent_id(self, market_id: int, worker: str) -> int:
        ...

    @abstractmethod
    def get_token_uri(self, agent_id: int) -> str:
        """Identity-registry lookup. Raises LedgerError if the token is unknown."""
        ...

    @abstractmethod
    def submit_resolution(self, report: ResolutionReport) -> str:
        """
        Hand a report to the signing/publication service.

        Must reject a market that is already resolved. Returns a receipt id.
        """
        ...


class InMemoryLedger(MarketLedger):
    """Dictionary-backed ledger."""

    def __init__(self):
        self.markets: dict[int, MarketState] = {}
        self.market_workers: dict[int, list[str]] = {}
        self.stakes: dict[tuple[int, str], int] = {}
        self.agent_ids: dict[tuple[int, str], int] = {}
        self.reputations: dict[str, WorkerReputation] = {}
        self.token_uris: dict[int, str] = {}
        self.submitted: list[ResolutionReport] = []
        self._next_agent_id = 1

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def add_market(self, market_id: int, question: str, resolved: bool = False, **fields) -> MarketState:
        market = MarketState(question=question, resolved=resolved, **fields)
        self.markets[market_id] = market
        self.market_workers.setdefault(market_id, [])
        return market

    def add_worker(
        self,
        market_id: int,
        address: str,
        endpoint: Optional[str] = None,
        token_uri: Optional[str] = None,
        stake: int = 0,
        reputation: Optional[WorkerReputation] = None,
        agent_id: Optional[int] = None,
    ) -> int:
        """
        Join a worker to a market.

        With neither endpoint nor token_uri the worker has an agent id that
        the registry does not know, so endpoint lookup fails for it.
        """
        if market_id not in self.markets:
            raise LedgerError(f"Unknown market {market_id}")

        if agent_id is None:
            agent_id = self._next_agent_id
            self._next_agent_id += 1
        else:
            self._next_agent_id = max(self._next_agent_id, agent_id + 1)

        self.market_workers[market_id].append(address)
        self.stakes[(market_id, address.lower())] = stake
        self.agent_ids[(market_id, address.lower())] = agent_id
        if reputation is not None:
            self.reputations[address.lower()] = reputation

        if token_uri is not None:
            self.token_uris[agent_id] = token_uri
        elif endpoint is not None:
            self.token_uris[agent_id] = build_token_uri(endpoint)
        return agent_id

    @classmethod
    def from_dict(cls, data: dict) -> "InMemoryLedger":
        ledger = cls()
        for market_id, m in data.get("markets", {}).items():
            ledger.add_market(
                int(market_id),
                question=m["question"],
                resolved=m.get("resolved", False),
                reward_pool=m.get("reward_pool", 0),
                deadline=m.get("deadline", 0),
                creator=m.get("creator", ""),
            )
            for w in m.get("workers", []):
                rep = w.get("reputation")
                ledger.add_worker(
                    int(market_id),
                    w["address"],
                    endpoint=w.get("endpoint"),
                    token_uri=w.get("token_uri"),
                    stake=int(w.get("stake", 0)),
                    reputation=WorkerReputation(**rep) if rep else None,
                    agent_id=w.get("agent_id"),
                )
        return ledger

    @classmethod
    def from_json(cls, path: Path) -> "InMemoryLedger":
        """Load a ledger fixture file."""
        with open(path) as f:
            return cls.from_dict(json.load(f))

    # -------------------------------------------------------------------------
    # MarketLedger
    # -------------------------------------------------------------------------

    def get_market(self, market_id: int) -> MarketState:
        try:
            return self.markets[market_id]
        except KeyError:
            raise LedgerError(f"Unknown market {market_id}") from None

    def get_market_workers(self, market_id: int) -> list[str]:
        self.get_market(market_id)
        return list(self.market_workers.get(market_id, []))

    def get_stake(self, market_id: int, worker: str) -> int:
        return self.stakes.get((market_id, worker.lower()), 0)

    def get_reputation(self, worker: str) -> WorkerReputation:
        return self.reputations.get(worker.lower(), WorkerReputation())

    def get_agent_id(self, market_id: int, worker: str) -> int:
        try:
            return self.agent_ids[(market_id, worker.lower())]
        except KeyError:
            raise LedgerError(f"No agent id for {worker} in market {market_id}") from None

    def get_token_uri(self, agent_id: int) -> str:
        try:
            return self.token_uris[agent_id]
        except KeyError:
            raise LedgerError(f"tokenURI reverted for agentId={agent_id}") from None

    def submit_resolution(self, report: ResolutionReport) -> str:
        market = self.get_market(report.market_id)
        if market.resolved:
            raise MarketAlreadyResolvedError(f"Market {report.market_id} is already resolved")

        self.markets[report.market_id] = market.model_copy(update={"resolved": True})
        self.submitted.append(report)
        return f"inmemory-{report.market_id}-{len(self.submitted)}"
