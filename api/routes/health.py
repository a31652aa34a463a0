"""Health check endpoints."""
from datetime import datetime, timezone
from fastapi import APIRouter

from config.settings import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
    }


@router.get("/health/config")
async def config_check():
    """Check if required configuration is present."""
    checks = {
        "evaluator": settings.evaluator in ("heuristic", "llm"),
        "llm_api_key": bool(settings.llm_api_key) or settings.evaluator != "llm",
        "ledger_fixture": settings.ledger_fixture_path.exists(),
    }

    all_ok = all(checks.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "checks": checks,
        "evaluator": settings.evaluator,
        "mock_agent_responses": settings.mock_agent_responses,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
