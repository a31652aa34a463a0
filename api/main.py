"""
FastAPI application for CREsolver.

Provides HTTP endpoints for:
- Triggering a market resolution
- System health checks
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chain.ledger import InMemoryLedger
from config.settings import settings
from api.routes import health, resolution


def load_ledger() -> InMemoryLedger:
    """Load the ledger fixture, or start empty when none is configured."""
    path = settings.ledger_fixture_path
    if path.exists():
        print(f"📒 Loading ledger fixture from {path}")
        return InMemoryLedger.from_json(path)
    print(f"⚠️  No ledger fixture at {path}, starting with an empty ledger")
    return InMemoryLedger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    print("🚀 Starting CREsolver API...")
    app.state.ledger = load_ledger()
    print("✅ Ledger ready")

    yield

    # Shutdown
    print("👋 Shutting down...")


# Create FastAPI app
app = FastAPI(
    title="CREsolver API",
    description="BFT consensus resolution for prediction markets",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware (adjust origins for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "development" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(resolution.router, prefix="/api/resolutions", tags=["Resolutions"])


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "CREsolver API",
        "version": "1.0.0",
        "environment": settings.environment,
        "docs": "/docs",
        "health": "/health",
    }
