"""
Main FastAPI application for the playoff pool.

This module creates the FastAPI application that exposes the stat pipeline
to the commissioner's admin screens and to entry views.

Key FastAPI Features Used:
- Automatic API documentation (OpenAPI/Swagger)
- Data validation with Pydantic models
- Dependency injection for database sessions and collectors

The API provides endpoints for:
- Stat imports, provider fetches, overrides and recalculation (/api/admin)
- Entry totals and per-player breakdowns (/api/entries)
- The scoring rule sheet (/api/rules)
- System health
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import settings
from ..data.collection.sleeper_collector import PlayerDirectoryCache
from ..scoring.engine import rules_table
from .routers import admin, entries
from .schemas import RuleResponse

app = FastAPI(
    title="Playoff Pool API",
    description="Stat ingestion and scoring for a playoff fantasy pool",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One Sleeper player directory per running app, shared by every fetch request
app.state.sleeper_cache = PlayerDirectoryCache()


@app.get("/")
async def root():
    """Basic API information."""
    return {
        "message": "Playoff Pool API",
        "version": __version__,
        "docs": f"http://{settings.api_host}:{settings.api_port}/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for system monitoring."""
    return {"status": "healthy", "service": "Playoff Pool"}


@app.get("/api/rules", response_model=list[RuleResponse])
async def get_rules():
    """The fixed scoring rule sheet, for rendering the rules page."""
    return rules_table()


app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(entries.router, prefix="/api/entries", tags=["entries"])
