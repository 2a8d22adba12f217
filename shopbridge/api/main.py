"""FastAPI application entry point."""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import Settings
from ..orchestrator import MigrationOrchestrator
from .routes import dataflows, migrations


def create_app(orchestrator: Optional[MigrationOrchestrator] = None) -> FastAPI:
    """Build the API around an orchestrator (one is created from the environment if omitted)."""
    app = FastAPI(
        title="Shopbridge API",
        description="Shopware to Shopify migration API",
        version=__version__,
    )
    app.state.orchestrator = orchestrator or MigrationOrchestrator(settings=Settings.from_env())

    # CORS middleware for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(migrations.router, prefix="/api/migrations", tags=["migrations"])
    app.include_router(dataflows.router, prefix="/api/dataflows", tags=["dataflows"])

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
