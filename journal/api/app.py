"""FastAPI application factory."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

# Load .env file from project root (must be before other imports)
load_dotenv()
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from journal.api.routes import backups, cost_tracking, travel_data  # noqa: E402
from journal.persistence.config import StoreConfig  # noqa: E402
from journal.persistence.document_store import TripDocumentStore  # noqa: E402
from journal.services.merge_engine import TripMergeEngine  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the document store and merge engine from the environment."""
    config = StoreConfig.from_env()
    config.data_dir.mkdir(parents=True, exist_ok=True)
    store = TripDocumentStore(config)
    app.state.merge_engine = TripMergeEngine(store)
    logger.info(
        "Trip store at %s (backups in %s)",
        config.data_dir, config.resolved_backup_dir,
    )
    yield


app = FastAPI(
    title="Travel Journal API",
    description="Trip documents shared by the itinerary editor and the cost tracker",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(travel_data.router, prefix="/api")
app.include_router(cost_tracking.router, prefix="/api")
app.include_router(backups.router, prefix="/api")


@app.get("/api/health")
async def health():
    engine: TripMergeEngine = app.state.merge_engine
    config = engine.store.config
    return {
        "status": "ok",
        "data_dir": str(config.data_dir),
        "data_dir_ready": config.data_dir.is_dir(),
    }
