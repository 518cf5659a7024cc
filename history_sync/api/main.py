"""
history_sync.api.main.

FastAPI entrypoint for History Sync.

Responsibilities
----------------
• File upload ingestion (inline or as a background job)
• Job status polling
• Heatmap / timeline aggregation queries
• Activity summary for the external analyst service
• GitHub activity sync
• Clearing the event store

Run with ``uvicorn --factory history_sync.api.main:create_app``. Every
collaborator (settings, store, job queue) is passed to ``create_app`` or
built there from settings; nothing is shared through module globals.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from history_sync.aggregation import aggregate, build_activity_summary
from history_sync.configs.settings import Settings, get_settings
from history_sync.ingestion.errors import (
    EmptyDocumentError,
    GitHubSyncError,
    IngestionError,
    StoreError,
    UploadTooLargeError,
)
from history_sync.ingestion.github_client import GitHubEventsClient
from history_sync.ingestion.jobs import JobQueue
from history_sync.ingestion.orchestrator import IngestionOrchestrator
from history_sync.monitoring.logging import setup_from_settings
from history_sync.schemas.event import EventSource
from history_sync.storage.base import EventQuery, EventStore
from history_sync.storage.memory import InMemoryEventStore

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_BYTES = 1024 * 1024

GitHubClientFactory = Callable[[Settings, Optional[str]], GitHubEventsClient]


# ---------------------------------------------------------------------------
# REQUEST MODELS
# ---------------------------------------------------------------------------


class GitHubSyncRequest(BaseModel):
    """Body of ``POST /github``."""

    username: str = ""
    token: Optional[str] = None


# ---------------------------------------------------------------------------
# DEPENDENCIES
# ---------------------------------------------------------------------------


def build_store(settings: Settings) -> EventStore:
    """PostgreSQL when DATABASE_URL is configured, memory otherwise."""
    if settings.DATABASE_URL:
        from history_sync.storage.postgres import PostgresEventStore

        return PostgresEventStore.from_settings(settings)
    return InMemoryEventStore()


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> EventStore:
    return request.app.state.store


def get_orchestrator(request: Request) -> IngestionOrchestrator:
    return request.app.state.orchestrator


def get_jobs(request: Request) -> JobQueue:
    return request.app.state.jobs


async def read_upload(upload: UploadFile, limit: int) -> bytes:
    """
    Read an upload, stopping as soon as it exceeds ``limit`` bytes.

    Raises:
        UploadTooLargeError: Before the whole body has been buffered
    """
    chunks = []
    size = 0
    while True:
        chunk = await upload.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            break
        size += len(chunk)
        if size > limit:
            raise UploadTooLargeError(size, limit)
        chunks.append(chunk)
    return b"".join(chunks)


# ---------------------------------------------------------------------------
# APP FACTORY
# ---------------------------------------------------------------------------


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[EventStore] = None,
    jobs: Optional[JobQueue] = None,
    github_client_factory: Optional[GitHubClientFactory] = None,
) -> FastAPI:
    """
    Build the API with its collaborators.

    Parameters
    ----------
    settings : Settings, optional
        Defaults to the cached environment settings.
    store : EventStore, optional
        Defaults to ``build_store(settings)``.
    jobs : JobQueue, optional
        Defaults to a queue with ``settings.JOB_WORKERS`` workers.
    github_client_factory : callable, optional
        ``(settings, token) -> GitHubEventsClient``; overridable in tests.
    """
    settings = settings or get_settings()
    setup_from_settings(settings)
    store = store if store is not None else build_store(settings)
    jobs = jobs or JobQueue(max_workers=settings.JOB_WORKERS)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.jobs.shutdown(wait=False)
        app.state.store.close()

    app = FastAPI(
        title="History Sync API",
        version="0.1.0",
        description="Ingest personal activity exports and query activity heatmaps.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.jobs = jobs
    app.state.orchestrator = IngestionOrchestrator.from_settings(store, settings)
    app.state.github_client_factory = github_client_factory or GitHubEventsClient.from_settings

    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    # -----------------------------------------------------------------------
    # HEALTH
    # -----------------------------------------------------------------------

    @app.get("/health", tags=["Monitoring"])
    def health_check() -> dict[str, str]:
        """Service status indicator."""
        return {"status": "ok"}

    # -----------------------------------------------------------------------
    # INGESTION
    # -----------------------------------------------------------------------

    @app.post("/ingest", tags=["Ingestion"])
    async def ingest(
        file: Optional[UploadFile] = File(None),
        background: bool = Query(False, description="Process as a background job"),
        settings: Settings = Depends(get_app_settings),
        orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
        jobs: JobQueue = Depends(get_jobs),
    ) -> Any:
        """
        Ingest one exported file.

        Returns the event count and detected format, or a pending job handle
        when ``background`` is set.
        """
        if file is None:
            raise HTTPException(status_code=400, detail="No file uploaded")

        try:
            data = await read_upload(file, settings.MAX_UPLOAD_BYTES)
            if background:
                job = orchestrator.submit(data, jobs, filename=file.filename)
                return JSONResponse(
                    status_code=202, content={"id": job.id, "status": job.status.value}
                )
            result = await run_in_threadpool(
                orchestrator.ingest_bytes, data, file.filename
            )
        except UploadTooLargeError as e:
            raise HTTPException(status_code=413, detail=str(e)) from e
        except EmptyDocumentError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except IngestionError as e:
            logger.error(f"Ingestion failed for {file.filename}: {e}")
            raise HTTPException(status_code=500, detail=str(e)) from e

        return result.to_dict()

    @app.get("/jobs/{job_id}", tags=["Ingestion"])
    def job_status(job_id: str, jobs: JobQueue = Depends(get_jobs)) -> dict[str, Any]:
        """Poll a background ingestion job."""
        job = jobs.get(job_id)
        if job is None:
            raise HTTPException(status_code=404, detail="Job not found")
        return job.to_dict()

    @app.post("/github", tags=["Ingestion"])
    def github_sync(
        body: GitHubSyncRequest,
        request: Request,
        settings: Settings = Depends(get_app_settings),
        orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
    ) -> dict[str, Any]:
        """Pull a user's GitHub activity into the store."""
        username = body.username.strip()
        if not username:
            raise HTTPException(status_code=400, detail="Username is required")

        factory = request.app.state.github_client_factory
        try:
            with factory(settings, body.token) as client:
                events = client.sync_user(username, tz=settings.tzinfo)
            result = orchestrator.ingest_events(events, "github")
        except GitHubSyncError as e:
            logger.error(f"GitHub sync error: {e}")
            raise HTTPException(status_code=502, detail=str(e)) from e
        except IngestionError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e

        return {
            "success": True,
            "count": result.count,
            "stored": result.stored,
            "events": [e.to_dict() for e in result.events],
        }

    # -----------------------------------------------------------------------
    # QUERIES
    # -----------------------------------------------------------------------

    @app.get("/aggregates", tags=["Analytics"])
    def aggregates(
        days: Optional[int] = Query(None, ge=1, le=3660),
        source: Optional[EventSource] = None,
        actor: Optional[str] = None,
        tag: Optional[str] = None,
        settings: Settings = Depends(get_app_settings),
        store: EventStore = Depends(get_store),
    ) -> dict[str, Any]:
        """Day x hour matrix, windowed events and actor ranking."""
        days = days or settings.DEFAULT_WINDOW_DAYS
        now = datetime.now(timezone.utc)
        query = EventQuery(
            since=now - timedelta(days=days), source=source, actor=actor, tag=tag
        )
        try:
            events = store.query(query)
        except StoreError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e
        return aggregate(events, days, now=now, tz=settings.tzinfo).model_dump(mode="json")

    @app.get("/summary", tags=["Analytics"])
    def summary(
        days: Optional[int] = Query(None, ge=1, le=3660),
        settings: Settings = Depends(get_app_settings),
        store: EventStore = Depends(get_store),
    ) -> dict[str, Any]:
        """Daily per-source counts, the payload for the external analyst."""
        days = days or settings.DEFAULT_WINDOW_DAYS
        now = datetime.now(timezone.utc)
        try:
            events = store.query(EventQuery(since=now - timedelta(days=days)))
        except StoreError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e
        return build_activity_summary(events, days, now=now, tz=settings.tzinfo).model_dump()

    # -----------------------------------------------------------------------
    # MAINTENANCE
    # -----------------------------------------------------------------------

    @app.post("/clear", tags=["Maintenance"])
    def clear(store: EventStore = Depends(get_store)) -> dict[str, Any]:
        """Irreversibly delete every stored event."""
        try:
            removed = store.clear()
        except StoreError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e
        logger.warning(f"Event store cleared ({removed} events)")
        return {"message": "Event store cleared", "removed": removed}
