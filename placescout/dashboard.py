"""FastAPI surface for launching scrape sessions and browsing the place database."""

from __future__ import annotations

import os
import time
from datetime import timedelta
from typing import Literal, get_args

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, Response

from placescout.config import ScrapeSettings, load_config
from placescout.errors import BatchRequestError
from placescout.extractors.schemas import BatchRequest, ExtractedRecord
from placescout.logging_config import get_logger
from placescout.orchestrator import BatchOrchestrator, SessionLauncher
from placescout.session import BatchSession, SessionRegistry
from placescout.storage.export import records_to_csv, records_to_json
from placescout.storage.store import PlaceStore

LOGGER = get_logger(__name__)

DownloadFormat = Literal["json", "csv"]
DOWNLOAD_FORMATS: tuple[str, ...] = get_args(DownloadFormat)

# Finished sessions older than this are dropped when a new one starts.
SESSION_TTL = timedelta(hours=1)


def _download(records: list[ExtractedRecord], fmt: DownloadFormat, stem: str, *, full: bool) -> Response:
    filename = f"{stem}-{int(time.time() * 1000)}.{fmt}"
    headers = {"Content-Disposition": f"attachment; filename={filename}"}
    if fmt == "json":
        return Response(records_to_json(records), media_type="application/json", headers=headers)
    body = records_to_csv(records, include_keyword=True, include_scraped_at=full)
    return Response(body, media_type="text/csv", headers=headers)


def create_app(
    *,
    store: PlaceStore | None = None,
    registry: SessionRegistry | None = None,
    launcher: SessionLauncher | None = None,
    settings: ScrapeSettings | None = None,
) -> FastAPI:
    """Build the API around one store and one session registry."""

    if settings is None:
        settings = ScrapeSettings.from_config(load_config())
    if store is None:
        store = PlaceStore(settings.database_path)
    if registry is None:
        registry = SessionRegistry()
    if launcher is None:
        launcher = SessionLauncher(registry, BatchOrchestrator(store, settings))

    app = FastAPI(title="PlaceScout")
    app.state.store = store
    app.state.registry = registry
    app.state.launcher = launcher

    @app.exception_handler(HTTPException)
    async def error_handler(request: Request, exc: HTTPException) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse({"error": detail}, status_code=exc.status_code)

    def _format_or_404(fmt: str) -> DownloadFormat:
        if fmt not in DOWNLOAD_FORMATS:
            raise HTTPException(status_code=404, detail=f"Unsupported format: {fmt}")
        return fmt  # type: ignore[return-value]

    def _session_or_404(session_id: str) -> BatchSession:
        session = registry.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return session

    @app.get("/healthz")
    def healthcheck() -> dict[str, str]:
        """Return application health information."""

        return {"status": "ok"}

    @app.post("/api/scrape")
    async def start_scrape(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
        except ValueError:
            payload = None
        try:
            batch = BatchRequest.from_payload(payload)
        except BatchRequestError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        expired = registry.expire(SESSION_TTL)
        if expired:
            LOGGER.debug("Expired %s finished session(s)", expired)
        session = launcher.start(batch)
        LOGGER.info(
            "Scrape requested | session=%s location=%r keywords=%s",
            session.id,
            batch.location,
            batch.keywords,
        )
        return JSONResponse({"sessionId": session.id, "message": "Scraping started"})

    @app.get("/api/status/{session_id}")
    def session_status(session_id: str) -> JSONResponse:
        return JSONResponse(_session_or_404(session_id).snapshot())

    @app.get("/api/results/{session_id}")
    def session_results(session_id: str) -> JSONResponse:
        session = _session_or_404(session_id)
        return JSONResponse({"results": [record.to_dict() for record in session.results()]})

    @app.get("/api/download/{session_id}/{fmt}")
    def download_session(session_id: str, fmt: str) -> Response:
        session = _session_or_404(session_id)
        return _download(session.results(), _format_or_404(fmt), "google-maps-results", full=False)

    @app.post("/api/sessions/{session_id}/cancel")
    def cancel_session(session_id: str) -> JSONResponse:
        session = _session_or_404(session_id)
        accepted = session.cancel()
        return JSONResponse({"success": accepted, "status": session.status.value})

    @app.get("/api/database")
    def database() -> JSONResponse:
        places = [place.to_dict() for place in store.all()]
        return JSONResponse({"places": places, "stats": store.stats()})

    @app.get("/api/database/stats")
    def database_stats() -> JSONResponse:
        return JSONResponse(store.stats())

    @app.post("/api/database/reset")
    def database_reset() -> JSONResponse:
        store.reset()
        return JSONResponse({"success": True, "message": "Database has been reset"})

    @app.get("/api/database/search")
    def database_search(q: str | None = Query(None, description="Name, keyword or city fragment.")) -> JSONResponse:
        if not q or not q.strip():
            raise HTTPException(status_code=400, detail="Search query is required")
        return JSONResponse({"results": [place.to_dict() for place in store.search(q)]})

    @app.get("/api/database/download/{fmt}")
    def download_database(fmt: str) -> Response:
        return _download(store.all(), _format_or_404(fmt), "database-export", full=True)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "3000"))
    uvicorn.run("placescout.dashboard:app", host="0.0.0.0", port=port, reload=False)
