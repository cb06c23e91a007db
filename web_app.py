"""Web API for notion-repeater: health, configuration, preview and manual sync."""
from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError

import pipeline
from config import AppConfig, ConfigError, PropertyNames
from config import load as load_config
from date_utils import parse_iso_date
from sync_service import SyncResult, build_orchestrator

app = FastAPI(title="Notion Repeater", version="1.0")
logger = logging.getLogger("repeater.api")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """When config.debug is True, log API request method, path and status."""
    try:
        debug = load_config().debug
    except (ValidationError, ValueError, OSError):
        debug = False
    response = await call_next(request)
    if debug:
        logger.warning("[API] %s %s -> %s", request.method, request.url.path, response.status_code)
    return response


# --- API schemas ---


class ConfigUpdate(BaseModel):
    notion_database_id: str | None = None
    notion_token: str | None = None
    user_timezone: str | None = None
    sync_cron: str | None = None
    create_concurrency: int | None = Field(None, ge=1, le=32)
    api_key: str | None = None
    debug: bool | None = None
    properties: PropertyNames | None = None


class SyncRequest(BaseModel):
    date: str | None = Field(None, description="YYYY-MM-DD; default is today in user_timezone")
    dry_run: bool = False


def _parse_date_param(value: str | None):
    try:
        return parse_iso_date(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _orchestrator():
    try:
        return build_orchestrator(load_config())
    except ConfigError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e


def _require_api_key(x_api_key: str | None = Header(None, alias="X-API-Key")) -> None:
    """Dependency: require X-API-Key header to match config. 403 if no key set; 401 if wrong."""
    key = (load_config().api_key or "").strip()
    if not key:
        raise HTTPException(status_code=403, detail="Sync API disabled. Set api_key in config.")
    if not x_api_key or x_api_key.strip() != key:
        raise HTTPException(status_code=401, detail="Invalid or missing API key. Use X-API-Key header.")


# --- API routes ---


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/config")
def get_config() -> dict[str, Any]:
    return load_config().to_public_dict()


@app.put("/api/config")
def put_config(body: ConfigUpdate) -> dict[str, str]:
    # Start from the file, not load(): env-supplied secrets must not be written to disk
    c = AppConfig.load_file()
    changes = body.model_dump(exclude_none=True)
    try:
        updated = AppConfig.model_validate({**c.model_dump(), **changes})
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    updated.save()
    return {"status": "saved"}


@app.get("/api/preview")
def preview(date: str | None = None) -> dict[str, Any]:
    """Which templates would be due on date (default today). Nothing is created."""
    day = _parse_date_param(date)
    with _orchestrator() as orchestrator:
        day = day or orchestrator.clock.today()
        templates = orchestrator.store.query_templates()
    return {
        "date": day.isoformat(),
        "templates": [
            {"id": e.template.record_id, "frequency": e.template.frequency, "decision": e.decision.value}
            for e in pipeline.evaluate_all(templates, day)
        ],
    }


@app.post("/api/sync", response_model=SyncResult, dependencies=[Depends(_require_api_key)])
def sync(body: SyncRequest | None = None) -> SyncResult:
    body = body or SyncRequest()
    day = _parse_date_param(body.date)
    with _orchestrator() as orchestrator:
        try:
            return orchestrator.run(today=day, dry_run=body.dry_run)
        except Exception as e:
            logger.exception("api_sync failed")
            raise HTTPException(status_code=500, detail=str(e))
