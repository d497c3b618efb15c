import logging
import secrets
from typing import Any, Dict, Optional

from fastapi import APIRouter, Header, HTTPException, Request
from pydantic import BaseModel

from sitemonitor.exceptions import AccessDenied, ConfigMissing, RunNotFound
from sitemonitor.domain.settings import MonitorSettings
from sitemonitor.services.access_policy import AccessPolicy, client_ip_from
from sitemonitor.services.baseline_diff import significant
from sitemonitor.services.settings_file_store import new_log_id

logger = logging.getLogger(__name__)

DISPATCH_HEADER = "X-Monitor-Dispatch"


class RunRequest(BaseModel):
    # None means "use the settings file".
    settings: Optional[Dict[str, Any]] = None


def create_monitor_router(
    crawl_service,
    settings_store_factory,
    access_policy: Optional[AccessPolicy] = None,
    dispatch_token: Optional[str] = None,
    defaults: Optional[Dict[str, Any]] = None,
):
    router = APIRouter(prefix="/monitor", tags=["Monitor"])
    policy = access_policy or AccessPolicy()

    def _load_settings(req: RunRequest) -> MonitorSettings:
        base = dict(defaults or {})
        base.setdefault("log_id", new_log_id("monitor_web"))
        if req.settings is None:
            data = settings_store_factory().load_dict()
        else:
            data = dict(req.settings)
        return MonitorSettings.from_mapping(data, base)

    @router.post("/runs", status_code=202)
    def start_run(req: RunRequest, request: Request):
        try:
            settings = _load_settings(req)
        except ConfigMissing as e:
            raise HTTPException(status_code=400, detail=str(e))

        client = getattr(request, "client", None)
        client_ip = client_ip_from(request.headers, client.host if client else None)
        try:
            policy.check(settings, client_ip)
        except AccessDenied as e:
            raise HTTPException(status_code=403, detail=str(e))

        try:
            log_id = crawl_service.start(settings)
        except Exception:
            logger.exception("Could not start run %s", settings.log_id)
            raise HTTPException(status_code=500, detail="could not start run")
        return {"status": "started", "log_id": log_id}

    @router.post("/runs/{log_id}/tick")
    def tick(log_id: str, x_monitor_dispatch: Optional[str] = Header(None)):
        if not dispatch_token:
            logger.error("MONITOR_DISPATCH_TOKEN not set - tick endpoint is disabled")
            raise HTTPException(status_code=503, detail="dispatch token not configured")
        if not secrets.compare_digest(x_monitor_dispatch or "", dispatch_token):
            raise HTTPException(status_code=401, detail="Unauthorized")
        try:
            outcome = crawl_service.tick(log_id)
        except RunNotFound:
            raise HTTPException(status_code=404, detail="run not found")
        return {"log_id": log_id, "outcome": outcome.value}

    @router.get("/runs/{log_id}")
    def get_run(log_id: str):
        try:
            state = crawl_service.get_state(log_id)
        except RunNotFound:
            raise HTTPException(status_code=404, detail="run not found")
        return {
            "log_id": state.log_id,
            "completed": state.completed,
            "links": len(state.links),
            "visited": len(state.visited),
            "pending": crawl_service.pending_urls(log_id),
            "broken": list(state.broken),
            "log": list(state.log_records),
            "diffs": [d.to_dict() for d in significant(state.diffs)],
            "time_start": state.time_start,
            "time_end": state.time_end,
        }

    return router
