"""
Container Notes:
- Listens on 0.0.0.0:8080; every path except /healthz runs the synthetic load handler.
- No files are written to disk; all logs go to stdout as structured JSON lines.
- Configuration comes from DUMMY_LOAD_* environment variables (set by `dummy-load` flags).

Run: dummy-load -cpu 50 -mem 64 -time 200 -jitter 0.2
Example: curl -i http://localhost:8080/
"""

import json
import logging
import random
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware

from dummy_load.config import LOG_LEVEL, Settings
from dummy_load.load import cpu_load_for_duration, jittered_targets, new_rng, touch_pages

LOAD_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


# --- Logging ---
class StructuredLogger:
    def __init__(self):
        self.logger = logging.getLogger("dummy_load")
        self.logger.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))

    def log(self, ts, method, path, status, latency_ms, user_agent, req_id):
        if not self.logger.isEnabledFor(logging.INFO):
            return
        log_obj = {
            "ts": ts,
            "method": method,
            "path": path,
            "status": status,
            "latency_ms": latency_ms,
            "user_agent": user_agent,
            "req_id": req_id,
        }
        print(json.dumps(log_obj), flush=True)

    def event(self, name: str, level: int = logging.INFO, **fields: Any):
        if not self.logger.isEnabledFor(level):
            return
        log_obj = {"ts": datetime.now(timezone.utc).isoformat(), "event": name}
        log_obj.update(fields)
        print(json.dumps(log_obj), flush=True)


logger = StructuredLogger()


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.time()
        req_id = request.headers.get("X-Req-Id") or str(uuid.uuid4())
        response = await call_next(request)
        response.headers["X-Req-Id"] = req_id
        latency_ms = int((time.time() - start) * 1000)
        ts = datetime.now(timezone.utc).isoformat()
        user_agent = request.headers.get("user-agent", "")
        logger.log(ts, request.method, request.url.path, response.status_code, latency_ms, user_agent, req_id)
        return response


# --- Load ---
def simulate_request(settings: Settings, rng: random.Random) -> str:
    """Consume the jittered CPU/memory/time targets and return the response line."""
    targets = jittered_targets(settings, rng)
    logger.event("targets", level=logging.DEBUG, cpu=targets.cpu_percent, mem_mb=targets.mem_mb, time_ms=targets.time_ms)

    start = time.perf_counter()

    mem_block = None
    if targets.mem_mb > 0:
        mem_block = bytearray(targets.mem_mb * 1024 * 1024)
        touch_pages(mem_block)

    cpu_load_for_duration(targets.cpu_percent, targets.time_ms / 1000.0)

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    body = (
        f"OK | target_time={targets.time_ms}ms target_cpu={targets.cpu_percent:.1f}% "
        f"target_mem={targets.mem_mb}MB jitter={settings.jitter:.2f} | elapsed={elapsed_ms}ms\n"
    )

    # the block must stay committed for the whole simulated request
    del mem_block
    return body


# --- App ---
def create_app(settings: Optional[Settings] = None, rng: Optional[random.Random] = None) -> FastAPI:
    """Build the load app. Settings default to the DUMMY_LOAD_* environment."""
    if settings is None:
        settings = Settings.from_env()

    app = FastAPI(title="Dummy Load", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.settings = settings
    app.state.rng = rng or new_rng()
    app.add_middleware(LoggingMiddleware)

    @app.api_route("/healthz", methods=LOAD_METHODS)
    async def healthz():
        """Liveness check."""
        return Response(status_code=200)

    @app.api_route("/{path:path}", methods=LOAD_METHODS)
    def load(request: Request):
        """Run the synthetic load for this request."""
        body = simulate_request(request.app.state.settings, request.app.state.rng)
        return PlainTextResponse(body)

    logger.event("app_ready", settings=settings.model_dump())
    return app
