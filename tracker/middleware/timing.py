"""
Request timing and access log.

Each request gets an id (the client's ``X-Request-ID`` when supplied) and a
start time; the response carries both back as headers. API requests are
logged once on the way out: WARNING when slower than SLOW_REQUEST_MS,
ERROR on 5xx, DEBUG otherwise.
"""

import logging
import time
import uuid

from flask import g, request

logger = logging.getLogger("tracker.access")

SLOW_REQUEST_MS = 1000
_QUIET_PATHS = frozenset({"/api/v1/health"})


def _request_id():
    supplied = request.headers.get("X-Request-ID", "").strip()
    return supplied[:64] if supplied else uuid.uuid4().hex[:12]


def _access_fields(response, elapsed_ms):
    view_args = request.view_args or {}
    return {
        "method": request.method,
        "path": request.path,
        "status": response.status_code,
        "duration_ms": round(elapsed_ms, 1),
        "remote_addr": request.remote_addr,
        "project_id": view_args.get("project_id") or request.args.get("projectId"),
        "activity_id": view_args.get("activity_id"),
    }


def init_request_timing(app):
    @app.before_request
    def _start_clock():
        g.request_id = _request_id()
        g.request_started = time.perf_counter()

    @app.after_request
    def _stop_clock(response):
        started = g.pop("request_started", None)
        if started is None:
            return response
        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = g.get("request_id", "")
        response.headers["X-Request-Duration-Ms"] = f"{elapsed_ms:.1f}"

        if not request.path.startswith("/api/") or request.path in _QUIET_PATHS:
            return response

        fields = _access_fields(response, elapsed_ms)
        summary = "%s %s -> %d in %.0fms"
        args = (request.method, request.path, response.status_code, elapsed_ms)
        if response.status_code >= 500:
            logger.error(summary, *args, extra=fields)
        elif elapsed_ms > SLOW_REQUEST_MS:
            logger.warning("Slow request: " + summary, *args, extra=fields)
        else:
            logger.debug(summary, *args, extra=fields)
        return response
