"""
Request id and duration stamping.

Every response carries ``X-Request-ID`` (the caller's id when it is a sane
token, otherwise a fresh one) and ``X-Request-Duration-Ms``. One access line
is logged per request: warning when slower than ``SLOW_REQUEST_MS``, error on
a 5xx, debug otherwise. Health checks and static assets are stamped but not
logged.
"""

import logging
import re
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
DURATION_HEADER = "X-Request-Duration-Ms"

DEFAULT_SLOW_REQUEST_MS = 1000

# inbound ids: short opaque tokens only
_REQUEST_ID_RE = re.compile(r"[A-Za-z0-9._-]{1,64}")

_QUIET_PREFIXES = ("/api/health", "/static/")


def resolve_request_id(inbound: str | None) -> str:
    if inbound and _REQUEST_ID_RE.fullmatch(inbound):
        return inbound
    return uuid.uuid4().hex[:12]


def access_log_level(status: int, duration_ms: float, slow_ms: float) -> int:
    if duration_ms > slow_ms:
        return logging.WARNING
    if status >= 500:
        return logging.ERROR
    return logging.DEBUG


def _is_quiet(path: str) -> bool:
    return path.startswith(_QUIET_PREFIXES)


def init_request_timing(app: Flask):
    slow_ms = app.config.get("SLOW_REQUEST_MS", DEFAULT_SLOW_REQUEST_MS)

    @app.before_request
    def _stamp_request():
        g.request_started = time.perf_counter()
        g.request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

    @app.after_request
    def _stamp_response(response):
        started = g.get("request_started")
        if started is None:
            # an earlier before_request hook short-circuited
            return response

        elapsed = (time.perf_counter() - started) * 1000
        response.headers[DURATION_HEADER] = f"{elapsed:.1f}"
        response.headers[REQUEST_ID_HEADER] = g.request_id

        if _is_quiet(request.path):
            return response

        level = access_log_level(response.status_code, elapsed, slow_ms)
        if logger.isEnabledFor(level):
            user = g.get("current_user")
            logger.log(
                level,
                "%s %s -> %d in %.0fms",
                request.method, request.path, response.status_code, elapsed,
                extra={
                    "method": request.method,
                    "path": request.path,
                    "status": response.status_code,
                    "duration_ms": round(elapsed, 1),
                    "remote_addr": request.remote_addr,
                    "request_id": g.request_id,
                    "user_id": user.id if user is not None else None,
                },
            )
        return response
