"""
middleware/request_middleware.py — Request id and access logging.

Every request gets an id (the inbound X-Request-ID header when present,
otherwise a fresh UUID). It is stored on flask.g, echoed in the response
header, and attached to the "request completed" log line together with
method, path, status, duration and the authenticated user id.
"""

from __future__ import annotations

import time
import uuid

from flask import Flask, g, request

REQUEST_ID_HEADER = "X-Request-ID"


def register_request_hooks(app: Flask) -> None:

    @app.before_request
    def assign_request_id():
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        request_id = g.get("request_id")
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id

        started = g.get("request_started")
        duration_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        user = g.get("user")

        app.logger.info(
            "Request completed method=%s path=%s status=%s duration_ms=%.1f request_id=%s user_id=%s",
            request.method,
            request.path,
            response.status_code,
            duration_ms,
            request_id,
            user.id if user is not None else None,
        )
        return response
