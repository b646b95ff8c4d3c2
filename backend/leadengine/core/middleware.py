"""ASGI middleware: request context, access logs and upload size limits."""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from leadengine.core.config import settings
from leadengine.core.logging import actor_id_ctx_var, request_id_ctx_var

# Path parameters worth repeating on the access log line.
_LOGGED_PATH_PARAMS = ("batch_id", "task_id", "employee_id")


class RequestContextLogMiddleware(BaseHTTPMiddleware):
    """Binds request and actor ids to the logging context and logs each call."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        request_token = request_id_ctx_var.set(request_id)
        actor_token = actor_id_ctx_var.set(request.headers.get("X-Actor-ID") or "-")
        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            response.headers.setdefault("X-Request-ID", request_id)
            return response
        finally:
            status_code = response.status_code if response is not None else 500
            path_params = request.scope.get("path_params") or {}
            access_log = logger.bind(
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
                **{key: path_params[key] for key in _LOGGED_PATH_PARAMS if key in path_params},
            )
            if status_code >= 500:
                access_log.error("request_failed")
            else:
                access_log.info("request_completed")
            request_id_ctx_var.reset(request_token)
            actor_id_ctx_var.reset(actor_token)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Turn away writes whose declared body exceeds ``MAX_UPLOAD_BYTES``.

    Uploads streamed without a ``Content-Length`` are still capped when the
    route reads the file.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        if request.method in ("POST", "PUT", "PATCH"):
            declared = request.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > settings.MAX_UPLOAD_BYTES:
                max_size_mb = settings.MAX_UPLOAD_BYTES / (1024 * 1024)
                logger.bind(path=str(request.url.path), declared=int(declared)).warning(
                    "request_body_too_large"
                )
                return JSONResponse(
                    status_code=413,
                    content={"detail": f"File too large. Max allowed size is {max_size_mb:.0f} MB."},
                )
        return await call_next(request)
