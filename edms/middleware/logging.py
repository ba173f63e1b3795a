from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

ACCESS_LOGGER_NAME = "edms.access"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One JSON access-log line per request."""

    def __init__(self, app, logger: logging.Logger | None = None) -> None:
        super().__init__(app)
        self.logger = logger if logger is not None else logging.getLogger(ACCESS_LOGGER_NAME)

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()
        base_payload: dict[str, object] = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            base_payload["request_bytes"] = int(content_length)

        try:
            response = await call_next(request)
        except Exception:
            self._log(
                {
                    "event": "http_request_error",
                    **base_payload,
                    "status": 500,
                    "duration_ms": self._elapsed_ms(start),
                },
                level=logging.ERROR,
            )
            raise

        response.headers.setdefault("x-request-id", request_id)
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        self._log(
            {
                "event": "http_request",
                **base_payload,
                "status": response.status_code,
                "duration_ms": self._elapsed_ms(start),
            },
            level=level,
        )
        return response

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.perf_counter() - start) * 1000)

    def _log(self, payload: dict[str, object], level: int = logging.INFO) -> None:
        self.logger.log(level, json.dumps(payload, separators=(",", ":")))
