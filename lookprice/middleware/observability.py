from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from lookprice.core.metrics import request_metrics
from lookprice.core.request_context import begin_request, current_request, end_request

logger = logging.getLogger(__name__)

# Requests that matched no route share one metrics key.
UNMATCHED_ENDPOINT = "<unmatched>"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        context_token = begin_request(request_id)
        context = current_request()

        status_code = 500
        method = request.method

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            endpoint = _endpoint_template(request)
            store_id = str(context.store_id) if context.store_id is not None else None
            user_id = str(context.user_id) if context.user_id is not None else None
            duration_ms = round((time.perf_counter() - start) * 1000, 2)

            request_metrics.observe(
                endpoint=endpoint,
                method=method,
                status_code=status_code,
                duration_ms=duration_ms,
                store_id=store_id,
            )

            logger.info(
                "request completed path=%s",
                request.url.path,
                extra={
                    "request_id": request_id,
                    "store_id": store_id,
                    "user_id": user_id,
                    "endpoint": endpoint,
                    "method": method,
                    "status_code": status_code,
                    "duration_ms": duration_ms,
                },
            )

            if "response" in locals():
                response.headers["X-Request-ID"] = request_id

            end_request(context_token)


def _endpoint_template(request: Request) -> str:
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or UNMATCHED_ENDPOINT
