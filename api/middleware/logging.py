import os
import json
import logging
import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("api.access")


class LoggingMiddleware(BaseHTTPMiddleware):
    """One JSON access line per request when ``LOGGING_ENABLED=true``."""

    async def dispatch(self, request: Request, call_next):
        if os.getenv("LOGGING_ENABLED", "false").lower() != "true":
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        elapsed = round((time.perf_counter() - start) * 1000, 2)
        record = {
            "ts": time.time(),
            "ip": request.client.host if request.client else None,
            "method": request.method,
            "endpoint": request.url.path,
            "status": response.status_code,
            "latency_ms": elapsed,
        }
        logger.info(json.dumps(record, ensure_ascii=False))
        return response
