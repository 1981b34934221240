"""
Request middleware: correlation ids, per-request timing and timeouts.
"""
import asyncio
import uuid
import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from fastapi import status
from fastapi.responses import JSONResponse
from app.core.errors import ErrorCodes, get_error_response
from app.core.performance import PerformanceMonitor

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with a correlation id.

    The id comes from the X-Correlation-ID header or is generated, is stored
    on request.state, stamped on every log record emitted while the request
    runs, and echoed back in the response headers.
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        old_factory = logging.getLogRecordFactory()

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            record.correlation_id = correlation_id
            return record

        logging.setLogRecordFactory(record_factory)
        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path} - {e} ({duration:.3f}s)",
                extra={"method": request.method, "path": request.url.path, "duration": duration},
                exc_info=True
            )
            error_info = get_error_response(ErrorCodes.UNKNOWN_ERROR)
            error_info['correlation_id'] = correlation_id
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=error_info,
                headers={CORRELATION_HEADER: correlation_id}
            )
        finally:
            logging.setLogRecordFactory(old_factory)

        duration = time.time() - start_time
        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers["X-Response-Time"] = f"{duration:.3f}"
        PerformanceMonitor.record_metric(
            "request_duration",
            duration,
            {"path": request.url.path, "status_code": response.status_code}
        )
        logger.info(
            f"{request.method} {request.url.path} - {response.status_code} ({duration:.3f}s)",
            extra={"method": request.method, "path": request.url.path,
                   "status_code": response.status_code, "duration": duration}
        )
        return response


class TimeoutMiddleware(BaseHTTPMiddleware):
    """Answer 504 with a TIMEOUT body when a request outlives the limit."""

    def __init__(self, app, timeout_seconds: int):
        super().__init__(app)
        self.timeout_seconds = timeout_seconds

    async def dispatch(self, request: Request, call_next):
        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            correlation_id = getattr(request.state, 'correlation_id', 'unknown')
            logger.error(f"Request timeout after {self.timeout_seconds} seconds: {request.url.path}")
            error_info = get_error_response(ErrorCodes.TIMEOUT)
            error_info['correlation_id'] = correlation_id
            return JSONResponse(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                content=error_info,
                headers={CORRELATION_HEADER: correlation_id}
            )
