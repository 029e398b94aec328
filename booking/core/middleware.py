# booking/core/middleware.py
"""HTTP middleware: correlation ids and request timing"""
import logging
import re
import time
import uuid
from starlette.requests import Request

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
RESPONSE_TIME_HEADER = "X-Response-Time-Ms"

# ids from callers are echoed back into headers and logs
_CORRELATION_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

# health checks poll these; their lines are kept at DEBUG
QUIET_PATH_PREFIXES = ("/health",)


def resolve_correlation_id(incoming):
    if incoming and _CORRELATION_ID_PATTERN.match(incoming):
        return incoming
    return str(uuid.uuid4())


def status_log_level(status_code: int, path: str) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    if path.startswith(QUIET_PATH_PREFIXES):
        return logging.DEBUG
    return logging.INFO


async def correlation_id_middleware(request: Request, call_next):
    """Reuse the caller's correlation id when it is well formed, otherwise mint one"""
    correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_HEADER))
    request.state.correlation_id = correlation_id

    response = await call_next(request)
    response.headers[CORRELATION_HEADER] = correlation_id
    return response


async def request_logging_middleware(request: Request, call_next):
    """One line per request with status and elapsed time; booking conflicts show up as warnings"""
    started = time.perf_counter()
    correlation_id = getattr(request.state, "correlation_id", "-")
    path = request.url.path

    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.exception(f"[{correlation_id}] {request.method} {path} failed after {elapsed_ms:.1f}ms")
        raise

    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers[RESPONSE_TIME_HEADER] = f"{elapsed_ms:.1f}"
    logger.log(
        status_log_level(response.status_code, path),
        f"[{correlation_id}] {request.method} {path} -> {response.status_code} in {elapsed_ms:.1f}ms",
        extra={
            "correlation_id": correlation_id,
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": round(elapsed_ms, 2),
        }
    )
    return response
