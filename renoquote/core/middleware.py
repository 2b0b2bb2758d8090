import time
import uuid

from fastapi import Request

from renoquote.core.logger import get_logger

logger = get_logger("request_logger")

REQUEST_ID_HEADER = "X-Request-ID"


async def log_requests(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
    start_time = time.perf_counter()
    logger.info(f"[{request_id}] Started {request.method} {request.url.path}")

    try:
        response = await call_next(request)
    except Exception:
        duration = time.perf_counter() - start_time
        logger.exception(
            f"[{request_id}] Failed {request.method} {request.url.path} after {duration:.3f}s"
        )
        raise

    duration = time.perf_counter() - start_time
    response.headers[REQUEST_ID_HEADER] = request_id
    response.headers["X-Process-Time"] = f"{duration:.3f}"
    logger.info(
        f"[{request_id}] Completed {request.method} {request.url.path} "
        f"status={response.status_code} in {duration:.3f}s"
    )
    return response
