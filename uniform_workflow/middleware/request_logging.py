import time
import uuid
import logging
from fastapi import Request

from uniform_workflow.core.logging import request_id_var

logger = logging.getLogger("workflow.access")

REQUEST_ID_HEADER = "X-Request-Id"


async def request_logging_middleware(request: Request, call_next):
    # keep the gateway's id so status audit trails can be joined with its logs
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    token = request_id_var.set(request_id)
    request.state.request_id = request_id

    start_time = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)

    process_time = (time.perf_counter() - start_time) * 1000
    response.headers[REQUEST_ID_HEADER] = request_id

    log = logger.warning if response.status_code >= 500 else logger.info
    log(
        "",
        extra={
            "request_id": request_id,
            "client_addr": request.client.host if request.client else "unknown",
            "actor_id": request.headers.get("x-actor-id", "-"),
            "actor_role": request.headers.get("x-actor-role", "-"),
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "process_time_ms": round(process_time, 2),
        },
    )

    return response
