"""HTTP middleware for request correlation and structured logging.

Provide middleware to manage request-scoped context variables, specifically
the Request ID, so every log line of a request (including the lines emitted
while a response stream is being produced) carries the same identifier.
"""

import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from conduit.core.logging_config import bind_contextvars, clear_contextvars, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestCorrelationMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the logging context and echo it in the response.

    A client-provided `X-Request-ID` (from a load balancer or API gateway)
    is reused; otherwise a new UUID4 is generated.
    """

    async def dispatch(self, request: Request, call_next):
        # Context may survive across tasks in async servers.
        clear_contextvars()

        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        bind_contextvars(request_id=request_id, path=request.url.path)

        response: Response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
