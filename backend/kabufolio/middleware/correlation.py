# backend/kabufolio/middleware/correlation.py
"""
Correlation ID middleware for request tracing.

Every request gets a correlation ID that is stored in the request context
(so log records carry it) and echoed back in the X-Correlation-ID response
header. The browser client can pass its own ID to tie a price refresh in the
UI to the server-side log lines it caused.

Correlation ID sources (in order of precedence):
1. X-Correlation-ID header
2. X-Request-ID header
3. A freshly generated UUID4

Client-supplied IDs longer than MAX_CORRELATION_ID_LENGTH or containing
characters outside [A-Za-z0-9._-] are replaced by a generated one.
"""

import logging
import re
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from kabufolio.utils.context import set_correlation_id, clear_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

MAX_CORRELATION_ID_LENGTH = 128
_SAFE_ID = re.compile(r"^[A-Za-z0-9._-]+$")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Stores a per-request correlation ID and echoes it in the response."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        correlation_id = self._get_correlation_id(request)
        set_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()

    def _get_correlation_id(self, request: Request) -> str:
        for header in (CORRELATION_ID_HEADER, REQUEST_ID_HEADER):
            candidate = request.headers.get(header)
            if not candidate:
                continue
            if len(candidate) <= MAX_CORRELATION_ID_LENGTH and _SAFE_ID.match(candidate):
                return candidate
            logger.debug(f"Ignoring malformed {header} header")

        return str(uuid.uuid4())
