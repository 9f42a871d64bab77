import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session_id"


class SessionCookieMiddleware(BaseHTTPMiddleware):
    """Attach a session id to every request and log request metadata."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        session_id = request.cookies.get(SESSION_COOKIE)
        is_new = not session_id
        if is_new:
            session_id = uuid.uuid4().hex
        request.state.session_id = session_id

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1_000

        if is_new:
            response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")

        logger.info(
            "[session %s] %s %s -> %s (%.1f ms)",
            session_id[:8],
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response
