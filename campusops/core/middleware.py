"""CORS, request-id, logging, and authentication gatekeeper middleware."""

import uuid
import time
import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from campusops.core.config import settings

logger = logging.getLogger("campusops")

# Paths under /api reachable without any credential
PUBLIC_API_PATHS = frozenset({
    "/api/auth/login",
    "/api/health",
    "/api/admin/health",
})


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Add a unique request ID to every request/response."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()

        response: Response = await call_next(request)

        duration = round((time.time() - start_time) * 1000, 2)
        response.headers["X-Request-Id"] = request_id
        response.headers["X-Response-Time-Ms"] = str(duration)

        logger.info(
            "%s %s %s %sms",
            request.method,
            request.url.path,
            response.status_code,
            duration,
        )
        return response


class AuthGatekeeperMiddleware(BaseHTTPMiddleware):
    """Reject /api calls that carry neither a bearer header nor a session cookie.

    Only presence is checked here; the token itself is verified by the
    session dependency on each protected route.
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if (
            path.startswith("/api/")
            and path not in PUBLIC_API_PATHS
            and request.method != "OPTIONS"
            and not request.headers.get("authorization")
            and not request.cookies.get(settings.SESSION_COOKIE_NAME)
        ):
            return JSONResponse(
                status_code=401,
                content={"detail": "Authentication required"},
                headers={"WWW-Authenticate": "Bearer"},
            )
        return await call_next(request)


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application."""
    app.add_middleware(AuthGatekeeperMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID + timing
    app.add_middleware(RequestIdMiddleware)
