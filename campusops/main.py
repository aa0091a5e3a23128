"""FastAPI main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from campusops.core.config import settings
from campusops.core.middleware import setup_middleware
from campusops.core.exceptions import AuthenticationRequired, PortalError

from campusops.api.auth import router as auth_router
from campusops.api.access import router as access_router
from campusops.api.audit import router as audit_router
from campusops.api.roles import router as roles_router
from campusops.api.admin import router as admin_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("campusops")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting %s API", settings.APP_NAME)
    if settings.AUTO_PROVISION_USERS:
        logger.warning("Auto-provisioning of first-time logins is enabled")
    if settings.ALLOW_DEFAULT_PASSWORD:
        logger.warning("Logins without a password fall back to the default credential")
    yield
    logger.info("Shutting down %s API", settings.APP_NAME)


app = FastAPI(
    title="Campus Operations Portal API",
    description="Role-gated campus operations: RBAC, access changes and audit",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Middleware
setup_middleware(app)


@app.exception_handler(PortalError)
async def portal_exception_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationRequired) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Missing or malformed fields are client errors (400), not 422
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
    )


# Register routers
app.include_router(auth_router, prefix="/api")
app.include_router(access_router, prefix="/api")
app.include_router(audit_router, prefix="/api")
app.include_router(roles_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/api/health")
async def health():
    """Quick health check endpoint."""
    return {"status": "ok"}
