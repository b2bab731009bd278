"""
AgencyOS API application.

Run with ``uvicorn agencyos.main:app``.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agencyos.core.config import settings
from agencyos.routers import (
    auth,
    chat,
    clients,
    invites,
    invoices,
    notifications,
    organizations,
    tasks,
)

VERSION = "1.0.0"

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("AgencyOS API %s starting (%s)", VERSION, settings.ENVIRONMENT)
    yield
    logger.info("AgencyOS API stopped")


app = FastAPI(
    title="AgencyOS API",
    description="Multi-tenant agency workspace: teams, clients, tasks, invoices and chat",
    version=VERSION,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url=None,
    openapi_url="/api/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback and answer with the standard error envelope."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    detail = {"code": "INTERNAL_SERVER_ERROR", "message": "An unexpected error occurred"}
    if settings.DEBUG:
        detail["message"] = str(exc)
        detail["type"] = type(exc).__name__
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": detail},
    )


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    return {"status": "ok", "environment": settings.ENVIRONMENT, "version": VERSION}


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    return {"message": "AgencyOS API", "version": VERSION}


# (router, path under API_PREFIX, tag)
_ROUTERS = [
    (auth.router, "/auth", "Auth"),
    (organizations.router, "/organizations", "Organizations"),
    (invites.router, "", "Invites"),
    (tasks.router, "", "Tasks"),
    (clients.router, "", "Clients"),
    (invoices.router, "", "Invoices"),
    (chat.router, "", "Chat"),
    (notifications.router, "/notifications", "Notifications"),
]

for router, path, tag in _ROUTERS:
    app.include_router(router, prefix=f"{settings.API_PREFIX}{path}", tags=[tag])
