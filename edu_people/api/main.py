"""FastAPI application entrypoint for the directory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from edu_people.api.middleware.logging import LoggingMiddleware
from edu_people.api.routes import admin, people
from edu_people.core.config import settings
from edu_people.core.database import database_manager
from edu_people.core.exceptions import ApplicationError
from edu_people.core.observability import setup_tracing

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Bind the DynamoDB table on startup and drop it on shutdown."""

    await database_manager.initialize()
    try:
        yield
    finally:
        await database_manager.close()


app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

setup_tracing(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)

# Routers
app.include_router(people.router, prefix="/api")
app.include_router(admin.router, prefix="/api")

app.mount("/metrics", make_asgi_app())


@app.exception_handler(ApplicationError)
async def handle_application_error(_: Request, exc: ApplicationError):
    """Return standardized responses for application layer exceptions."""

    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


@app.exception_handler(ClientError)
async def handle_client_error(_: Request, exc: ClientError):
    code = exc.response.get("Error", {}).get("Code", "ClientError")
    logger.error("DynamoDB request failed: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": "Directory backend request failed", "code": code},
    )


@app.exception_handler(BotoCoreError)
async def handle_botocore_error(_: Request, exc: BotoCoreError):
    logger.error("DynamoDB unreachable: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": "Directory backend unavailable", "code": exc.__class__.__name__},
    )
