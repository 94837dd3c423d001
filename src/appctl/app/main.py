"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from appctl import __version__
from appctl.app.api.v1 import apps_router
from appctl.app.config import get_settings
from appctl.app.dependencies import close_remote, get_remote_client, init_remote
from appctl.app.logging import setup_logging
from appctl.app.metrics import get_metrics_response
from appctl.app.middleware import LoggingMiddleware
from appctl.core.errors import AppCtlError
from appctl.core.logging_schema import LogEvent

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    await init_remote()
    logger.info("Starting application", extra={"event": LogEvent.APP_STARTED})

    yield

    logger.info("Shutting down application", extra={"event": LogEvent.APP_STOPPED})
    await close_remote()


app = FastAPI(title="App Controller", version=__version__, lifespan=lifespan)
app.add_middleware(LoggingMiddleware)


@app.exception_handler(AppCtlError)
async def appctl_error_handler(request: Request, exc: AppCtlError) -> JSONResponse:
    """Handle AppCtlError exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
    )


app.include_router(apps_router, prefix="/api/v1")


@app.get("/health")
async def health():
    try:
        get_remote_client()
        remote = "initialized"
    except RuntimeError:
        remote = "not initialized"

    return {
        "status": "ok" if remote == "initialized" else "degraded",
        "version": __version__,
        "services": {"remote": remote},
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint."""
    return get_metrics_response()


def run() -> None:
    """Console entry point."""
    server = get_settings().server
    uvicorn.run("appctl.app.main:app", host=server.host, port=server.port, log_config=None)
