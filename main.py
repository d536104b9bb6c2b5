# main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from batch.router import router as batch_router
from core.context import AppContext, init_app_context
from core.errors import LfsError
from core.settings import get_settings
from core.settings_validation import validate_settings
from health.router import router as health_router

log = logging.getLogger(__name__)

GENERIC_ERROR = "internal server error"


def _configure_logging() -> None:
    level = getattr(logging, get_settings().log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _lfs_error_handler(request: Request, exc: LfsError) -> JSONResponse:
    if exc.expose:
        message = exc.message
    else:
        log.error("Returning %s to user for %s %s", exc.status_code, request.method, request.url.path, exc_info=exc)
        message = GENERIC_ERROR
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": message},
        headers=exc.headers,
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error("Failed to run, uncaught error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": GENERIC_ERROR})


# ---------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------

def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """
    Build the app. `context` is injected by tests; otherwise the real
    S3/GitHub context is built once in the lifespan.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if context is None:
            validate_settings()
        init_app_context(app, context)
        yield

    app = FastAPI(
        title="Git LFS Batch API",
        lifespan=lifespan,
    )

    app.add_exception_handler(LfsError, _lfs_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    # -----------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------
    app.include_router(health_router)
    app.include_router(batch_router)

    return app


_configure_logging()
app = create_app()


# ---------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------

if __name__ == "__main__":
    server = get_settings().server
    uvicorn.run(
        "main:app",
        host=server.host,
        port=server.port,
        reload=server.reload,
    )
