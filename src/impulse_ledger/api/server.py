"""
FastAPI application for the Impulse Ledger server.

This module builds the ASGI application that exposes the room ledger over
JSON HTTP. It sets up:
- CORS middleware from the ``[security]`` config section
- Exception handlers that turn domain and storage errors into
  ``{error, error_code?}`` bodies with the right status code
- Schema migrations at startup
- All route modules via ``register_routes``

Run it with ``impulse-ledger run`` or ``uvicorn impulse_ledger.api.server:app``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from impulse_ledger import __version__
from impulse_ledger.api.routes import register_routes
from impulse_ledger.config import config
from impulse_ledger.db.errors import DatabaseError
from impulse_ledger.db.schema import init_database
from impulse_ledger.ledger.errors import LedgerError

logger = logging.getLogger(__name__)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Map a domain error to its status code and stable error code."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing errors (unknown path, wrong method) in the common error shape."""
    try:
        error_code = HTTPStatus(exc.status_code).name
    except ValueError:
        error_code = "HTTP_ERROR"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail), "error_code": error_code},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies in the common error shape."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return JSONResponse(
        status_code=400, content={"error": message, "error_code": "VALIDATION_ERROR"}
    )


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    """Storage failures become a 500 carrying the underlying message."""
    logger.error("Database failure on %s %s: %s", request.method, request.url.path, exc)
    cause = getattr(exc, "cause", None)
    return JSONResponse(status_code=500, content={"error": str(cause or exc)})


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler; the request fails but the server keeps serving."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc) or exc.__class__.__name__})


# ============================================================================
# APPLICATION FACTORY
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    applied = init_database()
    if applied:
        logger.info("Database migrated to version %d", applied[-1])
    yield


def create_app() -> FastAPI:
    """Build a fully wired FastAPI application."""
    app = FastAPI(
        title="Impulse Ledger",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if config.security.docs_enabled else None,
        redoc_url="/redoc" if config.security.docs_enabled else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.security.cors_origins,
        allow_methods=config.security.cors_allow_methods,
        allow_headers=config.security.cors_allow_headers,
    )

    app.add_exception_handler(LedgerError, ledger_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DatabaseError, database_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unexpected_error_handler)

    register_routes(app)
    return app


app = create_app()


# ============================================================================
# SERVER STARTUP
# ============================================================================


def start_server(host: str | None = None, port: int | None = None) -> None:
    """Serve the application with uvicorn.

    Args:
        host: Interface to bind; defaults to ``[server] host``.
        port: Port to bind; defaults to ``[server] port``.
    """
    import uvicorn

    uvicorn.run(
        app,
        host=host or config.server.host,
        port=port or config.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    start_server()
