"""
Route registration entry point for the FastAPI application.

Each module owns one resource of the JSON surface and exposes a module-level
``router``.
"""

from fastapi import FastAPI

from impulse_ledger.api.routes import events, focus, health, rooms, state


def register_routes(app: FastAPI) -> None:
    """Register all API routes with the FastAPI app."""
    app.include_router(health.router)
    app.include_router(rooms.router)
    app.include_router(state.router)
    app.include_router(focus.router)
    app.include_router(events.router)
