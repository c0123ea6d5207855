"""FastAPI application factory for promptcron."""

from typing import Optional

from fastapi import FastAPI

from promptcron import __version__
from promptcron.api.middleware import request_id_middleware
from promptcron.api.routes import jobs, schedules, system
from promptcron.container import Services


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Create and configure FastAPI app. Factory pattern for testability.

    Args:
        services: Wired components; when omitted they are built from the
            environment on first request.
    """
    app = FastAPI(
        title="promptcron",
        description=(
            "Cron-scheduled prompt jobs: manual runs, execution history, "
            "schedule previews and trigger management."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware
    app.middleware("http")(request_id_middleware)

    # Register routes
    app.include_router(system.router)
    app.include_router(jobs.router)
    app.include_router(schedules.router)

    if services is not None:
        app.state.services = services

    return app
