"""FastAPI dependencies for promptcron.

Dependency injection functions for route handlers.
"""

from fastapi import Request

from promptcron.container import Services, get_services


def get_app_services(request: Request) -> Services:
    """Get Services from app state.

    Note:
        Falls back to the process-wide container (built from the environment)
        when app.state.services is not set.
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        services = get_services()
        request.app.state.services = services
    return services
