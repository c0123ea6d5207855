"""Routes for promptcron API."""

from promptcron.api.routes import jobs, schedules, system

__all__ = ["jobs", "schedules", "system"]
