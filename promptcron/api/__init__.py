"""HTTP API for promptcron."""

from promptcron.api.app import create_app

__all__ = ["create_app"]
