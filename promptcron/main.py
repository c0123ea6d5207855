"""Main entry point for promptcron API.

Services are built from the environment on the first request.

Usage:
    Development: uvicorn promptcron.main:app --reload --port 8000
    Production: uvicorn promptcron.main:app --host 0.0.0.0 --port 8000 --workers 4
"""

from promptcron.api import create_app

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "promptcron.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
