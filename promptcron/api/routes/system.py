"""System routes for promptcron."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from promptcron import __version__
from promptcron.api.dependencies import get_app_services
from promptcron.container import Services

router = APIRouter(tags=["System"])


async def check_job_store(services: Services) -> Dict[str, Any]:
    """Test Job Store connectivity. Returns dict with status and details."""
    if services.database is None or not services.database.is_configured():
        return {"status": "unconfigured", "error": "Supabase credentials not set"}

    try:
        await asyncio.wait_for(
            asyncio.to_thread(
                lambda: services.jobs.db.table(services.jobs.table_name()).select("id").limit(1).execute()
            ),
            timeout=2.0,
        )
        return {"status": "healthy", "database": "connected"}
    except asyncio.TimeoutError:
        return {"status": "timeout", "error": "Request timed out after 2s"}
    except Exception as e:
        return {"status": "unavailable", "error": str(e)[:100]}


@router.get("/health")
async def health_check(services: Services = Depends(get_app_services)):
    """Health check with Supabase/completion service testing. Returns service status and dependency health."""
    results = await asyncio.gather(
        check_job_store(services), services.completion.ping(), return_exceptions=True
    )

    store_health: Dict[str, Any]
    completion_health: Dict[str, Any]

    # Handle exceptions from gather
    if isinstance(results[0], Exception):
        store_health = {"status": "error", "error": str(results[0])}
    else:
        store_health = results[0]  # type: ignore[assignment]

    if isinstance(results[1], Exception):
        completion_health = {"status": "error", "error": str(results[1])}
    else:
        completion_health = results[1]  # type: ignore[assignment]

    all_healthy = store_health.get("status") == "healthy" and completion_health.get("status") == "healthy"

    return {
        "status": "healthy" if all_healthy else "degraded",
        "service": "promptcron",
        "version": __version__,
        "dependencies": {"supabase": store_health, "completion": completion_health},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
