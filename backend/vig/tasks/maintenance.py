"""Maintenance tasks (transient artifact expiry)."""

import asyncio

from vig.database import async_session_maker
from vig.services.artifact_service import ArtifactService
from vig.tasks.celery_app import celery_app


def _run_async(coro):
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@celery_app.task(name="vig.tasks.maintenance.cleanup_expired_artifacts")
def cleanup_expired_artifacts() -> dict:
    """Delete generated artifacts whose TTL (or post-download grace window) has passed."""
    return _run_async(purge_expired_artifacts())


async def purge_expired_artifacts() -> dict:
    async with async_session_maker() as db:
        return await ArtifactService(db).purge_expired()
