"""Background job tasks"""

import asyncio

import redis
import structlog

from app.jobs.celery_app import celery_app
from app.config import settings

logger = structlog.get_logger()

SIMULATION_LOCK_KEY = "ordertrack:tracking-simulation"


def run_async(coro_factory):
    """Run an async job in a fresh event loop.

    The engine's pooled connections belong to the loop that opened them, so
    the pool is disposed before the loop closes.
    """
    async def _run():
        from app.database import engine

        try:
            return await coro_factory()
        finally:
            await engine.dispose()

    return asyncio.run(_run())


@celery_app.task(name="advance_tracking_simulation")
def advance_tracking_simulation():
    """Advance every in-flight delivery one simulator step"""
    client = redis.Redis.from_url(settings.redis_url)
    # Ticks must never overlap
    lock = client.lock(
        SIMULATION_LOCK_KEY,
        timeout=max(60, int(settings.tracking_simulation_interval_seconds * 6)),
        blocking=False,
    )
    if not lock.acquire():
        logger.info("Tracking simulation tick already running, skipping")
        return 0

    async def _advance():
        from app.database import SessionLocal
        from app.services.simulator import advance_in_flight_deliveries

        async with SessionLocal() as db:
            return await advance_in_flight_deliveries(db)

    try:
        return run_async(_advance)
    finally:
        lock.release()


@celery_app.task(name="prune_expired_lookup_otps")
def prune_expired_lookup_otps():
    """Delete expired customer lookup codes"""

    async def _prune():
        from app.database import SessionLocal
        from app.services.lookup_otp import prune_expired

        async with SessionLocal() as db:
            return await prune_expired(db)

    removed = run_async(_prune)
    logger.info("Expired lookup OTPs pruned", removed=removed)
    return removed
