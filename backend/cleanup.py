"""Cleanup — removes idle, expired and burned pastas plus orphaned attachments.

Runs as a background task started by the application lifespan every
``gc_interval(config)`` seconds; disabled when ``gc_days`` is 0.
"""

import asyncio
import logging

from config import AppConfig
from errors import StorageIOError
from api.pastas.services.pasta_store import SECONDS_PER_DAY, PastaStore

logger = logging.getLogger(__name__)


async def run_cleanup(store: PastaStore, gc_days: int, now: int | None = None) -> int:
    """Sweep the store once. Returns the number of pastas removed."""
    count = await store.sweep(now, gc_days)
    orphans = await store.prune_orphans()
    logger.info(
        "Cleanup removed %d pasta%s and %d orphaned attachment dir%s",
        count, "" if count == 1 else "s",
        orphans, "" if orphans == 1 else "s",
    )
    return count


def gc_interval(config: AppConfig) -> float | None:
    if config.gc_days == 0:
        return None
    return float(min(config.gc_interval_seconds, config.gc_days * SECONDS_PER_DAY))


async def gc_loop(store: PastaStore, gc_days: int, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            await run_cleanup(store, gc_days)
        except StorageIOError:
            logger.exception("Cleanup could not persist the store")
