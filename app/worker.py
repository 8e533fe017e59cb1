"""Daily OpenRouter model sync worker.

Sleeps until the next 00:00 UTC, then refreshes the free text model list:
1. GET /models from OpenRouter
2. Keep free text->text models
3. Upsert changed rows, delete models that disappeared upstream
4. Drop the cached /api/models response

Usage:
    python -m app.worker          # run forever
    python -m app.worker --once   # single sync, then exit
"""

import argparse
import logging
import sys
import time
from datetime import datetime, timedelta, timezone

import httpx

from .ai.openrouter import OpenRouterClient, OpenRouterError
from .core.clock import utcnow
from .db import init_engine, session_scope
from .infra.redis_cache import invalidate
from .services.model_sync import MODELS_CACHE_KEY, SyncResult, sync_free_models
from .settings import settings

logger = logging.getLogger("recipebox.worker")


def seconds_until_next_run(now: datetime | None = None) -> float:
    """Seconds until the next 00:00 UTC (a full day when called exactly at midnight)."""
    now = now or utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    next_midnight = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return (next_midnight - now).total_seconds()


def run_sync() -> SyncResult:
    with session_scope() as db, OpenRouterClient() as client:
        result = sync_free_models(db, client=client)
    invalidate(MODELS_CACHE_KEY)
    return result


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Sync free OpenRouter models daily.")
    parser.add_argument("--once", action="store_true", help="run a single sync and exit")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    logger.info(f"Starting model sync worker (DB: {settings.database_url.split('@')[-1]})")
    init_engine()

    if args.once:
        try:
            result = run_sync()
        except (OpenRouterError, httpx.HTTPError) as e:
            logger.error(f"Model sync failed: {e}")
            return 1
        logger.info(f"Synced {result.count} models")
        return 0

    while True:
        delay = seconds_until_next_run()
        logger.info(f"Next sync in {delay / 3600:.1f}h")
        time.sleep(delay)
        try:
            run_sync()
        except Exception:
            logger.exception("Model sync failed, next attempt tomorrow")


if __name__ == "__main__":
    sys.exit(main())
