import asyncio
import logging

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db import get_db
from app.infra.redis_client import get_redis

router = APIRouter()
logger = logging.getLogger("recipebox.ready")


def check_db(db: Session) -> bool:
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning(f"Database check failed: {e}")
        return False


@router.get("/ready")
async def ready(db: Session = Depends(get_db)):
    """Liveness plus dependency probes. Always 200; flags say what is down."""
    redis_ok = False
    try:
        r = await get_redis()
        redis_ok = bool(await r.ping())
    except (RedisError, OSError) as e:
        logger.warning(f"Redis ping failed: {e}")

    # Blocking driver call, kept off the event loop
    db_ok = await asyncio.to_thread(check_db, db)

    return {"ok": True, "redis_ok": redis_ok, "db_ok": db_ok}
