import logging

import httpx
from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from database import ping_db

logger = logging.getLogger(__name__)


def ping(base_url: str, engine=None) -> bool:
    """Touch the connection pool and our own /health so idle hosts stay awake."""
    try:
        ping_db(engine)
        httpx.get(f"{base_url.rstrip('/')}/health", timeout=10).raise_for_status()
    except (SQLAlchemyError, httpx.HTTPError) as exc:
        logger.warning("Keep-alive ping failed: %s", exc)
        return False
    logger.info("Keep-alive ping sent")
    return True


def start_keepalive(settings=None):
    """Start the ping job, or return None when no KEEPALIVE_URL is configured."""
    settings = settings or get_settings()
    if not settings.KEEPALIVE_URL:
        return None

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        ping,
        "interval",
        minutes=settings.KEEPALIVE_INTERVAL_MINUTES,
        args=[settings.KEEPALIVE_URL],
    )
    scheduler.start()
    logger.info(
        "Keep-alive enabled every %s minutes", settings.KEEPALIVE_INTERVAL_MINUTES
    )
    return scheduler
