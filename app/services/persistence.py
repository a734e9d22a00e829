"""Shared guards for store calls: timeouts and driver errors become PersistenceError."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def guarded(operation: Awaitable[T], timeout: float, what: str) -> T:
    """Await a store operation with a timeout; never hang, never leak driver errors."""
    try:
        return await asyncio.wait_for(operation, timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.error("Store timed out during %s", what)
        raise PersistenceError(f"Store timed out during {what}") from exc
    except SQLAlchemyError as exc:
        logger.error("Store failed during %s", what, exc_info=True)
        raise PersistenceError(f"Store failed during {what}") from exc
