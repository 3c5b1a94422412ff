"""Translation of database driver errors into store errors."""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

import asyncpg
import structlog

from routegate.core.exceptions import StoreError

logger = structlog.get_logger()

P = ParamSpec("P")
R = TypeVar("R")


def store_errors(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Re-raise driver and connection failures as StoreError.

    Applied to repository methods so the core only ever sees its own
    exception hierarchy.
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await func(*args, **kwargs)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error("store_operation_failed", operation=func.__qualname__, error=str(e))
            raise StoreError(f"{func.__qualname__} failed: {e}") from e

    return wrapper
