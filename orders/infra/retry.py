"""
Retry utilities for optimistic concurrency conflicts.
"""
import logging
from functools import wraps
from typing import Any, Callable, TypeVar

from orders.domain.errors import ConcurrentUpdateError, StaleOrderStateError

T = TypeVar('T')

logger = logging.getLogger(__name__)


def retry_on_conflict(
    max_attempts: int | Callable[[], int] = 3,
    exceptions: tuple = (StaleOrderStateError,),
):
    """
    Decorator re-running a read-validate-write operation after a conflict.

    Only conflict exceptions are retried, immediately and without sleeping;
    everything else, including database errors, propagates on the first
    failure. When every attempt loses, ConcurrentUpdateError is raised from
    the last conflict.

    Args:
        max_attempts: Total attempts, or a callable returning it
        exceptions: Tuple of exceptions treated as conflicts
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            attempts = max_attempts() if callable(max_attempts) else max_attempts

            for attempt in range(1, attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    logger.info(
                        "write_conflict",
                        extra={
                            "operation": func.__name__,
                            "attempt": attempt,
                            "error": str(e),
                        },
                    )
                    if attempt == attempts:
                        raise ConcurrentUpdateError(
                            f"{func.__name__} gave up after {attempts} conflicting attempts"
                        ) from e

            raise ConcurrentUpdateError(f"{func.__name__} was not attempted")

        return wrapper
    return decorator
