"""Retry with exponential backoff for awaitable calls."""

from __future__ import annotations

import asyncio
import functools
from typing import Awaitable, Callable, TypeVar

from ashaai.metrics.observability import get_logger

T = TypeVar("T")

_logger = get_logger("retry")


def retry_async(
    max_attempts: int = 3,
    base_delay: float = 0.1,
    *,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorate a coroutine function so matching failures are retried.

    Delays double from ``base_delay`` (0.1s, 0.2s, ...). The last failure is re-raised
    once ``max_attempts`` is reached; exceptions outside ``retry_on`` propagate at once.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except retry_on as exc:
                    if attempt >= max_attempts:
                        _logger.warning(
                            "retry.exhausted",
                            call=getattr(func, "__qualname__", repr(func)),
                            attempts=attempt,
                            error=str(exc),
                        )
                        raise
                    delay = base_delay * (2 ** (attempt - 1))
                    _logger.info(
                        "retry.scheduled",
                        call=getattr(func, "__qualname__", repr(func)),
                        attempt=attempt,
                        delay_seconds=delay,
                        error=str(exc),
                    )
                    await sleep(delay)
                    attempt += 1

        return wrapper

    return decorator
