"""Transport between the view layer and the store.

Every public API call goes through a channel. ``UnreliableChannel``
simulates a slow, flaky network:

  - every call waits a random delay first (bounds from ChannelConfig);
  - mutating calls fail with TransientError at ``failure_rate``,
    instead of being performed;
  - reads are delayed but never failed.

``PassThroughChannel`` performs calls directly.
"""

import asyncio
import functools
import logging
import random
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from src.core.config import ChannelConfig
from src.core.errors import TransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def random_sleep(
    min_s: float,
    max_s: float,
    rng: random.Random | None = None,
) -> float:
    """Sleep for a random duration between min_s and max_s seconds.

    Negative bounds are clamped to zero and max_s is raised to min_s when
    it is smaller. Returns the actual sleep duration.
    """
    floor = max(min_s, 0.0)
    ceiling = max(max_s, floor)
    duration = (rng or random).uniform(floor, ceiling)
    await asyncio.sleep(duration)
    return duration


class Channel(ABC):
    """Base class for the call path to the store."""

    @abstractmethod
    async def call(
        self,
        name: str,
        func: Callable[[], Awaitable[T]],
        *,
        mutating: bool,
    ) -> T:
        """Run ``func`` over the channel. ``name`` is used for logging only."""


class PassThroughChannel(Channel):
    """No delay, no injected failures."""

    async def call(
        self,
        name: str,
        func: Callable[[], Awaitable[T]],
        *,
        mutating: bool,
    ) -> T:
        return await func()


class UnreliableChannel(Channel):
    """Randomized latency on every call, randomized failure on writes.

    Usage::

        channel = UnreliableChannel(ChannelConfig(failure_rate=0.08))
        jobs = JobsApi(store, channel)
        await jobs.update_job(job_id, title="Staff Engineer")  # may raise TransientError
    """

    def __init__(self, config: ChannelConfig, rng: random.Random | None = None) -> None:
        self._config = config
        self._rng = rng or random.Random()

    async def call(
        self,
        name: str,
        func: Callable[[], Awaitable[T]],
        *,
        mutating: bool,
    ) -> T:
        delay = await random_sleep(self._config.min_delay_s, self._config.max_delay_s, self._rng)
        if mutating and self._rng.random() < self._config.failure_rate:
            logger.warning("Simulated network error on %s after %.2fs", name, delay)
            msg = f"Simulated network error during {name}"
            raise TransientError(msg)
        logger.debug("%s delivered after %.2fs", name, delay)
        return await func()


def build_channel(config: ChannelConfig, rng: random.Random | None = None) -> Channel:
    """Return the channel described by the config."""
    if config.simulate:
        return UnreliableChannel(config, rng)
    return PassThroughChannel()


def over_channel(*, mutating: bool) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator routing an API method through ``self.channel``.

    Example:
        class JobsApi(StoreApi):
            @over_channel(mutating=True)
            async def update_job(self, job_id, **changes):
                ...
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
            return await self.channel.call(
                func.__qualname__,
                lambda: func(self, *args, **kwargs),
                mutating=mutating,
            )

        return wrapper
    return decorator
