import asyncio
import logging
from typing import Awaitable, Iterable, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_bounded(
    coros: Iterable[Awaitable[T]], max_in_flight: int | None = None
) -> list[T]:
    """Run all coroutines concurrently, at most max_in_flight at a time.

    Results come back in submission order. A None limit starts everything at once.
    """
    coros = list(coros)
    if max_in_flight is None or max_in_flight >= len(coros):
        return await asyncio.gather(*coros)

    if max_in_flight < 1:
        raise ValueError("max_in_flight must be a positive integer")

    logger.info(f"Running {len(coros)} tasks with at most {max_in_flight} in flight")
    semaphore = asyncio.Semaphore(max_in_flight)

    async def run_limited(coro: Awaitable[T]) -> T:
        async with semaphore:
            return await coro

    return await asyncio.gather(*(run_limited(coro) for coro in coros))
