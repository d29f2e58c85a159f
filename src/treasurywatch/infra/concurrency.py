import asyncio
from collections.abc import Coroutine, Iterable
from typing import Any, TypeVar

T = TypeVar("T")


def _first_error(group: BaseExceptionGroup) -> BaseException:
    exc = group.exceptions[0]
    while isinstance(exc, BaseExceptionGroup):
        exc = exc.exceptions[0]
    return exc


async def run_all(coros: Iterable[Coroutine[Any, Any, T]], limit: int | None = None) -> list[T]:
    """Run coroutines concurrently and return their results in input order.

    With ``limit``, at most that many worker tasks exist at once; they pull
    from ``coros`` lazily, so a generator is only advanced as workers free
    up. The first failure cancels everything still running; the original
    exception is re-raised rather than an ExceptionGroup.
    """
    if limit is not None and limit < 1:
        raise ValueError("limit must be >= 1")

    results: dict[int, T] = {}
    pending = enumerate(coros)

    async def _worker() -> None:
        for index, coro in pending:
            results[index] = await coro

    try:
        async with asyncio.TaskGroup() as tg:
            if limit is None:
                for index, coro in pending:
                    tg.create_task(_store(results, index, coro))
            else:
                for _ in range(limit):
                    tg.create_task(_worker())
    except BaseExceptionGroup as eg:
        raise _first_error(eg) from None
    return [results[i] for i in range(len(results))]


async def _store(results: dict[int, Any], index: int, coro: Coroutine) -> None:
    results[index] = await coro
