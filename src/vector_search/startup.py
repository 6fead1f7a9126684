"""Supervised background execution of collection initializers.

Each initializer runs as its own named asyncio task. Whatever happens to the
task (success, returned failure, unexpected exception, cancellation), the
outcome ends up in the status tracker rather than as an unhandled task
exception.
"""

import asyncio
import functools
from collections.abc import Iterable

from loguru import logger

from vector_search.errors import VectorSearchError
from vector_search.initializer import CollectionInitializer
from vector_search.result import Result
from vector_search.status import InitializationState


def start_initializers(
    initializers: Iterable[CollectionInitializer],
) -> dict[str, "asyncio.Task[Result[int]]"]:
    """Launch every initializer as a background task.

    Must be called from a running event loop.

    Returns:
        Mapping of collection name to its task
    """
    tasks: dict[str, asyncio.Task[Result[int]]] = {}
    for initializer in initializers:
        task = asyncio.create_task(initializer.initialize(), name=f"initialize-{initializer.name}")
        task.add_done_callback(functools.partial(_record_outcome, initializer))
        tasks[initializer.name] = task
        logger.debug(f"Started initialization task for '{initializer.name}'")
    return tasks


def _record_outcome(initializer: CollectionInitializer, task: "asyncio.Task[Result[int]]") -> None:
    if task.cancelled():
        reason = "cancelled"
        logger.warning(f"Initialization of '{initializer.name}' was cancelled")
    else:
        exc = task.exception()
        if exc is None:
            return
        reason = str(exc) or type(exc).__name__
        logger.opt(exception=exc).error(
            f"Initialization of '{initializer.name}' raised an unexpected error"
        )

    initializer.tracker.set_status(
        initializer.name,
        InitializationState.FAILED,
        error_message=f"Failed to initialize '{initializer.name}' due to '{reason}' error.",
    )


async def run_initializers(
    initializers: Iterable[CollectionInitializer],
) -> dict[str, Result[int]]:
    """Run all initializers concurrently and wait for them to finish.

    Returns:
        Mapping of collection name to the rebuild outcome
    """
    tasks = start_initializers(initializers)
    outcomes = await asyncio.gather(*tasks.values(), return_exceptions=True)

    results: dict[str, Result[int]] = {}
    for name, outcome in zip(tasks, outcomes):
        if isinstance(outcome, Result):
            results[name] = outcome
        elif isinstance(outcome, Exception):
            results[name] = Result.failure(outcome)
        else:
            results[name] = Result.failure(VectorSearchError(f"Initialization of '{name}' was cancelled"))
    return results
