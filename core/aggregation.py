"""
Parallel Aggregation

Runs many independent operations concurrently and reports how each one settled,
instead of letting the first failure abort the whole batch (which is what a plain
asyncio.gather() does).

Building blocks:
    - reflect(): awaits one OperationDescriptor and turns its result into a
      Success or a Failure, both carrying the descriptor's context
    - gather_settled(): reflects every entry concurrently and returns the
      outcomes in input order

Usage:
    outcomes = await gather_settled([
        OperationDescriptor(operation=client.pairs("bittrex"), context={"exchange": "bittrex"}),
        OperationDescriptor(operation=client.pairs("poloniex"), context={"exchange": "poloniex"}),
        client.exchanges(),  # bare operation, context will be {}
    ])
    for outcome in outcomes:
        if outcome.success:
            print(outcome.context, outcome.value)

Stop on error:
    With stop_on_error=True, gather_settled() raises the first exception as soon
    as it happens. Operations still pending at that point keep running in the
    background; nothing awaits or cancels them, and their results (including
    later failures) are discarded without "exception was never retrieved"
    warnings.
"""

import asyncio
from typing import Any, Awaitable, Iterable, List, Union

from core.logging import get_logger
from core.schemas import Failure, OperationDescriptor, SettledOutcome, Success


logger = get_logger(__name__)

Entry = Union[Awaitable[Any], OperationDescriptor]


async def reflect(descriptor: OperationDescriptor, stop_on_error: bool = False) -> SettledOutcome:
    """
    Await one operation and capture how it settled.

    Args:
        descriptor: Operation to await, with its context
        stop_on_error: Re-raise the operation's exception instead of capturing it

    Returns:
        Success(value, context) or Failure(error, context)

    Raises:
        Exception: Whatever the operation raised, only when stop_on_error is True
    """
    try:
        value = await descriptor.operation
    except Exception as e:
        if stop_on_error:
            raise
        return Failure(error=e, context=descriptor.context)
    return Success(value=value, context=descriptor.context)


def _to_descriptor(entry: Entry) -> OperationDescriptor:
    if isinstance(entry, OperationDescriptor):
        return entry
    return OperationDescriptor.of(entry)


async def gather_settled(entries: Iterable[Entry], stop_on_error: bool = False) -> List[SettledOutcome]:
    """
    Run operations concurrently and return their settled outcomes.

    Args:
        entries: Bare awaitables or OperationDescriptor objects
        stop_on_error: Fail as soon as one operation fails (plain gather behaviour)

    Returns:
        One outcome per entry, outcomes[i] belonging to entries[i]

    Raises:
        Exception: First exception raised by an operation, only when stop_on_error is True.
            Operations still pending are left running (fire-and-forget).
    """
    descriptors = [_to_descriptor(entry) for entry in entries]
    if not descriptors:
        return []

    logger.debug(f"Gathering {len(descriptors)} operation(s) (stop_on_error={stop_on_error})")

    tasks = [asyncio.ensure_future(reflect(descriptor, stop_on_error)) for descriptor in descriptors]
    try:
        # gather() keeps input order whatever the completion order
        outcomes = await asyncio.gather(*tasks)
    except Exception:
        # siblings keep running; their late failures are consumed here
        for task in tasks:
            task.add_done_callback(_discard_result)
        raise
    return list(outcomes)


def _discard_result(task: "asyncio.Future[Any]") -> None:
    if not task.cancelled():
        task.exception()


def successes(outcomes: Iterable[SettledOutcome]) -> List[Success]:
    """Keep Success outcomes only, in order."""
    return [outcome for outcome in outcomes if outcome.success]


def failures(outcomes: Iterable[SettledOutcome]) -> List[Failure]:
    """Keep Failure outcomes only, in order."""
    return [outcome for outcome in outcomes if not outcome.success]
