"""
Cross-Exchange Pair Search

find_pairs() looks for every pair having a given currency (or base currency)
on every exchange enabled on the gateway:

    1. discovery: one request listing the exchanges which have such pairs
    2. fan-out:   one pairs request per exchange, all running concurrently
    3. fan-in:    outcomes are collected in exchange order; an exchange which
                  fails is skipped, the others still contribute
    4. filter:    only records whose currency / base currency equals the
                  searched value are kept, tagged with their exchange

A failing discovery request fails the search. A discovery answer which is not a
list (empty body, object...) means no exchange to search. A failing exchange does
not fail the search: it is logged, reported to the optional on_failure callback
and left out of the result.
"""

from typing import Any, Callable, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from core.aggregation import gather_settled
from core.logging import get_logger
from core.schemas import OperationDescriptor, Pair, PairSearchResult
from gateway import validation


logger = get_logger(__name__)

SEARCH_TYPES = ("currency", "baseCurrency")

# search type -> filter keyword accepted by exchanges() / pairs()
_FILTER_ARGUMENTS = {
    "currency": "currency",
    "baseCurrency": "base_currency",
}


def _records(value: Any) -> Iterable[Any]:
    # gateway returns pairs either as a list or as a dict keyed by pair
    if isinstance(value, dict):
        return value.values()
    if isinstance(value, list):
        return value
    return []


async def find_pairs(
    client,
    search: str,
    search_type: Optional[str] = "currency",
    on_failure: Optional[Callable[[str, Exception], None]] = None
) -> List[PairSearchResult]:
    """
    Search pairs across all exchanges.

    Args:
        client: GatewayAPIClient (anything exposing exchanges() and pairs())
        search: Currency / base currency to look for
        search_type: "currency" or "baseCurrency" (None means "currency")
        on_failure: Called with (exchange, error) for each exchange which failed

    Returns:
        Matching pairs in discovery order (may be empty)

    Raises:
        ValidationError: If search or search_type is invalid (no request issued)
        GatewayClientError: If the discovery request failed
    """
    validation.check_non_empty_string(search, "search")
    if search_type is None:
        search_type = "currency"
    validation.check_choice(search_type, SEARCH_TYPES, "search_type")

    filters = {_FILTER_ARGUMENTS[search_type]: search}

    exchanges = await client.exchanges(**filters)
    if not isinstance(exchanges, list):
        # empty body decodes to None
        if exchanges is not None:
            logger.warning(f"Ignoring unexpected exchanges payload: {exchanges!r}")
        exchanges = []
    logger.debug(f"Searching pairs with {search_type}={search} on {len(exchanges)} exchange(s)")

    outcomes = await gather_settled(
        [
            OperationDescriptor(operation=client.pairs(exchange, **filters), context={"exchange": exchange})
            for exchange in exchanges
        ],
        stop_on_error=False
    )

    results = []
    for outcome in outcomes:
        exchange = outcome.context["exchange"]
        if not outcome.success:
            logger.warning(f"Could not retrieve pairs for '{exchange}': {outcome.error}")
            if on_failure is not None:
                on_failure(exchange, outcome.error)
            continue
        for record in _records(outcome.value):
            if not isinstance(record, dict) or record.get(search_type) != search:
                continue
            try:
                pair = Pair.model_validate(record)
            except PydanticValidationError as e:
                logger.warning(f"Ignoring malformed pair record from '{exchange}': {e}")
                continue
            results.append(PairSearchResult(
                exchange=exchange,
                pair=pair.pair,
                currency=pair.currency,
                base_currency=pair.base_currency
            ))

    logger.debug(f"Found {len(results)} pair(s) with {search_type}={search}")
    return results
