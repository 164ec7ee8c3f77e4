"""
Argument validation for gateway operations.

Each helper raises ValidationError (origin "client") on bad input and returns
the normalized value otherwise. They are called at the start of every client
coroutine, so a bad argument fails the operation before any request is issued.
"""

from collections.abc import Iterable
from typing import Any, List, Optional, Sequence

from core.errors import ValidationError


def check_non_empty_string(value: Any, name: str) -> str:
    if not isinstance(value, str) or value == "":
        raise ValidationError(f"Argument '{name}' should be a non-empty string")
    return value


def check_exchange(exchange: Any) -> str:
    return check_non_empty_string(exchange, "exchange")


def check_exchange_and_pair(exchange: Any, pair: Any) -> None:
    check_exchange(exchange)
    check_non_empty_string(pair, "pair")


def check_pairs(pairs: Any, name: str = "pairs") -> Optional[List[str]]:
    """
    Pairs filter: None (all pairs) or a list of pair identifiers.

    Returns:
        List of pairs, or None when no filter should be sent
    """
    if pairs is None:
        return None
    if isinstance(pairs, str) or not isinstance(pairs, (list, tuple)):
        raise ValidationError(f"Argument '{name}' should be an array")
    for pair in pairs:
        check_non_empty_string(pair, f"{name}[]")
    return list(pairs) or None


def check_exchanges(exchanges: Any, name: str = "exchanges") -> List[str]:
    if isinstance(exchanges, (str, bytes)) or not isinstance(exchanges, Iterable):
        raise ValidationError(f"Argument '{name}' should be an array")
    exchanges = list(exchanges)
    for exchange in exchanges:
        check_non_empty_string(exchange, f"{name}[]")
    return exchanges


def check_exchange_and_pairs(exchange: Any, pairs: Any) -> Optional[List[str]]:
    check_exchange(exchange)
    return check_pairs(pairs)


def check_choice(value: Any, choices: Sequence[str], name: str) -> str:
    if value not in choices:
        raise ValidationError(f"Argument '{name}' should be one of ({','.join(choices)})")
    return value


def to_int(value: Any, name: str) -> int:
    # bool is an int subclass, but True is not a trade id
    if isinstance(value, bool):
        raise ValidationError(f"Argument '{name}' should be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Argument '{name}' should be an integer")


def to_positive_int(value: Any, name: str) -> int:
    try:
        result = to_int(value, name)
    except ValidationError:
        raise ValidationError(f"Argument '{name}' should be an integer > 0")
    if result <= 0:
        raise ValidationError(f"Argument '{name}' should be an integer > 0")
    return result


def to_positive_float(value: Any, name: str) -> float:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"Argument '{name}' should be a float > 0")
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Argument '{name}' should be a float > 0")
    # NaN compares False to everything
    if not result > 0:
        raise ValidationError(f"Argument '{name}' should be a float > 0")
    return result


def check_alert_ids(alert_ids: Any, name: str = "list") -> List[int]:
    if isinstance(alert_ids, (str, bytes)) or not isinstance(alert_ids, Iterable):
        raise ValidationError(f"Argument '{name}' should be an array of integers")
    return [to_int(alert_id, name) for alert_id in alert_ids]


def check_conditions(conditions: Any, name: str = "conditions") -> List[dict]:
    if not isinstance(conditions, (list, tuple)):
        raise ValidationError(f"Argument '{name}' should be an array")
    for condition in conditions:
        if not isinstance(condition, dict):
            raise ValidationError(f"Argument '{name}' should be an array of objects")
    return list(conditions)
