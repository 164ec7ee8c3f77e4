"""
Client Data Schemas

This module defines the Pydantic models used by the client.

Models:
    - Pair: A trading pair record as returned by the gateway
    - PairSearchResult: One match of a cross-exchange pair search
    - AlertPushoverOptions: PushOver settings attached to an alert
    - OperationDescriptor: An in-flight operation tagged with a context
    - Success / Failure: Settled outcome of one operation

Field naming:
    The gateway speaks camelCase (baseCurrency, minDelay). Models use snake_case
    attributes with camelCase aliases, and accept both on input.
"""

import inspect
from typing import Any, Dict, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================
# Gateway Records
# ============================================

class Pair(BaseModel):
    """
    Trading Pair

    Attributes:
        pair: Pair identifier, base currency first (e.g., "USDT-BTC")
        currency: Traded currency (e.g., "BTC")
        base_currency: Currency used to price it (e.g., "USDT")

    Notes:
        - Extra fields returned by the gateway are kept as-is
    """

    pair: str = Field(..., examples=["USDT-BTC", "BTC-NEO"])
    currency: str = Field(..., examples=["BTC", "NEO"])
    base_currency: str = Field(..., alias="baseCurrency", examples=["USDT", "BTC"])

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class PairSearchResult(BaseModel):
    """
    Pair Search Match

    One entry of find_pairs(): a pair which matched the searched
    currency / base currency, together with the exchange it was found on.

    Example:
        >>> PairSearchResult(exchange="bittrex", pair="USDT-BTC", currency="BTC", baseCurrency="USDT")
    """

    exchange: str = Field(..., description="Exchange the pair was found on", examples=["bittrex"])
    pair: str = Field(..., examples=["USDT-BTC"])
    currency: str = Field(..., examples=["BTC"])
    base_currency: str = Field(..., alias="baseCurrency", examples=["USDT"])

    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> Dict[str, str]:
        """Gateway-style dict ({exchange, pair, currency, baseCurrency})."""
        return self.model_dump(by_alias=True)


class AlertPushoverOptions(BaseModel):
    """
    PushOver settings of an alert

    Attributes:
        enabled: Whether a PushOver notification is sent when alert becomes active
        priority: PushOver priority (lowest, low, normal, high, emergency)
        min_delay: Minimum number of seconds between 2 notifications
    """

    enabled: bool = False
    priority: Literal["lowest", "low", "normal", "high", "emergency"] = "normal"
    min_delay: int = Field(default=300, alias="minDelay", ge=0)

    model_config = ConfigDict(populate_by_name=True)

    def to_params(self) -> Dict[str, Any]:
        if not self.enabled:
            return {"enabled": False}
        return self.model_dump(by_alias=True)


# ============================================
# Aggregation Models
# ============================================

class OperationDescriptor(BaseModel):
    """
    In-flight operation tagged with a caller-chosen context.

    The context is handed back untouched on the settled outcome, which lets
    the caller know which input an outcome belongs to.

    Example:
        >>> OperationDescriptor(operation=client.pairs("bittrex"), context={"exchange": "bittrex"})
    """

    operation: Any
    context: Dict[Any, Any] = Field(default_factory=dict)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("operation")
    @classmethod
    def validate_operation(cls, v: Any) -> Any:
        """Ensure operation can be awaited"""
        if not inspect.isawaitable(v):
            raise ValueError(f"operation should be an awaitable, got {type(v).__name__}")
        return v

    @classmethod
    def of(cls, operation: Any) -> "OperationDescriptor":
        """Descriptor for a bare operation, with an empty context."""
        return cls(operation=operation)


class Success(BaseModel):
    """Operation completed: value holds its result."""

    success: Literal[True] = True
    value: Any = None
    context: Dict[Any, Any] = Field(default_factory=dict)


class Failure(BaseModel):
    """Operation failed: error holds the exception it raised."""

    success: Literal[False] = False
    error: Exception
    context: Dict[Any, Any] = Field(default_factory=dict)

    model_config = ConfigDict(arbitrary_types_allowed=True)


SettledOutcome = Union[Success, Failure]
