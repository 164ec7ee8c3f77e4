"""
Exchanges Gateway REST API Client

This module provides an async HTTP client for the crypto exchanges gateway REST API.
It handles:
- HTTP requests (query string or JSON body)
- Error normalization (TransportError / GatewayError)
- Argument validation before any request is issued
- Diagnostics logging of requests, responses and errors

Every public method is a coroutine. Invalid arguments make the coroutine raise
ValidationError when it is awaited, the same way a failed request raises
TransportError or GatewayError. Callers have a single failure channel to handle:

    try:
        balances = await client.balances("bittrex")
    except GatewayClientError as e:
        print(e.to_dict())

Usage:
    async with GatewayAPIClient("http://127.0.0.1:8000") as client:
        exchanges = await client.exchanges()
        tickers = await client.tickers("bittrex", ["USDT-BTC", "USDT-ETH"])
        matches = await client.find_pairs("NEO")
"""

import asyncio
import json
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import aiohttp

from core.aggregation import gather_settled
from core.config import settings
from core.errors import GatewayError, TransportError, ValidationError
from core.logging import get_logger, log_api_error, log_api_request, log_api_response
from core.schemas import AlertPushoverOptions, OperationDescriptor, PairSearchResult
from gateway import validation
from gateway.pair_search import find_pairs as search_pairs


PUSHOVER_PRIORITIES = ("lowest", "low", "normal", "high", "emergency")


class GatewayAPIClient:
    """
    Async HTTP client for the exchanges gateway

    Attributes:
        base_uri: Gateway base URI (e.g., "http://127.0.0.1:8000")
        api_key: Optional api key, sent in the 'ApiKey' header
        timeout: Socket timeout for a single request, in seconds
        session: aiohttp ClientSession for HTTP requests
        logger: Logger instance

    Example:
        >>> async with GatewayAPIClient("http://127.0.0.1:8000") as client:
        ...     book = await client.order_book("bittrex", "USDT-BTC")

    Notes:
        - Uses context manager for automatic session cleanup
        - Defaults for base_uri, api_key and timeout come from core.config.settings
        - No retry: a failed request fails the operation
    """

    def __init__(
        self,
        base_uri: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        """
        Initialize the gateway client.

        Args:
            base_uri: Gateway base URI, must start with http:// or https://
            api_key: Gateway api key (optional)
            timeout: Request timeout in seconds (optional)

        Raises:
            ValueError: If base_uri is not an http(s) URI
        """
        base_uri = base_uri or settings.gateway_base_url
        if not base_uri.startswith(("http://", "https://")):
            raise ValueError("Argument 'base_uri' should start with 'http://' or 'https://'")
        self.base_uri = base_uri.rstrip("/")
        self.api_key = settings.gateway_api_key if api_key is None else api_key
        self.timeout = timeout or settings.request_timeout
        self.logger = get_logger(__name__)
        self.session: Optional[aiohttp.ClientSession] = None

    # ============================================
    # Context Manager for Session Management
    # ============================================

    async def __aenter__(self):
        self.session = aiohttp.ClientSession()
        self.logger.debug("GatewayAPIClient session created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.debug("GatewayAPIClient session closed")

    # ============================================
    # URL Helpers
    # ============================================

    def _get_url(self, path: str) -> str:
        return f"{self.base_uri}/{path}"

    def _get_exchange_url(self, exchange: str, path: str) -> str:
        return f"{self.base_uri}/exchanges/{exchange}/{path}"

    @staticmethod
    def _build_query(params: Dict[str, Any]) -> Dict[str, str]:
        """
        Convert parameters to query string values.

        - None values are dropped
        - Lists become comma-separated strings
        - Booleans become "true" / "false"
        """
        query = {}
        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                query[key] = ",".join(str(v) for v in value)
            elif isinstance(value, bool):
                query[key] = "true" if value else "false"
            else:
                query[key] = str(value)
        return query

    # ============================================
    # HTTP Request Handler
    # ============================================

    @staticmethod
    async def _decode(resp: aiohttp.ClientResponse) -> Any:
        text = await resp.text()
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return text

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: bool = False
    ) -> Any:
        """
        Perform a request against the gateway.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            url: Full URL to call
            params: Request parameters (optional)
            json_body: Send params as a JSON body instead of the query string

        Returns:
            Decoded JSON body returned by the gateway

        Raises:
            RuntimeError: If the session was not opened
            TransportError: If no response was received (timeout, connection error...)
            GatewayError: If the gateway answered with a non-200 status
        """
        if not self.session:
            raise RuntimeError("Client session not initialized. Use 'async with' statement.")

        headers = {}
        if self.api_key:
            headers["ApiKey"] = self.api_key

        kwargs: Dict[str, Any] = {
            "headers": headers,
            "timeout": aiohttp.ClientTimeout(total=self.timeout)
        }
        if params is not None:
            if json_body:
                kwargs["json"] = params
            else:
                kwargs["params"] = self._build_query(params)

        log_api_request(method, url, params)

        try:
            async with self.session.request(method, url, **kwargs) as resp:
                status = resp.status
                body = await self._decode(resp)
        except asyncio.TimeoutError as e:
            err = TransportError(f"Request timed out after {self.timeout}s")
            log_api_error(err.to_dict())
            raise err from e
        except aiohttp.ClientError as e:
            err = TransportError(str(e) or "unknown error")
            log_api_error(err.to_dict())
            raise err from e

        if status != 200:
            log_api_error(body)
            raise GatewayError(status, body)

        log_api_response(body)
        return body

    # ============================================
    # Exchanges & Pairs
    # ============================================

    async def exchanges(
        self,
        pair: Optional[str] = None,
        currency: Optional[str] = None,
        base_currency: Optional[str] = None
    ) -> List[str]:
        """
        List exchanges enabled on the gateway.

        Only one filter is sent: pair, else currency, else base_currency.

        Args:
            pair: Only list exchanges supporting this pair (optional)
            currency: Only list exchanges having pairs with this currency (optional)
            base_currency: Only list exchanges having pairs with this base currency (optional)

        Returns:
            List of exchange identifiers (e.g., ["binance", "bittrex"])
        """
        params = {}
        if pair:
            params["pair"] = pair
        elif currency:
            params["currency"] = currency
        elif base_currency:
            params["baseCurrency"] = base_currency
        return await self._request("GET", self._get_url("exchanges"), params)

    async def pairs(
        self,
        exchange: str,
        currency: Optional[str] = None,
        base_currency: Optional[str] = None
    ) -> Any:
        """
        List pairs available on an exchange.

        Args:
            exchange: Exchange identifier (e.g., "bittrex")
            currency: Only list pairs with this currency (optional)
            base_currency: Only list pairs with this base currency (optional, ignored if currency is set)

        Returns:
            Pair records, as returned by the gateway
        """
        validation.check_exchange(exchange)
        params = {}
        if currency:
            params["currency"] = currency
        elif base_currency:
            params["baseCurrency"] = base_currency
        return await self._request("GET", self._get_exchange_url(exchange, "pairs"), params)

    async def find_pairs(
        self,
        search: str,
        search_type: Optional[str] = "currency",
        on_failure: Optional[Callable[[str, Exception], None]] = None
    ) -> List[PairSearchResult]:
        """
        Search pairs across every exchange, by currency or base currency.

        Args:
            search: Currency / base currency to look for (e.g., "NEO")
            search_type: "currency" or "baseCurrency"
            on_failure: Called with (exchange, error) for each exchange which could not be queried

        Returns:
            Matching pairs, tagged with their exchange

        Example:
            >>> matches = await client.find_pairs("ETH", "baseCurrency")
            >>> [m.to_dict() for m in matches]
            [{'exchange': 'binance', 'pair': 'ETH-NEO', 'currency': 'NEO', 'baseCurrency': 'ETH'}]
        """
        return await search_pairs(self, search, search_type, on_failure=on_failure)

    # ============================================
    # Market Data
    # ============================================

    async def tickers(self, exchange: str, pairs: Optional[List[str]] = None) -> Any:
        """
        Retrieve tickers.

        Args:
            exchange: Exchange identifier
            pairs: Pairs to retrieve tickers for (optional, all pairs if not set)
        """
        pairs = validation.check_exchange_and_pairs(exchange, pairs)
        params = {"pairs": pairs} if pairs else {}
        return await self._request("GET", self._get_exchange_url(exchange, "tickers"), params)

    async def order_book(self, exchange: str, pair: str) -> Any:
        """Retrieve the order book of a pair."""
        validation.check_exchange_and_pair(exchange, pair)
        return await self._request("GET", self._get_exchange_url(exchange, f"orderBooks/{pair}"))

    async def trades(self, exchange: str, pair: str, after_trade_id: Optional[int] = None) -> Any:
        """
        Retrieve last trades of a pair.

        Args:
            exchange: Exchange identifier
            pair: Pair to retrieve trades for
            after_trade_id: Only retrieve trades with an id > after_trade_id (optional)
        """
        validation.check_exchange_and_pair(exchange, pair)
        params = {}
        if after_trade_id is not None:
            params["afterTradeId"] = validation.to_int(after_trade_id, "after_trade_id")
        return await self._request("GET", self._get_exchange_url(exchange, f"trades/{pair}"), params)

    async def tickers_for_exchanges(
        self,
        exchanges: Iterable[str],
        pairs: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """
        Retrieve tickers from several exchanges concurrently.

        Exchanges which fail are left out of the result (and logged).

        Returns:
            Dictionary mapping exchange identifier to its tickers

        Raises:
            ValidationError: If exchanges or pairs is invalid (no request issued)
        """
        validation.check_pairs(pairs)
        return await self._collect_by_exchange(
            exchanges, lambda exchange: self.tickers(exchange, pairs), "tickers"
        )

    async def order_books_for_exchanges(self, exchanges: Iterable[str], pair: str) -> Dict[str, Any]:
        """
        Retrieve the order book of a pair from several exchanges concurrently.

        Exchanges which fail are left out of the result (and logged).

        Returns:
            Dictionary mapping exchange identifier to its order book
        """
        validation.check_non_empty_string(pair, "pair")
        return await self._collect_by_exchange(
            exchanges, lambda exchange: self.order_book(exchange, pair), "order book"
        )

    async def _collect_by_exchange(
        self,
        exchanges: Iterable[str],
        make_operation: Callable[[str], Any],
        what: str
    ) -> Dict[str, Any]:
        exchanges = validation.check_exchanges(exchanges)
        outcomes = await gather_settled([
            OperationDescriptor(operation=make_operation(exchange), context={"exchange": exchange})
            for exchange in exchanges
        ])
        result = {}
        for outcome in outcomes:
            exchange = outcome.context["exchange"]
            if outcome.success:
                result[exchange] = outcome.value
            else:
                self.logger.warning(f"Could not retrieve {what} from '{exchange}': {outcome.error}")
        return result

    # ============================================
    # Orders
    # ============================================

    async def open_orders(self, exchange: str, pairs: Optional[List[str]] = None) -> Any:
        """
        Retrieve open orders.

        Args:
            exchange: Exchange identifier
            pairs: Pairs to retrieve open orders for (optional, all pairs if not set)
        """
        pairs = validation.check_exchange_and_pairs(exchange, pairs)
        params = {"pairs": pairs} if pairs else {}
        return await self._request("GET", self._get_exchange_url(exchange, "openOrders"), params)

    async def open_order(self, exchange: str, order_number: str) -> Any:
        """Retrieve a single open order."""
        validation.check_exchange(exchange)
        validation.check_non_empty_string(order_number, "order_number")
        return await self._request("GET", self._get_exchange_url(exchange, f"openOrders/{order_number}"))

    async def closed_orders(self, exchange: str, pairs: Optional[List[str]] = None) -> Any:
        """
        Retrieve closed orders.

        Args:
            exchange: Exchange identifier
            pairs: Pairs to retrieve closed orders for (optional, all pairs if not set)
        """
        pairs = validation.check_exchange_and_pairs(exchange, pairs)
        params = {"pairs": pairs} if pairs else {}
        return await self._request("GET", self._get_exchange_url(exchange, "closedOrders"), params)

    async def closed_order(self, exchange: str, order_number: str) -> Any:
        """Retrieve a single closed order."""
        validation.check_exchange(exchange)
        validation.check_non_empty_string(order_number, "order_number")
        return await self._request("GET", self._get_exchange_url(exchange, f"closedOrders/{order_number}"))

    async def new_order(
        self,
        exchange: str,
        pair: str,
        order_type: str,
        quantity: Union[float, str],
        rate: Union[float, str]
    ) -> Any:
        """
        Create a new order.

        Args:
            exchange: Exchange identifier
            pair: Pair to trade (e.g., "USDT-BTC")
            order_type: "buy" or "sell"
            quantity: Quantity to buy / sell (> 0)
            rate: Buy / sell price (> 0)

        Returns:
            Order number, as returned by the gateway
        """
        validation.check_exchange_and_pair(exchange, pair)
        params = {
            "pair": pair,
            "orderType": validation.check_choice(order_type, ("buy", "sell"), "order_type"),
            "quantity": validation.to_positive_float(quantity, "quantity"),
            "targetRate": validation.to_positive_float(rate, "rate")
        }
        return await self._request("POST", self._get_exchange_url(exchange, "openOrders"), params)

    async def cancel_order(self, exchange: str, order_number: str) -> Any:
        """Cancel an open order."""
        validation.check_exchange(exchange)
        validation.check_non_empty_string(order_number, "order_number")
        return await self._request("DELETE", self._get_exchange_url(exchange, f"openOrders/{order_number}"))

    # ============================================
    # Balances
    # ============================================

    async def balances(self, exchange: str) -> Any:
        """Retrieve balances of all currencies with a balance > 0."""
        validation.check_exchange(exchange)
        return await self._request("GET", self._get_exchange_url(exchange, "balances"))

    async def balance(self, exchange: str, currency: str) -> Any:
        """Retrieve balance of a single currency (ignored by gateway if balance is <= 0)."""
        validation.check_exchange(exchange)
        validation.check_non_empty_string(currency, "currency")
        return await self._request("GET", self._get_exchange_url(exchange, f"balances/{currency}"))

    # ============================================
    # CoinMarketCap
    # ============================================

    async def coinmarketcap_tickers(
        self,
        symbols: Optional[List[str]] = None,
        limit: Optional[int] = None,
        convert_to: Optional[str] = None
    ) -> Any:
        """
        Retrieve CoinMarketCap tickers.

        Args:
            symbols: Symbols to retrieve (e.g., ["BTC", "ETH"]) (optional)
            limit: Limit result size (optional)
            convert_to: Extra currency to convert prices to (optional)
        """
        params = {}
        symbols = validation.check_pairs(symbols, "symbols")
        if symbols:
            params["symbols"] = symbols
        if limit is not None:
            params["limit"] = validation.to_positive_int(limit, "limit")
        if convert_to:
            params["convert"] = convert_to
        return await self._request("GET", self._get_url("coinmarketcap/tickers"), params)

    async def coinmarketcap_symbols(self) -> List[str]:
        """List all existing CoinMarketCap symbols."""
        return await self._request("GET", self._get_url("coinmarketcap/symbols"))

    async def coinmarketcap_convert_currencies(self) -> List[str]:
        """List all currencies CoinMarketCap prices can be converted to."""
        return await self._request("GET", self._get_url("coinmarketcap/convertCurrencies"))

    # ============================================
    # PushOver
    # ============================================

    async def pushover_notify(
        self,
        message: str,
        format: Optional[str] = None,
        title: Optional[str] = None,
        sound: Optional[str] = None,
        device: Optional[str] = None,
        priority: Optional[str] = None,
        retry: Optional[int] = None,
        expire: Optional[int] = None,
        timestamp: Optional[int] = None,
        url: Optional[str] = None,
        url_title: Optional[str] = None
    ) -> Any:
        """
        Send a push notification through PushOver.

        Args:
            message: Message to send
            format: "html" or "text" (optional, gateway default is html)
            title: Notification title (optional)
            sound: Sound played upon receiving notification (optional)
            device: Only notify this device (optional)
            priority: lowest, low, normal, high or emergency (optional)
            retry: Keep notifying every X seconds until acknowledged (emergency only, min 30)
            expire: Stop retrying after X seconds (emergency only, max 10800)
            timestamp: Override message timestamp (optional)
            url: Url to open (optional)
            url_title: Title displayed instead of the url (ignored if url is not set)
        """
        validation.check_non_empty_string(message, "message")
        params: Dict[str, Any] = {"message": message}
        if format is not None:
            params["format"] = validation.check_choice(format, ("html", "text"), "format")
        if priority is not None:
            params["priority"] = validation.check_choice(priority, PUSHOVER_PRIORITIES, "priority")
        for key, value in (("title", title), ("sound", sound), ("device", device)):
            if value is not None:
                params[key] = value
        for key, value in (("retry", retry), ("expire", expire), ("timestamp", timestamp)):
            if value is not None:
                params[key] = validation.to_int(value, key)
        if url:
            params["url"] = url
            if url_title:
                params["urlTitle"] = url_title
        return await self._request("POST", self._get_url("pushover/notify"), params)

    # ============================================
    # Alerts (ticker monitor)
    # ============================================

    async def alert(self, alert_id: int) -> Any:
        """Retrieve a single alert."""
        alert_id = validation.to_int(alert_id, "alert_id")
        return await self._request("GET", self._get_url(f"tickerMonitor/{alert_id}"))

    async def alerts(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Retrieve existing alerts.

        Args:
            name: Only retrieve alerts matching this name (optional)
        """
        params = {"name": name} if name else {}
        return await self._request("GET", self._get_url("tickerMonitor"), params)

    async def new_alert(
        self,
        name: str,
        conditions: List[Dict[str, Any]],
        enabled: bool = True,
        any_condition: bool = False,
        pushover: Union[AlertPushoverOptions, Dict[str, Any], None] = None
    ) -> Any:
        """
        Declare a new alert.

        Args:
            name: Alert name
            conditions: Alert conditions, in gateway format
            enabled: Whether alert should be enabled
            any_condition: Whether one condition is enough to make alert active
            pushover: PushOver settings (optional, disabled by default)

        Returns:
            Id of the new alert, as returned by the gateway
        """
        validation.check_non_empty_string(name, "name")
        params = {
            "name": name,
            "enabled": bool(enabled),
            "any": bool(any_condition),
            "conditions": validation.check_conditions(conditions),
            "pushover": self._pushover_params(pushover or AlertPushoverOptions())
        }
        return await self._request("POST", self._get_url("tickerMonitor"), params, json_body=True)

    async def update_alert(
        self,
        alert_id: int,
        name: Optional[str] = None,
        conditions: Optional[List[Dict[str, Any]]] = None,
        enabled: Optional[bool] = None,
        any_condition: Optional[bool] = None,
        pushover: Union[AlertPushoverOptions, Dict[str, Any], None] = None
    ) -> Any:
        """
        Update an existing alert. Only the arguments which are set are sent.
        """
        alert_id = validation.to_int(alert_id, "alert_id")
        params: Dict[str, Any] = {}
        if name is not None:
            params["name"] = validation.check_non_empty_string(name, "name")
        if conditions is not None:
            params["conditions"] = validation.check_conditions(conditions)
        if enabled is not None:
            params["enabled"] = bool(enabled)
        if any_condition is not None:
            params["any"] = bool(any_condition)
        if pushover is not None:
            params["pushover"] = self._pushover_params(pushover)
        return await self._request("PATCH", self._get_url(f"tickerMonitor/{alert_id}"), params, json_body=True)

    async def enable_alerts(self, flag: bool, alert_ids: List[int]) -> Any:
        """Enable (flag=True) or disable (flag=False) a list of alerts."""
        params = {
            "enabled": bool(flag),
            "list": validation.check_alert_ids(alert_ids)
        }
        return await self._request("PATCH", self._get_url("tickerMonitor"), params, json_body=True)

    async def delete_alerts(self, alert_ids: List[int]) -> Any:
        """Delete a list of alerts."""
        params = {"list": validation.check_alert_ids(alert_ids)}
        return await self._request("DELETE", self._get_url("tickerMonitor"), params, json_body=True)

    @staticmethod
    def _pushover_params(pushover: Union[AlertPushoverOptions, Dict[str, Any]]) -> Dict[str, Any]:
        if isinstance(pushover, dict):
            try:
                pushover = AlertPushoverOptions.model_validate(pushover)
            except ValueError as e:
                raise ValidationError(f"Argument 'pushover' is invalid: {e}") from e
        return pushover.to_params()

    def __repr__(self) -> str:
        return f"<GatewayAPIClient(base_uri={self.base_uri!r})>"


