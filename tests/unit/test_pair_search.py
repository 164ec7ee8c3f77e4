"""
Unit Tests for Cross-Exchange Pair Search

These tests verify that find_pairs():
- Validates its arguments before issuing any request
- Propagates discovery failures
- Fans out one pairs request per discovered exchange
- Skips exchanges which fail, without failing the search
- Keeps only records matching the searched currency / base currency

Run with:
    pytest tests/unit/test_pair_search.py -v
"""

import asyncio

import pytest
import pytest_asyncio

from core.errors import GatewayError, TransportError, ValidationError
from core.schemas import PairSearchResult
from gateway import GatewayAPIClient
from gateway.pair_search import find_pairs


BASE_URI = "http://127.0.0.1:8000"


# ============================================
# Fixtures
# ============================================

@pytest_asyncio.fixture
async def api_client():
    """Create a GatewayAPIClient instance for testing"""
    async with GatewayAPIClient(BASE_URI) as client:
        yield client


class FakeGateway:
    """
    Routes _request() calls to canned answers.

    routes maps a path (relative to BASE_URI) to either a payload or an
    exception instance which will be raised.
    """

    def __init__(self, routes, delays=None):
        self.routes = routes
        self.delays = delays or {}
        self.calls = []

    async def __call__(self, method, url, params=None, json_body=False):
        path = url[len(BASE_URI) + 1:]
        self.calls.append((method, path, params))
        await asyncio.sleep(self.delays.get(path, 0))
        answer = self.routes[path]
        if isinstance(answer, Exception):
            raise answer
        return answer

    def paths(self):
        return [path for _, path, _ in self.calls]


# ============================================
# Scenarios
# ============================================

class TestFindPairsScenarios:
    """End-to-end behaviour of the search with a fake gateway"""

    @pytest.mark.asyncio
    async def test_failing_exchange_is_skipped(self, api_client, monkeypatch):
        """Discovery returns two exchanges, one of them fails"""
        gateway = FakeGateway({
            "exchanges": ["bittrex", "poloniex"],
            "exchanges/bittrex/pairs": [{"pair": "USDT-BTC", "currency": "BTC", "baseCurrency": "USDT"}],
            "exchanges/poloniex/pairs": TransportError("connection refused"),
        })
        monkeypatch.setattr(api_client, "_request", gateway)

        result = await api_client.find_pairs("BTC")

        assert [r.to_dict() for r in result] == [
            {"exchange": "bittrex", "pair": "USDT-BTC", "currency": "BTC", "baseCurrency": "USDT"}
        ]
        assert all(isinstance(r, PairSearchResult) for r in result)

    @pytest.mark.asyncio
    async def test_discovery_failure_fails_search(self, api_client, monkeypatch):
        error = GatewayError(500, {"origin": "gateway", "error": "internal error"})
        gateway = FakeGateway({"exchanges": error})
        monkeypatch.setattr(api_client, "_request", gateway)

        with pytest.raises(GatewayError) as exc_info:
            await api_client.find_pairs("BTC")

        assert exc_info.value is error
        assert gateway.paths() == ["exchanges"]

    @pytest.mark.asyncio
    async def test_no_exchange_discovered_returns_empty_list(self, api_client, monkeypatch):
        gateway = FakeGateway({"exchanges": []})
        monkeypatch.setattr(api_client, "_request", gateway)

        result = await api_client.find_pairs("BTC")

        assert result == []
        assert gateway.paths() == ["exchanges"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [None, {"binance": True}, "binance"])
    async def test_non_list_discovery_payload_returns_empty_list(self, api_client, monkeypatch, payload):
        gateway = FakeGateway({"exchanges": payload})
        monkeypatch.setattr(api_client, "_request", gateway)

        assert await api_client.find_pairs("BTC") == []
        assert gateway.paths() == ["exchanges"]

    @pytest.mark.asyncio
    async def test_all_exchanges_failing_returns_empty_list(self, api_client, monkeypatch):
        gateway = FakeGateway({
            "exchanges": ["binance", "bittrex"],
            "exchanges/binance/pairs": GatewayError(503, {"origin": "binance", "error": "unavailable"}),
            "exchanges/bittrex/pairs": TransportError("timeout"),
        })
        monkeypatch.setattr(api_client, "_request", gateway)

        assert await api_client.find_pairs("BTC") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("search", ["", None, 42])
    async def test_invalid_search_fails_without_request(self, api_client, monkeypatch, search):
        gateway = FakeGateway({})
        monkeypatch.setattr(api_client, "_request", gateway)

        with pytest.raises(ValidationError, match="'search'"):
            await api_client.find_pairs(search)

        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_invalid_search_type_fails_without_request(self, api_client, monkeypatch):
        gateway = FakeGateway({})
        monkeypatch.setattr(api_client, "_request", gateway)

        with pytest.raises(ValidationError, match="currency,baseCurrency"):
            await api_client.find_pairs("BTC", "pair")

        assert gateway.calls == []


# ============================================
# Request Construction & Filtering
# ============================================

class TestFindPairsRequests:
    """Requests issued by the search and filtering of their results"""

    @pytest.mark.asyncio
    async def test_currency_search_sends_currency_filter(self, api_client, monkeypatch):
        gateway = FakeGateway({
            "exchanges": ["binance"],
            "exchanges/binance/pairs": [],
        })
        monkeypatch.setattr(api_client, "_request", gateway)

        await api_client.find_pairs("NEO")

        assert gateway.calls == [
            ("GET", "exchanges", {"currency": "NEO"}),
            ("GET", "exchanges/binance/pairs", {"currency": "NEO"}),
        ]

    @pytest.mark.asyncio
    async def test_base_currency_search_sends_base_currency_filter(self, api_client, monkeypatch):
        gateway = FakeGateway({
            "exchanges": ["binance"],
            "exchanges/binance/pairs": [{"pair": "ETH-NEO", "currency": "NEO", "baseCurrency": "ETH"}],
        })
        monkeypatch.setattr(api_client, "_request", gateway)

        result = await api_client.find_pairs("ETH", "baseCurrency")

        assert gateway.calls == [
            ("GET", "exchanges", {"baseCurrency": "ETH"}),
            ("GET", "exchanges/binance/pairs", {"baseCurrency": "ETH"}),
        ]
        assert [r.pair for r in result] == ["ETH-NEO"]

    @pytest.mark.asyncio
    async def test_none_search_type_defaults_to_currency(self, api_client, monkeypatch):
        gateway = FakeGateway({"exchanges": []})
        monkeypatch.setattr(api_client, "_request", gateway)

        await api_client.find_pairs("BTC", None)

        assert gateway.calls == [("GET", "exchanges", {"currency": "BTC"})]

    @pytest.mark.asyncio
    async def test_records_not_matching_search_are_dropped(self, api_client, monkeypatch):
        gateway = FakeGateway({
            "exchanges": ["bittrex"],
            "exchanges/bittrex/pairs": [
                {"pair": "USDT-BTC", "currency": "BTC", "baseCurrency": "USDT"},
                {"pair": "BTC-NEO", "currency": "NEO", "baseCurrency": "BTC"},
                {"pair": "ETH-BTC", "currency": "BTC", "baseCurrency": "ETH"},
            ],
        })
        monkeypatch.setattr(api_client, "_request", gateway)

        result = await api_client.find_pairs("BTC")

        assert [r.pair for r in result] == ["USDT-BTC", "ETH-BTC"]

    @pytest.mark.asyncio
    async def test_pairs_returned_as_dict_are_supported(self, api_client, monkeypatch):
        gateway = FakeGateway({
            "exchanges": ["poloniex"],
            "exchanges/poloniex/pairs": {
                "USDT-BTC": {"pair": "USDT-BTC", "currency": "BTC", "baseCurrency": "USDT"},
            },
        })
        monkeypatch.setattr(api_client, "_request", gateway)

        result = await api_client.find_pairs("BTC")

        assert [(r.exchange, r.pair) for r in result] == [("poloniex", "USDT-BTC")]

    @pytest.mark.asyncio
    async def test_results_follow_discovery_order(self, api_client, monkeypatch):
        """Slowest exchange first: results are still in discovery order"""
        gateway = FakeGateway(
            {
                "exchanges": ["binance", "bittrex", "kucoin"],
                "exchanges/binance/pairs": [{"pair": "USDT-BTC", "currency": "BTC", "baseCurrency": "USDT"}],
                "exchanges/bittrex/pairs": [{"pair": "ETH-BTC", "currency": "BTC", "baseCurrency": "ETH"}],
                "exchanges/kucoin/pairs": [{"pair": "USDC-BTC", "currency": "BTC", "baseCurrency": "USDC"}],
            },
            delays={"exchanges/binance/pairs": 0.03, "exchanges/bittrex/pairs": 0.01},
        )
        monkeypatch.setattr(api_client, "_request", gateway)

        result = await api_client.find_pairs("BTC")

        assert [r.exchange for r in result] == ["binance", "bittrex", "kucoin"]

    @pytest.mark.asyncio
    async def test_on_failure_reports_failed_exchanges(self, api_client, monkeypatch):
        error = TransportError("connection refused")
        gateway = FakeGateway({
            "exchanges": ["bittrex", "poloniex"],
            "exchanges/bittrex/pairs": [],
            "exchanges/poloniex/pairs": error,
        })
        monkeypatch.setattr(api_client, "_request", gateway)
        failed = []

        result = await find_pairs(api_client, "BTC", on_failure=lambda exchange, err: failed.append((exchange, err)))

        assert result == []
        assert failed == [("poloniex", error)]

    @pytest.mark.asyncio
    async def test_malformed_records_are_skipped(self, api_client, monkeypatch):
        gateway = FakeGateway({
            "exchanges": ["bittrex"],
            "exchanges/bittrex/pairs": [
                {"currency": "BTC", "baseCurrency": "USDT"},
                "USDT-BTC",
                {"pair": "ETH-BTC", "currency": "BTC", "baseCurrency": "ETH", "minTradeSize": 0.01},
            ],
        })
        monkeypatch.setattr(api_client, "_request", gateway)

        result = await api_client.find_pairs("BTC")

        assert [r.to_dict() for r in result] == [
            {"exchange": "bittrex", "pair": "ETH-BTC", "currency": "BTC", "baseCurrency": "ETH"}
        ]
