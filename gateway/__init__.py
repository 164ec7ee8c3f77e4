"""
Exchanges Gateway Client Package

- api_client.py: GatewayAPIClient, async REST client for every gateway endpoint
- pair_search.py: Cross-exchange pair search (discovery, fan-out, fan-in)
- validation.py: Argument checks run before any request is issued

Usage:
    from gateway import GatewayAPIClient

    async with GatewayAPIClient("http://127.0.0.1:8000") as client:
        matches = await client.find_pairs("NEO")
"""

from gateway.api_client import GatewayAPIClient
from core.errors import GatewayClientError, GatewayError, TransportError, ValidationError

__all__ = [
    "GatewayAPIClient",
    "GatewayClientError",
    "GatewayError",
    "TransportError",
    "ValidationError",
]
