"""
Core Package

Contains the gateway-agnostic building blocks of the client:
- config: Pydantic settings (gateway uri, api key, timeout, logging)
- logging: Library logger and the request/response diagnostics channel
- errors: GatewayClientError hierarchy (ValidationError, TransportError, GatewayError)
- schemas: Pydantic models (pairs, search results, settled outcomes)
- aggregation: Concurrent execution of many operations with per-operation failure isolation
"""
