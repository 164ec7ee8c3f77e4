"""
Test Suite

Contains unit tests for the gateway client.

Structure:
- tests/unit/: Tests for individual components (aggregation, pair search, client, config)

Uses pytest with pytest-asyncio for testing async functionality.
No test talks to a real gateway: HTTP calls are stubbed.
"""
