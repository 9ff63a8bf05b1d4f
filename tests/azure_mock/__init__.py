"""Azure API Mock for adapter testing.

In-memory implementation of the ARM generic resource operations used by the
resource adapters, raising the genuine azure.core exception types.

Usage:
    from azure_mock import MockResourceClient

    client = MockResourceClient(replication_lag=2)
    adapter = NotificationHubNamespaceAdapter(client, config)
    state = await adapter.create(namespace_config)

    assert client.state.resource_count == 1
"""

from .resources import (
    MockGenericResource,
    MockHttpResponse,
    MockResourceClient,
    MockResourceState,
    MockSku,
    http_error,
)

__all__ = [
    "MockGenericResource",
    "MockHttpResponse",
    "MockResourceClient",
    "MockResourceState",
    "MockSku",
    "http_error",
]
