"""Factory for creating retrieval gateways."""

from typing import Any

from .base import RetrievalGateway


def create_retrieval_gateway(
    backend: str = "memory",
    **kwargs: Any
) -> RetrievalGateway:
    """Create a retrieval gateway.

    Args:
        backend: Backend type ("memory" or "service")
        **kwargs: Backend-specific configuration
            For service:
                - client: ServiceClient (or base_url: str)

    Returns:
        RetrievalGateway instance

    Raises:
        ValueError: If backend type is not supported
    """
    if backend == "memory":
        from .in_memory import InMemoryRetrievalGateway
        return InMemoryRetrievalGateway()

    elif backend == "service":
        from ..service import ServiceClient
        from .service import ServiceRetrievalGateway
        client = kwargs.get("client") or ServiceClient(kwargs["base_url"])
        return ServiceRetrievalGateway(client)

    raise ValueError(
        f"Unsupported retrieval backend: {backend}. "
        f"Supported backends: memory, service"
    )
