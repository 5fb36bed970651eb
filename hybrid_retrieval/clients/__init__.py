"""HTTP clients for external services."""

from .base import (
    BaseHttpClient,
    ClientError,
    NotFoundError,
    RateLimitedError,
    RequestRejectedError,
    UpstreamError,
)
from .ollama import OllamaEmbeddingClient

__all__ = [
    "BaseHttpClient",
    "ClientError",
    "NotFoundError",
    "OllamaEmbeddingClient",
    "RateLimitedError",
    "RequestRejectedError",
    "UpstreamError",
]
