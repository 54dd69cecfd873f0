"""Provider layer: embedding and rerank gateways over HTTP APIs."""

from semantix.providers.base import (
    EmbeddingError,
    ProviderError,
    ProviderReportedError,
    RerankProviderError,
    UnexpectedResponseFormatError,
    UnknownProviderError,
    resolve_provider,
)
from semantix.providers.embedding import EmbeddingGateway
from semantix.providers.payloads import RerankResult
from semantix.providers.rerank import RerankGateway

__all__ = [
    "EmbeddingError",
    "EmbeddingGateway",
    "ProviderError",
    "ProviderReportedError",
    "RerankGateway",
    "RerankProviderError",
    "RerankResult",
    "UnexpectedResponseFormatError",
    "UnknownProviderError",
    "resolve_provider",
]
