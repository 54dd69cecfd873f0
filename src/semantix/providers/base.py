"""Provider errors and registry lookup.

Why this exists:
- One error family for every remote embedding/rerank failure
- Callers can tell a misconfigured provider name apart from a provider
  that answered badly
- Per-item embedding failures are recorded as these errors, never raised
  out of a batch

Hierarchy:
    ProviderError
    ├── EmbeddingError
    │   ├── UnknownProviderError
    │   ├── UnexpectedResponseFormatError
    │   └── ProviderReportedError
    └── RerankProviderError
"""

from collections.abc import Mapping
from typing import Optional

from semantix.config.schema import ProviderProfile

# Label for a profile passed directly instead of by registry name
UNREGISTERED_PROFILE = "<profile>"


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(self, message: str, provider: str, original_error: Optional[Exception] = None):
        self.message = message
        self.provider = provider
        self.original_error = original_error
        super().__init__(self.message)


class EmbeddingError(ProviderError):
    """An embedding request failed."""

    def __init__(
        self,
        message: str,
        provider: str,
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, provider, original_error)
        self.status_code = status_code


class UnknownProviderError(EmbeddingError):
    """The requested provider name is not in the registry.

    Raised before any request is sent, so it aborts a whole batch.
    """


class UnexpectedResponseFormatError(EmbeddingError):
    """The provider answered with a body we cannot read a vector from."""


class ProviderReportedError(EmbeddingError):
    """The provider answered with a structured ``error`` object."""


class RerankProviderError(ProviderError):
    """A rerank request failed or returned an error."""

    def __init__(
        self,
        message: str,
        provider: str,
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, provider, original_error)
        self.status_code = status_code


def resolve_provider(registry: Mapping[str, ProviderProfile], name: str) -> ProviderProfile:
    """Look up a provider profile by name.

    Raises:
        UnknownProviderError: If ``name`` is not registered
    """
    profile = registry.get(name)
    if profile is None:
        raise UnknownProviderError(
            message=(
                f"Provider configuration for '{name}' not found. "
                f"Known providers: {', '.join(sorted(registry)) or 'none'}"
            ),
            provider=name,
        )
    return profile


def provider_label(registry: Mapping[str, ProviderProfile], profile: ProviderProfile) -> str:
    """Registry name of a profile, or a placeholder label when it is not registered."""
    for name, registered in registry.items():
        if registered is profile:
            return name
    return UNREGISTERED_PROFILE


def build_headers(profile: ProviderProfile) -> dict[str, str]:
    """Request headers for a provider: JSON content type, profile headers, bearer key."""
    headers = {"Content-Type": "application/json", **profile.headers}
    if profile.api_key:
        headers["Authorization"] = f"Bearer {profile.api_key}"
    return headers
