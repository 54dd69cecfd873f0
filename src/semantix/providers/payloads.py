"""Typed request/response shapes for embedding and rerank providers.

Each provider kind has its own request model naming the text field the
way that API expects it. Provider-specific parameters (``normalize``,
``truncate``, ``dimensions``, ...) travel in the explicit ``extra`` map and
are merged over the body when it is serialized.

Responses from all kinds are read through one tolerant model: an
OpenAI-style ``data`` array, a flat ``embedding`` list, or an ``error``
object.
"""

from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from semantix.config.schema import ProviderKind
from semantix.providers.base import (
    ProviderReportedError,
    RerankProviderError,
    UnexpectedResponseFormatError,
)


class EmbeddingRequest(BaseModel):
    """Fields shared by every embedding request."""

    kind: ClassVar[ProviderKind]

    model: str
    extra: dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        body = self.model_dump(exclude={"extra"})
        return {**body, **self.extra}


class OllamaEmbeddingRequest(EmbeddingRequest):
    kind: ClassVar[ProviderKind] = ProviderKind.OLLAMA

    prompt: str


class OpenAIEmbeddingRequest(EmbeddingRequest):
    kind: ClassVar[ProviderKind] = ProviderKind.OPENAI

    input: str


class LlamaCppEmbeddingRequest(EmbeddingRequest):
    kind: ClassVar[ProviderKind] = ProviderKind.LLAMACPP

    content: str


class GenericEmbeddingRequest(EmbeddingRequest):
    kind: ClassVar[ProviderKind] = ProviderKind.GENERIC

    text: str


_TEXT_FIELD = {
    ProviderKind.OLLAMA: (OllamaEmbeddingRequest, "prompt"),
    ProviderKind.OPENAI: (OpenAIEmbeddingRequest, "input"),
    ProviderKind.LLAMACPP: (LlamaCppEmbeddingRequest, "content"),
    ProviderKind.GENERIC: (GenericEmbeddingRequest, "text"),
}


def build_embedding_request(
    kind: ProviderKind,
    text: str,
    model: str,
    extra: Optional[dict[str, Any]] = None,
) -> EmbeddingRequest:
    """Build the request model for a provider kind."""
    request_cls, text_field = _TEXT_FIELD[kind]
    return request_cls(**{text_field: text}, model=model, extra=dict(extra or {}))


class ErrorBody(BaseModel):
    """Structured error object returned by many provider APIs."""

    model_config = ConfigDict(extra="allow")

    message: str = "Unknown error"
    type: Optional[str] = None
    param: Optional[str] = None
    code: Optional[str | int] = None


def _coerce_error(v: Any) -> Any:
    # "", 0, false and null mean no error; an empty object still does
    if not v and not isinstance(v, (dict, list)):
        return None
    if isinstance(v, str):
        return {"message": v}
    return v


class EmbeddingData(BaseModel):
    model_config = ConfigDict(extra="allow")

    embedding: list[float]


class EmbeddingResponse(BaseModel):
    """Union of the embedding response shapes we accept."""

    model_config = ConfigDict(extra="allow")

    embedding: Optional[list[float]] = None
    data: Optional[list[EmbeddingData]] = None
    model: Optional[str] = None
    error: Optional[ErrorBody] = None

    @field_validator("error", mode="before")
    @classmethod
    def error_from_string(cls, v: Any) -> Any:
        return _coerce_error(v)


def parse_embedding_response(body: Any, provider: str) -> list[float]:
    """Extract the vector from a decoded embedding response.

    Raises:
        ProviderReportedError: If the body carries an ``error`` object
        UnexpectedResponseFormatError: If no vector can be found
    """
    if not isinstance(body, dict):
        raise UnexpectedResponseFormatError(
            message="Unexpected embedding response format",
            provider=provider,
        )

    try:
        response = EmbeddingResponse.model_validate(body)
    except ValidationError as e:
        raise UnexpectedResponseFormatError(
            message=f"Unexpected embedding response format: {e.error_count()} validation error(s)",
            provider=provider,
            original_error=e,
        ) from e

    if response.error is not None:
        raise ProviderReportedError(
            message=f"Embedding API error: {response.error.message}",
            provider=provider,
        )

    # OpenAI format
    if response.data:
        return response.data[0].embedding

    # Ollama / llama.cpp format
    if response.embedding:
        return response.embedding

    raise UnexpectedResponseFormatError(
        message="Unexpected embedding response format",
        provider=provider,
    )


class RerankRequest(BaseModel):
    """A rerank request: one query against candidate documents."""

    query: str
    documents: list[str]
    model: str
    top_n: Optional[int] = None
    extra: dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        body = self.model_dump(exclude={"extra"}, exclude_none=True)
        return {**body, **self.extra}


class RerankResult(BaseModel):
    """One reranked document, addressed by its index in the request."""

    model_config = ConfigDict(extra="allow")

    index: int = Field(..., ge=0)
    relevance_score: float
    document: Optional[Any] = None


class RerankResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    results: Optional[list[RerankResult]] = None
    model: Optional[str] = None
    usage: Optional[dict[str, Any]] = None
    error: Optional[ErrorBody] = None

    @field_validator("error", mode="before")
    @classmethod
    def error_from_string(cls, v: Any) -> Any:
        return _coerce_error(v)


def parse_rerank_response(body: Any, provider: str) -> list[RerankResult]:
    """Extract rerank results, in the order the provider returned them.

    Raises:
        RerankProviderError: On an ``error`` object or a body without results
    """
    if not isinstance(body, dict):
        raise RerankProviderError(message="Unexpected rerank response format", provider=provider)

    try:
        response = RerankResponse.model_validate(body)
    except ValidationError as e:
        raise RerankProviderError(
            message=f"Unexpected rerank response format: {e.error_count()} validation error(s)",
            provider=provider,
            original_error=e,
        ) from e

    if response.error is not None:
        raise RerankProviderError(
            message=f"Rerank API error: {response.error.message}",
            provider=provider,
        )

    if response.results is None:
        raise RerankProviderError(message="Rerank response has no results", provider=provider)

    return response.results
