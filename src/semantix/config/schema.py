"""Configuration schema using Pydantic.

Why this exists:
- Type-safe configuration with validation
- Environment variable support
- A name-keyed registry of embedding/rerank providers
- Immutable snapshots so a reload is never observed mid-request

How to extend:
1. Add new fields to existing config classes
2. Create new config classes for new components
3. Update the sample config with new settings
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ProviderKind(str, Enum):
    """Request/response dialects understood by the embedding gateway."""

    OLLAMA = "ollama"
    OPENAI = "openai"
    LLAMACPP = "llamacpp"
    GENERIC = "generic"


class VectorStoreType(str, Enum):
    """Supported vector stores."""

    MEMORY = "memory"
    QDRANT = "qdrant"


class DistanceMetric(str, Enum):
    """Similarity metrics a collection can be created with."""

    COSINE = "Cosine"
    EUCLID = "Euclid"
    DOT = "Dot"


def infer_provider_kind(url: str) -> ProviderKind:
    """Guess the provider dialect from an endpoint URL.

    Only used when a profile does not declare ``kind`` explicitly.
    """
    lowered = url.lower()
    if "ollama" in lowered:
        return ProviderKind.OLLAMA
    if "openai" in lowered:
        return ProviderKind.OPENAI
    if "llamacpp" in lowered or "localhost:8008" in lowered:
        return ProviderKind.LLAMACPP
    return ProviderKind.GENERIC


class ProviderProfile(BaseModel):
    """A named external embedding/rerank service."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    base_url: str
    embedding_endpoint: str = "/embedding"
    api_key: Optional[str] = None
    model_name: str
    headers: dict[str, str] = Field(default_factory=dict)
    default_params: dict[str, Any] = Field(default_factory=dict)
    kind: ProviderKind = ProviderKind.GENERIC
    dimension: Optional[int] = Field(default=None, gt=0, description="Expected vector length")
    timeout: float = Field(default=60.0, gt=0)

    @model_validator(mode="before")
    @classmethod
    def fill_kind_from_url(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("kind"):
            url = f"{data.get('base_url', '')}{data.get('embedding_endpoint', '')}"
            data = {**data, "kind": infer_provider_kind(url)}
        return data

    @property
    def embedding_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.embedding_endpoint}"

    def url_for(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}{path}"


def default_providers() -> dict[str, ProviderProfile]:
    """Sample provider registry used when no config file is present."""
    return {
        "ollama": ProviderProfile(
            base_url="http://localhost:11434",
            embedding_endpoint="/api/embeddings",
            model_name="mxbai-embed-large-v1",
            kind=ProviderKind.OLLAMA,
        ),
        "llamacpp": ProviderProfile(
            base_url="http://localhost:8080",
            embedding_endpoint="/embedding",
            model_name="mixedbread-ai/mxbai-embed-large-v1",
            default_params={"normalize": True, "truncate": True},
            kind=ProviderKind.LLAMACPP,
        ),
        "openai": ProviderProfile(
            base_url="https://api.openai.com/v1",
            embedding_endpoint="/embeddings",
            model_name="text-embedding-ada-002",
            kind=ProviderKind.OPENAI,
            dimension=1536,
        ),
        "bananabread": ProviderProfile(
            base_url="http://localhost:8008",
            embedding_endpoint="/embedding",
            model_name="mixedbread-ai/mxbai-embed-large-v1",
            default_params={"normalize": True, "truncate": True},
            kind=ProviderKind.LLAMACPP,
        ),
        "custom": ProviderProfile(
            base_url="http://your-custom-endpoint.com",
            embedding_endpoint="/your-embedding-path",
            model_name="your-model-name",
            kind=ProviderKind.GENERIC,
        ),
    }


class VectorStoreConfig(BaseModel):
    """Vector store configuration."""

    model_config = ConfigDict(frozen=True)

    store_type: VectorStoreType = VectorStoreType.QDRANT
    url: str = "http://localhost:6333"
    api_key: Optional[str] = None
    timeout: float = Field(default=30.0, gt=0)


class AppConfig(BaseSettings):
    """Main application configuration.

    Loads from:
    1. Config file (TOML or JSON)
    2. Environment variables (prefixed with SEMANTIX_)
    3. .env file
    """

    model_config = SettingsConfigDict(
        env_prefix="SEMANTIX_",
        env_nested_delimiter="__",
        case_sensitive=False,
        frozen=True,
    )

    # Application settings
    app_name: str = "semantix"
    log_level: LogLevel = LogLevel.INFO
    json_logs: bool = False

    # Pipeline defaults
    default_provider: str = "bananabread"
    rerank_provider: Optional[str] = None
    default_chunk_size: int = Field(default=450, gt=0, description="Window size in characters")
    default_overlap_size: int = Field(default=50, ge=0, description="Overlap between windows in characters")
    embedding_concurrency: int = Field(default=1, gt=0, description="Concurrent embedding requests")
    distance_metric: DistanceMetric = DistanceMetric.COSINE

    # Component configurations
    providers: dict[str, ProviderProfile] = Field(default_factory=default_providers)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)

    @property
    def rerank_provider_name(self) -> str:
        return self.rerank_provider or self.default_provider
