"""Configuration loading from files and environment.

Supports:
- TOML and JSON config files
- Environment variables (SEMANTIX_* prefix) and ${VAR} substitution
- .env files
- The camelCase keys used by existing plugin_config.json files
- Atomic snapshot replacement on reload
"""

import json
import os
import re
import threading
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from semantix.config.schema import AppConfig
from semantix.observability.logging import get_logger

logger = get_logger(__name__)

# camelCase keys accepted from legacy JSON configs
_TOP_LEVEL_KEYS = {
    "defaultProvider": "default_provider",
    "rerankProvider": "rerank_provider",
    "defaultChunkSize": "default_chunk_size",
    "defaultOverlapSize": "default_overlap_size",
    "embeddingProviders": "providers",
    "embeddingConcurrency": "embedding_concurrency",
    "distanceMetric": "distance_metric",
    "vectorStore": "vector_store",
}

_PROVIDER_KEYS = {
    "baseUrl": "base_url",
    "embeddingEndpoint": "embedding_endpoint",
    "apiKey": "api_key",
    "modelName": "model_name",
    "defaultParams": "default_params",
}


def _substitute_env_vars(obj: Any) -> Any:
    """Recursively substitute environment variables in a data structure.

    Supports formats:
    - ${VAR_NAME}
    - ${VAR_NAME:-default}
    """
    if isinstance(obj, dict):
        return {k: _substitute_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_substitute_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        def replace_var(match):
            var_expr = match.group(1)
            if ":-" in var_expr:
                var_name, default_value = var_expr.split(":-", 1)
                return os.getenv(var_name.strip(), default_value)
            var_name = var_expr.strip()
            value = os.getenv(var_name)
            if value is None:
                logger.warning(
                    "env_var_not_found",
                    var_name=var_name,
                    suggestion="Check that the environment variable is set",
                )
                return match.group(0)
            return value

        return re.sub(r"\$\{([^}]+)\}", replace_var, obj)
    else:
        return obj


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Translate camelCase config keys into schema field names.

    Only top-level keys and the keys of each provider profile are renamed;
    headers and default_params pass through untouched.
    """
    normalized = {_TOP_LEVEL_KEYS.get(k, k): v for k, v in data.items()}

    providers = normalized.get("providers")
    if isinstance(providers, dict):
        normalized["providers"] = {
            name: (
                {_PROVIDER_KEYS.get(k, k): v for k, v in profile.items()}
                if isinstance(profile, dict)
                else profile
            )
            for name, profile in providers.items()
        }

    return normalized


def _read_config_file(config_path: Path) -> dict[str, Any]:
    if config_path.suffix.lower() == ".json":
        with open(config_path, encoding="utf-8") as f:
            return json.load(f)
    with open(config_path, "rb") as f:
        return tomllib.load(f)


def load_config(
    config_path: Optional[Path] = None,
    env_file: Optional[Path] = None,
) -> AppConfig:
    """Load application configuration.

    Priority (highest to lowest):
    1. Constructor values from the config file
    2. Environment variables
    3. Defaults

    Args:
        config_path: Path to a TOML or JSON config file
        env_file: Path to .env file

    Returns:
        Loaded and validated configuration
    """
    if env_file and env_file.exists():
        load_dotenv(env_file)
        logger.info("loaded_env_file", path=str(env_file))

    config_data: dict[str, Any] = {}
    if config_path and config_path.exists():
        config_data = _read_config_file(config_path)
        logger.info("loaded_config_file", path=str(config_path))

        config_data = _substitute_env_vars(_normalize_keys(config_data))
        logger.debug("substituted_env_vars_in_config")
    elif config_path:
        logger.warning("config_file_not_found", path=str(config_path), using="defaults")

    config = AppConfig(**config_data)
    logger.info(
        "config_loaded",
        log_level=config.log_level,
        default_provider=config.default_provider,
        providers=sorted(config.providers),
        vector_store=config.vector_store.store_type,
    )

    return config


def get_default_config_path() -> Path:
    """Get the default config file path.

    Searches in order:
    1. ./semantix.toml
    2. ~/.semantix/config.toml
    3. /etc/semantix/config.toml
    """
    search_paths = [
        Path.cwd() / "semantix.toml",
        Path.home() / ".semantix" / "config.toml",
        Path("/etc/semantix/config.toml"),
    ]

    for path in search_paths:
        if path.exists():
            return path

    return search_paths[0]


class ConfigHolder:
    """Holds the current configuration snapshot.

    Readers take one snapshot at the start of a request and use it
    throughout; ``replace`` swaps in a new snapshot without touching the
    one already handed out.
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._lock = threading.Lock()

    def snapshot(self) -> AppConfig:
        with self._lock:
            return self._config

    def replace(self, config: AppConfig) -> AppConfig:
        """Install a new snapshot and return the previous one."""
        with self._lock:
            previous, self._config = self._config, config
        logger.info("config_replaced", default_provider=config.default_provider)
        return previous

    def reload(self, config_path: Optional[Path] = None, env_file: Optional[Path] = None) -> AppConfig:
        """Load configuration from disk and install it as the new snapshot."""
        config = load_config(config_path, env_file)
        self.replace(config)
        return config
