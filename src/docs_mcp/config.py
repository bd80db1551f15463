"""Configuration module for docs-mcp.

Loads configuration from environment variables with sensible defaults. An
optional ``.docs-mcp.yaml`` in the project root may override chunking and
search defaults; environment variables always win over the file.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from docs_mcp.embeddings import DEFAULT_MODEL, DEFAULT_RETRY_INTERVAL
from docs_mcp.indexer.models import ChunkingConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".docs-mcp.yaml"
INDEX_FILE_NAME = "documentation-index.npz"
TRANSPORTS = ("stdio", "sse", "http")

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def _parse_int(name: str, value: Any, minimum: int = 1) -> int:
    try:
        parsed = int(value)
        if parsed < minimum:
            raise ValueError(f"must be >= {minimum}, got {parsed}")
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid {name} value '{value}': {e}") from e
    return parsed


def _parse_float(name: str, value: Any) -> float:
    try:
        parsed = float(value)
        if parsed <= 0:
            raise ValueError(f"must be positive, got {parsed}")
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid {name} value '{value}': {e}") from e
    return parsed


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"Invalid {name} value '{value}': expected true or false")


def _merge(default: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two configuration dictionaries."""
    result = dict(default)
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def load_file_config(root: Path) -> dict[str, Any]:
    """
    Read ``.docs-mcp.yaml`` from the project root.

    Returns an empty dict when the file is missing, unreadable or not a
    YAML mapping.
    """
    path = Path(root) / CONFIG_FILE_NAME
    if not path.is_file():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring invalid config file %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level must be a mapping", path)
        return {}
    logger.info("Loaded config overrides from %s", path)
    return data


@dataclass
class Config:
    """Application configuration."""

    root: Path
    index_path: Path
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    default_limit: int = 10
    embed_model: str = DEFAULT_MODEL
    embed_retry_seconds: float = DEFAULT_RETRY_INTERVAL
    validation_timeout: float = 30.0
    watch: bool = True
    transport: str = "stdio"

    @classmethod
    def from_env(cls, root_override: Path | None = None) -> "Config":
        """Load configuration from environment variables and the optional YAML file.

        Args:
            root_override: If provided, overrides the DOCS_ROOT env var.

        Raises:
            ValueError: If a value is malformed or min tokens exceed max tokens
        """
        if root_override is not None:
            root = Path(root_override)
        else:
            root = Path(os.getenv("DOCS_ROOT", os.getcwd()))
        root = root.expanduser().resolve()

        default_index = root / ".cache" / "docs-mcp" / INDEX_FILE_NAME
        index_path = Path(os.getenv("DOCS_INDEX_PATH", str(default_index))).expanduser()

        settings = _merge(
            {
                "chunking": {"min_tokens": 200, "max_tokens": 500, "split_at_headings": True},
                "search": {"default_limit": 10},
            },
            load_file_config(root),
        )
        chunking = settings.get("chunking") or {}
        search = settings.get("search") or {}

        min_tokens = _parse_int(
            "DOCS_MIN_TOKENS", os.getenv("DOCS_MIN_TOKENS", chunking.get("min_tokens", 200))
        )
        max_tokens = _parse_int(
            "DOCS_MAX_TOKENS", os.getenv("DOCS_MAX_TOKENS", chunking.get("max_tokens", 500))
        )
        if min_tokens > max_tokens:
            raise ValueError(
                f"DOCS_MIN_TOKENS ({min_tokens}) must not exceed DOCS_MAX_TOKENS ({max_tokens})"
            )
        split_at_headings = _parse_bool(
            "DOCS_SPLIT_AT_HEADINGS",
            os.getenv("DOCS_SPLIT_AT_HEADINGS", chunking.get("split_at_headings", True)),
        )
        default_limit = _parse_int("search.default_limit", search.get("default_limit", 10))

        embed_retry_seconds = _parse_float(
            "DOCS_EMBED_RETRY_SECONDS",
            os.getenv("DOCS_EMBED_RETRY_SECONDS", str(DEFAULT_RETRY_INTERVAL)),
        )
        validation_timeout = _parse_float(
            "DOCS_VALIDATION_TIMEOUT", os.getenv("DOCS_VALIDATION_TIMEOUT", "30")
        )
        watch = _parse_bool("DOCS_WATCH", os.getenv("DOCS_WATCH", "true"))

        transport = os.getenv("DOCS_TRANSPORT", "stdio").lower()
        if transport not in TRANSPORTS:
            raise ValueError(f"Invalid DOCS_TRANSPORT value '{transport}': expected one of {TRANSPORTS}")

        return cls(
            root=root,
            index_path=index_path,
            chunking=ChunkingConfig(
                min_tokens=min_tokens,
                max_tokens=max_tokens,
                split_at_headings=split_at_headings,
            ),
            default_limit=default_limit,
            embed_model=os.getenv("DOCS_EMBED_MODEL", DEFAULT_MODEL),
            embed_retry_seconds=embed_retry_seconds,
            validation_timeout=validation_timeout,
            watch=watch,
            transport=transport,
        )


# Global config instance (lazy loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
