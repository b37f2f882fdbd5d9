"""
Configuration management for reelmatch.

Handles loading and saving user configuration from:
- XDG config directory: ~/.config/reelmatch/config.json
- Fallback: ~/.reelmatch/config.json

Environment variables (GEMINI_API_KEY, PINECONE_API_KEY, DATABASE_URL, ...)
override values read from the file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Any, Mapping, Optional
from dataclasses import dataclass, asdict, field

from .errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class LLMConfig:
    """Generative model configuration."""
    provider: str = "gemini"
    model: str = "gemini-1.5-flash"
    api_key: Optional[str] = None
    temperature: float = 0.2
    max_tokens: Optional[int] = 1024
    timeout: float = 30.0


@dataclass
class VectorConfig:
    """Vector index configuration."""
    backend: str = "local"  # local | pinecone
    index_name: str = "omdb-database"
    host: Optional[str] = None
    api_key: Optional[str] = None
    namespace: str = "__default__"
    top_k: int = 10


@dataclass
class DatabaseConfig:
    """Content store settings."""
    url: Optional[str] = None
    echo: bool = False


@dataclass
class SimilarityConfig:
    """Similarity graph settings."""
    threshold: float = 0.3
    batch_size: int = 50


@dataclass
class ProcessingConfig:
    """Recommendation processing settings."""
    concurrency: int = 5
    batch_delay: float = 3.0
    timeout: float = 30.0


@dataclass
class ReelmatchConfig:
    """Main reelmatch configuration."""
    llm: LLMConfig = field(default_factory=LLMConfig)
    vector: VectorConfig = field(default_factory=VectorConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    similarity: SimilarityConfig = field(default_factory=SimilarityConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "llm": asdict(self.llm),
            "vector": asdict(self.vector),
            "database": asdict(self.database),
            "similarity": asdict(self.similarity),
            "processing": asdict(self.processing),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReelmatchConfig':
        """Create from dictionary."""
        try:
            return cls(
                llm=LLMConfig(**data.get("llm", {})),
                vector=VectorConfig(**data.get("vector", {})),
                database=DatabaseConfig(**data.get("database", {})),
                similarity=SimilarityConfig(**data.get("similarity", {})),
                processing=ProcessingConfig(**data.get("processing", {})),
            )
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


def get_config_path() -> Path:
    """
    Get configuration file path.

    Follows XDG Base Directory specification:
    1. $XDG_CONFIG_HOME/reelmatch/config.json (usually ~/.config/reelmatch/config.json)
    2. Fallback: ~/.reelmatch/config.json

    Returns:
        Path to config file
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "reelmatch" / "config.json"

    xdg_config_home = Path.home() / ".config"
    if xdg_config_home.exists():
        config_dir = xdg_config_home / "reelmatch"
    else:
        # Fallback to ~/.reelmatch
        config_dir = Path.home() / ".reelmatch"

    return config_dir / "config.json"


def _env_number(environ: Mapping[str, str], name: str, cast):
    raw = environ.get(name)
    if raw is None or raw == "":
        return None
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def apply_env_overrides(config: ReelmatchConfig,
                        environ: Optional[Mapping[str, str]] = None) -> ReelmatchConfig:
    """
    Apply environment variable overrides in place.

    Raises:
        ConfigError: If a numeric variable cannot be parsed
    """
    env = os.environ if environ is None else environ

    if env.get("GEMINI_API_KEY"):
        config.llm.api_key = env["GEMINI_API_KEY"]
    if env.get("GEMINI_MODEL"):
        config.llm.model = env["GEMINI_MODEL"]
    max_tokens = _env_number(env, "GEMINI_MAX_TOKENS", int)
    if max_tokens is not None:
        config.llm.max_tokens = max_tokens
    temperature = _env_number(env, "GEMINI_TEMPERATURE", float)
    if temperature is not None:
        config.llm.temperature = temperature

    if env.get("PINECONE_API_KEY"):
        config.vector.api_key = env["PINECONE_API_KEY"]
    if env.get("PINECONE_INDEX_NAME"):
        config.vector.index_name = env["PINECONE_INDEX_NAME"]
    if env.get("PINECONE_HOST"):
        config.vector.host = env["PINECONE_HOST"]

    if env.get("DATABASE_URL"):
        config.database.url = env["DATABASE_URL"]

    return config


def load_config(environ: Optional[Mapping[str, str]] = None) -> ReelmatchConfig:
    """
    Load configuration from file, then apply environment overrides.

    Returns:
        ReelmatchConfig instance with loaded values or defaults
    """
    config_path = get_config_path()
    config = ReelmatchConfig()

    if config_path.exists():
        try:
            with open(config_path, 'r') as f:
                data = json.load(f)
            config = ReelmatchConfig.from_dict(data)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}; using defaults")

    return apply_env_overrides(config, environ)


def save_config(config: ReelmatchConfig) -> Path:
    """
    Save configuration to file.

    Args:
        config: Configuration to save

    Returns:
        Path the configuration was written to
    """
    config_path = get_config_path()

    # Create directory if it doesn't exist
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)

    logger.debug(f"Configuration saved to {config_path}")
    return config_path


def update_config(
    # LLM settings
    llm_model: Optional[str] = None,
    llm_api_key: Optional[str] = None,
    llm_temperature: Optional[float] = None,
    llm_max_tokens: Optional[int] = None,
    # Vector settings
    vector_backend: Optional[str] = None,
    vector_index_name: Optional[str] = None,
    vector_host: Optional[str] = None,
    vector_api_key: Optional[str] = None,
    # Database settings
    database_url: Optional[str] = None,
    # Similarity settings
    similarity_threshold: Optional[float] = None,
    similarity_batch_size: Optional[int] = None,
    # Processing settings
    processing_concurrency: Optional[int] = None,
    processing_batch_delay: Optional[float] = None,
) -> ReelmatchConfig:
    """
    Update configuration.

    Only updates provided values, leaving others unchanged. Values that
    come from environment variables are not written back to the file.
    """
    config_path = get_config_path()
    config = ReelmatchConfig()
    if config_path.exists():
        with open(config_path, 'r') as f:
            config = ReelmatchConfig.from_dict(json.load(f))

    if vector_backend is not None and vector_backend not in ("local", "pinecone"):
        raise ConfigError(f"Unknown vector backend: {vector_backend}")

    # Update LLM config
    if llm_model is not None:
        config.llm.model = llm_model
    if llm_api_key is not None:
        config.llm.api_key = llm_api_key
    if llm_temperature is not None:
        config.llm.temperature = llm_temperature
    if llm_max_tokens is not None:
        config.llm.max_tokens = llm_max_tokens

    # Update vector config
    if vector_backend is not None:
        config.vector.backend = vector_backend
    if vector_index_name is not None:
        config.vector.index_name = vector_index_name
    if vector_host is not None:
        config.vector.host = vector_host
    if vector_api_key is not None:
        config.vector.api_key = vector_api_key

    if database_url is not None:
        config.database.url = database_url

    if similarity_threshold is not None:
        config.similarity.threshold = similarity_threshold
    if similarity_batch_size is not None:
        config.similarity.batch_size = similarity_batch_size

    if processing_concurrency is not None:
        config.processing.concurrency = processing_concurrency
    if processing_batch_delay is not None:
        config.processing.batch_delay = processing_batch_delay

    save_config(config)
    return config
