"""
Configuration management for term-cluster-ai.

Settings come from a YAML file, environment variables and an optional .env file.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env must be loaded before Settings reads the environment
load_dotenv()


class EmbeddingBackend(str, Enum):
    """Available embedding backends."""

    SENTENCE_TRANSFORMERS = "sentence-transformers"
    OPENAI = "openai"
    NONE = "none"


class SummaryBackend(str, Enum):
    """Available summarization backends."""

    OPENROUTER = "openrouter"
    OPENAI = "openai"
    NONE = "none"


class PathsConfig(BaseModel):
    """Storage locations."""

    database_path: Path = Field(default=Path("./term_cluster.duckdb"))

    @field_validator("database_path")
    @classmethod
    def expand_path(cls, v: Path) -> Path:
        """Resolve ~ and relative paths."""
        return Path(v).expanduser().resolve()


class EmbeddingConfig(BaseModel):
    """Configuration for the embedding capability."""

    provider: EmbeddingBackend = Field(default=EmbeddingBackend.SENTENCE_TRANSFORMERS)
    # Model key ("multilingual", "fast", "arabic") or full model name
    model: str | None = Field(default=None)
    # Only checked for OpenAI; local models report their own size
    dimensions: int = Field(default=1536, ge=1, le=8192)
    openai_api_key: str = Field(default="")
    base_url: str | None = Field(default=None)
    device: str | None = Field(default=None)
    batch_size: int = Field(default=32, ge=1, le=2048)
    timeout_seconds: float = Field(default=30.0, gt=0, le=300)
    max_retries: int = Field(default=3, ge=1, le=10)
    cache_enabled: bool = Field(default=True)
    cache_max_size: int = Field(default=10_000, ge=1)
    cache_ttl_seconds: float = Field(default=7 * 24 * 60 * 60, gt=0)
    # Characters of concatenated segment text sent for a document embedding
    max_document_text_length: int = Field(default=8000, ge=100, le=100_000)


class SummarizationConfig(BaseModel):
    """Configuration for cluster and document summaries."""

    provider: SummaryBackend = Field(default=SummaryBackend.OPENROUTER)
    model: str = Field(default="default")
    api_key: str = Field(default="")
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=500, ge=50, le=4096)
    max_documents: int = Field(default=5, ge=1, le=50)
    segments_per_document: int = Field(default=3, ge=1, le=50)
    max_input_chars: int = Field(default=4000, ge=500, le=50_000)
    glossary_context_limit: int = Field(default=50, ge=0, le=500)


class GlossaryConfig(BaseModel):
    """Configuration for glossary search."""

    min_similarity: float = Field(default=0.75, ge=0.0, le=1.0)
    semantic_candidate_limit: int = Field(default=10, ge=1, le=100)
    use_semantic_search: bool = Field(default=True)


class ClusteringConfig(BaseModel):
    """Configuration for document clustering."""

    # Nearest-neighbour similarity needed to join an existing cluster
    join_threshold: float = Field(default=0.75, ge=0.0, le=1.0)
    neighbor_limit: int = Field(default=5, ge=1, le=100)
    similar_documents_min_similarity: float = Field(default=0.7, ge=0.0, le=1.0)
    similar_documents_limit: int = Field(default=10, ge=1, le=100)
    # Refresh the cluster summary after each assignment
    auto_summarize: bool = Field(default=True)


class LoggingConfig(BaseModel):
    """Processing-log threshold."""

    level: str = Field(default="INFO")

    @field_validator("level")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return v.upper()


class ProjectConfig(BaseModel):
    """Project name and description."""

    name: str = Field(default="term-cluster-project")
    description: str = Field(default="")


class Settings(BaseSettings):
    """Root settings object for term-cluster-ai."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Configuration sections
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    summarization: SummarizationConfig = Field(default_factory=SummarizationConfig)
    glossary: GlossaryConfig = Field(default_factory=GlossaryConfig)
    clustering: ClusteringConfig = Field(default_factory=ClusteringConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def __init__(self, **data: Any) -> None:
        """Fill empty API keys from OPENAI_API_KEY / OPENROUTER_API_KEY."""
        super().__init__(**data)
        if not self.embedding.openai_api_key:
            self.embedding.openai_api_key = os.getenv("OPENAI_API_KEY", "")
        if not self.summarization.api_key:
            env_var = (
                "OPENAI_API_KEY"
                if self.summarization.provider == SummaryBackend.OPENAI
                else "OPENROUTER_API_KEY"
            )
            self.summarization.api_key = os.getenv(env_var, "")

    @classmethod
    def from_yaml(cls, path: Path | str) -> Settings:
        """Build settings from a YAML file; a missing file yields defaults."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        yaml_config = _substitute_env_vars(yaml_config)

        return cls(**yaml_config)


def _substitute_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Replace "${NAME}" string values with the environment variable NAME."""
    result = {}
    for key, value in config.items():
        if isinstance(value, dict):
            result[key] = _substitute_env_vars(value)
        elif isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            env_var = value[2:-1]
            result[key] = os.getenv(env_var, "")
        elif isinstance(value, list):
            result[key] = [
                _substitute_env_vars(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            result[key] = value
    return result


def load_config(path: Path | str | None = None) -> Settings:
    """
    Load configuration from YAML file or return defaults.

    Args:
        path: Path to YAML config file. If None, looks for config.yaml in current directory.

    Returns:
        Settings instance with merged YAML and environment configurations.
    """
    if path is None:
        default_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(".config.yaml"),
            Path(".term-cluster.yaml"),
        ]
        for p in default_paths:
            if p.exists():
                path = p
                break

    if path is not None:
        return Settings.from_yaml(path)

    return Settings()


DEFAULT_CONFIG = """# term-cluster-ai configuration
project:
  name: "my-translation-project"

paths:
  database_path: "./data/term_cluster.duckdb"

embedding:
  # "sentence-transformers" (local), "openai", or "none" (exact matching only)
  provider: "sentence-transformers"
  # Model key (multilingual, fast, arabic) or full model name
  model: "multilingual"
  # openai_api_key: ${OPENAI_API_KEY}
  cache_enabled: true
  # Characters of document text used for a document embedding
  max_document_text_length: 8000

summarization:
  # "openrouter", "openai", or "none"
  provider: "openrouter"
  model: "default"
  # api_key: ${OPENROUTER_API_KEY}
  max_tokens: 500
  # Documents sampled per cluster summary
  max_documents: 5

glossary:
  # Minimum cosine similarity for semantic candidates at search time
  min_similarity: 0.75
  semantic_candidate_limit: 10
  use_semantic_search: true

clustering:
  # Nearest-neighbour similarity required to join an existing cluster
  join_threshold: 0.75
  neighbor_limit: 5
  similar_documents_min_similarity: 0.7
  # Refresh the cluster summary after each assignment (non-critical)
  auto_summarize: true

logging:
  level: "INFO"
"""


def create_default_config(path: Path | str = "config.yaml") -> None:
    """Write the commented YAML template to `path`."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(DEFAULT_CONFIG)
