"""Application configuration for the hybrid retrieval engine."""

from pathlib import Path
from typing import Any, Optional

from pydantic import AnyHttpUrl, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError
from .hybrid.chunking import ChunkingPolicy, ChunkingStrategy
from .hybrid.hybrid_index import HybridRetrievalConfig
from .storage.snapshot import BASIC_VECTOR_DIR, CHUNKED_VECTOR_DIR, KEYWORD_DIR


class RetrievalConfig(BaseSettings):  # type: ignore[misc]
    """Settings controlling snapshot paths, the embedding service and ranking knobs."""

    snapshot_dir: Path = Field(Path("cache"), description="Root directory for index snapshots")
    embedding_url: AnyHttpUrl = Field(
        "http://localhost:11434", description="Base URL of the Ollama embedding service"
    )
    embedding_model: str = Field("all-minilm:l6-v2", description="Embedding model identifier")
    embedding_keep_alive: Optional[str] = Field(
        "5m", description="How long the embedding service keeps the model loaded"
    )
    request_timeout_s: float = Field(
        30.0, gt=0, description="Timeout (in seconds) for embedding requests"
    )
    embed_batch_size: Optional[int] = Field(
        None, ge=1, description="Texts per embedding call; unset sends everything at once"
    )
    embed_max_workers: int = Field(1, ge=1, description="Concurrent embedding calls during builds")

    bm25_k1: float = Field(1.5, ge=0)
    bm25_b: float = Field(0.75, ge=0, le=1)

    chunking_strategy: ChunkingStrategy = ChunkingStrategy.SEMANTIC
    chunk_size: int = Field(4, ge=1)
    chunk_overlap: int = Field(1, ge=0)

    hybrid_alpha: float = Field(0.5, ge=0, le=1)
    rrf_k: int = Field(60, ge=0)
    overfetch_multiplier: int = Field(500, ge=1)
    rerank_multiplier: int = Field(5, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="HYBRID_RETRIEVAL_", env_file=".env", extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Normalize paths to absolute locations."""

        self.snapshot_dir = self.snapshot_dir.expanduser().resolve()

    @field_validator("embedding_model")
    @classmethod
    def validate_embedding_model(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("embedding_model must not be empty")
        return value

    @model_validator(mode="after")
    def validate_chunk_overlap(self) -> "RetrievalConfig":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than chunk_size ({self.chunk_size})"
            )
        return self

    @property
    def keyword_dir(self) -> Path:
        return self.snapshot_dir / KEYWORD_DIR

    @property
    def basic_vector_dir(self) -> Path:
        return self.snapshot_dir / BASIC_VECTOR_DIR

    @property
    def chunked_vector_dir(self) -> Path:
        return self.snapshot_dir / CHUNKED_VECTOR_DIR

    def chunking_policy(self) -> ChunkingPolicy:
        return ChunkingPolicy(self.chunking_strategy, self.chunk_size, self.chunk_overlap)

    def hybrid_config(self, *, limit: int = 5) -> HybridRetrievalConfig:
        return HybridRetrievalConfig(
            alpha=self.hybrid_alpha,
            rrf_k=self.rrf_k,
            limit=limit,
            overfetch_multiplier=self.overfetch_multiplier,
            rerank_multiplier=self.rerank_multiplier,
        )


def load_config(**overrides: Any) -> RetrievalConfig:
    """Build a :class:`RetrievalConfig`, reporting invalid settings as :class:`ConfigError`."""

    try:
        return RetrievalConfig(**overrides)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


__all__ = ["RetrievalConfig", "load_config"]
