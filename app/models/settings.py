"""
Typed configuration models for embedding, scoring and ranking
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from app.utils import utils
from app.utils.exceptions import ConfigurationError


class EmbeddingSettings(BaseModel):
    """Embedding Model Configuration"""
    model_config = ConfigDict(protected_namespaces=())

    backend: str = Field(default="sentence-transformers", description="Encoder backend: sentence-transformers or ollama")
    model_name: str = Field(default="sentence-transformers/all-MiniLM-L6-v2", description="Embedding model name")
    base_url: str = Field(default="http://localhost:11434", description="Ollama base URL")
    timeout: float = Field(default=30.0, gt=0, le=600, description="Per-request embedding timeout in seconds")
    dimension: Optional[int] = Field(default=None, description="Embedding dimension, known after load")

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v):
        if v not in ("sentence-transformers", "ollama"):
            raise ValueError('backend must be "sentence-transformers" or "ollama"')
        return v


class MatchingWeights(BaseModel):
    """Composite score weights; semantic similarity dominates by default"""
    semantic_similarity: float = Field(default=0.4, ge=0.0, le=1.0)
    skill_match: float = Field(default=0.3, ge=0.0, le=1.0)
    experience_match: float = Field(default=0.2, ge=0.0, le=1.0)
    education_match: float = Field(default=0.1, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_total_weights(self):
        total = self.semantic_similarity + self.skill_match + self.experience_match + self.education_match
        if abs(total - 1.0) > 0.01:  # Allow small floating point errors
            raise ValueError('Matching weights must sum to 1.0')
        return self


class ProcessingSettings(BaseModel):
    """Ranking and upload limits"""
    max_workers: int = Field(default=4, ge=1, le=64, description="Worker threads used to score candidate pairs")
    candidate_limit: int = Field(default=10, ge=1, le=1000, description="Default top-K for ranking endpoints")
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, ge=1, description="Largest accepted resume upload")


class MatcherSettings(BaseModel):
    """Complete service configuration"""
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    weights: MatchingWeights = Field(default_factory=MatchingWeights)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)

    @classmethod
    def from_env(cls) -> "MatcherSettings":
        try:
            return cls(
                embedding=EmbeddingSettings(
                    backend=utils.EMBEDDING_BACKEND,
                    model_name=utils.EMBED_MODEL,
                    base_url=utils.OLLAMA,
                    timeout=utils.EMBEDDING_TIMEOUT,
                ),
                weights=MatchingWeights(
                    semantic_similarity=utils.WEIGHT_SEMANTIC,
                    skill_match=utils.WEIGHT_SKILLS,
                    experience_match=utils.WEIGHT_EXPERIENCE,
                    education_match=utils.WEIGHT_EDUCATION,
                ),
                processing=ProcessingSettings(
                    max_workers=utils.RANKING_MAX_WORKERS,
                    candidate_limit=utils.CANDIDATE_LIMIT,
                    max_upload_bytes=utils.MAX_UPLOAD_BYTES,
                ),
            )
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid matcher configuration: {e}", cause=e) from e


_settings: Optional[MatcherSettings] = None


def get_settings() -> MatcherSettings:
    global _settings
    if _settings is None:
        _settings = MatcherSettings.from_env()
    return _settings
