"""
Embedding generation.

The model is loaded once per process. Concurrent first callers share a
single load; a failed load is reported to every waiter and retried by the
next call instead of being cached.
"""
import asyncio
import threading
from concurrent.futures import Future
from typing import Callable, List, Optional

import numpy as np

from app.models.settings import EmbeddingSettings, get_settings
from app.utils.exceptions import (
    EmbeddingTimeoutError, MatcherBaseException, ModelError, ModelUnavailableError,
)
from app.utils.logging_config import PerformanceMonitor, get_logger
from app.utils.utils import ollama_embed

logger = get_logger(__name__)


class SentenceTransformerEncoder:
    """Local sentence-transformers model"""

    def __init__(self, model_name: str):
        from sentence_transformers import SentenceTransformer

        self.model_name = model_name
        self.model = SentenceTransformer(model_name)
        self.dimension = int(self.model.get_sentence_embedding_dimension())

    def encode(self, texts: List[str]) -> np.ndarray:
        return self.model.encode(texts, normalize_embeddings=True, show_progress_bar=False)


class OllamaEncoder:
    """Embeddings served by an Ollama instance"""

    def __init__(self, model_name: str, base_url: str, timeout: float):
        self.model_name = model_name
        self.base_url = base_url
        self.timeout = timeout
        # probe once so an unreachable server fails the load, and to learn the dimension
        probe = ollama_embed("dimension probe", model=model_name, base_url=base_url, timeout=timeout)
        self.dimension = int(np.asarray(probe).shape[-1])

    def encode(self, texts: List[str]) -> np.ndarray:
        return ollama_embed(texts, model=self.model_name, base_url=self.base_url, timeout=self.timeout)


def default_encoder_factory(settings: EmbeddingSettings):
    if settings.backend == "ollama":
        return OllamaEncoder(settings.model_name, settings.base_url, settings.timeout)
    return SentenceTransformerEncoder(settings.model_name)


class EmbeddingGenerator:
    def __init__(self, settings: EmbeddingSettings = None, encoder_factory: Callable = None):
        self.settings = settings or EmbeddingSettings()
        self.encoder_factory = encoder_factory or default_encoder_factory
        self._encoder = None
        self._loading: Optional[Future] = None
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._encoder is not None

    @property
    def dimension(self) -> Optional[int]:
        return self._encoder.dimension if self._encoder is not None else None

    def load(self):
        """Return the encoder, loading it on first use.

        Only one caller performs the load; the others wait on the same future.
        Raises ModelUnavailableError when loading fails.
        """
        if self._encoder is not None:
            return self._encoder

        with self._lock:
            if self._encoder is not None:
                return self._encoder
            future = self._loading
            owner = future is None
            if owner:
                future = self._loading = Future()

        if not owner:
            return future.result()

        try:
            with PerformanceMonitor(f"Loading embedding model {self.settings.model_name}", logger, threshold_ms=30000):
                encoder = self.encoder_factory(self.settings)
        except Exception as e:
            error = ModelUnavailableError(
                f"Embedding model '{self.settings.model_name}' could not be loaded: {e}",
                model_name=self.settings.model_name,
                model_type=self.settings.backend,
                cause=e,
            )
            with self._lock:
                self._loading = None
            future.set_exception(error)
            raise error from e

        with self._lock:
            self._encoder = encoder
            self._loading = None
        self.settings.dimension = encoder.dimension
        future.set_result(encoder)
        logger.info(f"Embedding model {self.settings.model_name} ready (dimension={encoder.dimension})")
        return encoder

    async def aload(self):
        if self._encoder is not None:
            return self._encoder
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.load)

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        encoder = self.load()
        cleaned = [" ".join((t or "").split()) for t in texts]
        try:
            vectors = np.asarray(encoder.encode(cleaned), dtype=np.float32)
        except MatcherBaseException:
            raise
        except Exception as e:
            raise ModelError(f"Embedding failed: {e}", model_name=self.settings.model_name, cause=e) from e

        if vectors.ndim != 2 or vectors.shape != (len(cleaned), encoder.dimension):
            raise ModelError(
                f"Encoder returned shape {vectors.shape}, expected ({len(cleaned)}, {encoder.dimension})",
                model_name=self.settings.model_name,
            )
        return vectors.tolist()

    def embed(self, text: str) -> List[float]:
        return self.embed_batch([text])[0]

    async def aembed_batch(self, texts: List[str], timeout: float = None) -> List[List[float]]:
        """Embed off the event loop. The model load is not counted against the timeout."""
        await self.aload()
        timeout = timeout or self.settings.timeout
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(loop.run_in_executor(None, self.embed_batch, texts), timeout)
        except asyncio.TimeoutError as e:
            raise EmbeddingTimeoutError(
                f"Embedding did not complete within {timeout}s",
                timeout=timeout,
                model_name=self.settings.model_name,
            ) from e

    async def aembed(self, text: str, timeout: float = None) -> List[float]:
        return (await self.aembed_batch([text], timeout=timeout))[0]


_generator: Optional[EmbeddingGenerator] = None
_generator_lock = threading.Lock()


def get_embedding_generator() -> EmbeddingGenerator:
    """Process-wide generator configured from the environment"""
    global _generator
    with _generator_lock:
        if _generator is None:
            _generator = EmbeddingGenerator(get_settings().embedding)
        return _generator
