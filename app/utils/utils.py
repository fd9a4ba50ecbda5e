import os
from typing import List, Union

import numpy as np
import requests
from dotenv import load_dotenv

from app.utils.exceptions import ExternalServiceError, retry_with_logging
from app.utils.logging_config import get_logger

load_dotenv()

logger = get_logger(__name__)

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()

# Embeddings
EMBEDDING_BACKEND = os.getenv("EMBEDDING_BACKEND", "sentence-transformers")
EMBED_MODEL = os.getenv("EMBED_MODEL", "sentence-transformers/all-MiniLM-L6-v2")
OLLAMA = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
EMBEDDING_TIMEOUT = float(os.getenv("EMBEDDING_TIMEOUT", "30"))
PRELOAD_EMBEDDING_MODEL = os.getenv("PRELOAD_EMBEDDING_MODEL", "false").lower() == "true"

# Matching
WEIGHT_SEMANTIC = float(os.getenv("WEIGHT_SEMANTIC", "0.4"))
WEIGHT_SKILLS = float(os.getenv("WEIGHT_SKILLS", "0.3"))
WEIGHT_EXPERIENCE = float(os.getenv("WEIGHT_EXPERIENCE", "0.2"))
WEIGHT_EDUCATION = float(os.getenv("WEIGHT_EDUCATION", "0.1"))
RANKING_MAX_WORKERS = int(os.getenv("RANKING_MAX_WORKERS", "4"))
CANDIDATE_LIMIT = int(os.getenv("CANDIDATE_LIMIT", "10"))

# Uploads
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))


@retry_with_logging(max_attempts=3, backoff_factor=0.5, exceptions=(requests.ConnectionError,), logger=logger)
def ollama_embed(texts: Union[str, List[str]], model: str = None, base_url: str = None, timeout: float = None):
    """Embed one text or a batch through an Ollama server.

    Returns a float32 vector for a single string, a (N, D) matrix for a list.
    """
    model = model or EMBED_MODEL
    url = f"{base_url or OLLAMA}/api/embed"
    try:
        resp = requests.post(url, json={"model": model, "input": texts}, timeout=timeout or EMBEDDING_TIMEOUT)
        resp.raise_for_status()
    except requests.HTTPError as e:
        raise ExternalServiceError(
            f"Ollama embedding request failed: {e}",
            service_name="ollama",
            status_code=e.response.status_code if e.response is not None else None,
            cause=e,
        ) from e
    data = resp.json()
    vectors = np.array(data.get("embeddings", []), dtype=np.float32)
    if isinstance(texts, str):
        return vectors[0]
    return vectors
