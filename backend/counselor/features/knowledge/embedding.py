"""
Knowledge feature: Embedding utility functions.
Wraps the provider's embedding model for use across the app.
"""

import logging
import math

from langchain_core.embeddings import Embeddings

from counselor.core.llm_provider import create_embeddings

logger = logging.getLogger(__name__)

# Singleton embedding model (lazy init)
_embeddings_model: Embeddings | None = None


class HashEmbeddings(Embeddings):
    """Deterministic character-hash embedding for running without an API key.

    Each character code (scaled to 0..1) is added to slot `i % dimensions`,
    then the vector is L2-normalized. Not semantically meaningful, but stable,
    so identical texts always score 1.0 against each other.
    """

    def __init__(self, dimensions: int = 384):
        self.dimensions = dimensions

    def _hash(self, text: str) -> list[float]:
        vector = [0.0] * self.dimensions
        for i, char in enumerate(text or ""):
            vector[i % self.dimensions] += ord(char) / 255
        magnitude = math.sqrt(sum(v * v for v in vector))
        if magnitude == 0:
            return vector
        return [v / magnitude for v in vector]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._hash(str(t)) for t in texts if t is not None]

    def embed_query(self, text: str) -> list[float]:
        return self._hash(str(text) if text else "")


def get_embeddings_model() -> Embeddings:
    """Get or create the shared embeddings model instance."""
    global _embeddings_model
    if _embeddings_model is None:
        _embeddings_model = create_embeddings()
    return _embeddings_model
