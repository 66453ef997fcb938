"""
Embedding Module

Turns text into fixed-length vectors. Gemini is the default backend;
a local sentence-transformers model can be used instead.
"""

import asyncio
from typing import List, Optional, Sequence
import logging

from .config import RAGConfig


logger = logging.getLogger(__name__)


class Embedder:
    """Base class: subclasses implement the blocking embed() call."""

    def __init__(self, config: RAGConfig):
        self.config = config

    def embed(self, text: str, task_type: Optional[str] = None) -> List[float]:
        raise NotImplementedError

    def _check_dimension(self, vector: Sequence[float]) -> List[float]:
        if len(vector) != self.config.embedding_dimension:
            raise ValueError(
                f"Embedding dimension mismatch: got {len(vector)}, "
                f"expected {self.config.embedding_dimension}"
            )
        return [float(x) for x in vector]

    async def embed_documents(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed documents concurrently; fails as a whole if any call fails."""
        if not texts:
            return []
        task_type = self.config.document_task_type
        return list(await asyncio.gather(
            *(asyncio.to_thread(self.embed, text, task_type) for text in texts)
        ))

    async def embed_query(self, text: str) -> List[float]:
        return await asyncio.to_thread(self.embed, text, self.config.query_task_type)


class GeminiEmbedder(Embedder):
    """Gemini embedding endpoint via google-generativeai."""

    def __init__(self, config: RAGConfig):
        super().__init__(config)
        if not config.gemini_api_key:
            raise ValueError("GEMINI_API_KEY is required for Gemini embeddings")

        import google.generativeai as genai

        genai.configure(api_key=config.gemini_api_key)
        self._genai = genai
        logger.info(f"Gemini embedder ready: {config.embedding_model} ({config.embedding_dimension} dims)")

    def embed(self, text: str, task_type: Optional[str] = None) -> List[float]:
        response = self._genai.embed_content(
            model=self.config.embedding_model,
            content=text,
            task_type=task_type,
            output_dimensionality=self.config.embedding_dimension,
        )
        if isinstance(response, dict):
            embedding = response.get("embedding")
        else:
            embedding = getattr(response, "embedding", None)
        if not isinstance(embedding, (list, tuple)):
            raise RuntimeError("Gemini embedding response missing 'embedding'")
        return self._check_dimension(embedding)


class LocalEmbedder(Embedder):
    """sentence-transformers model running in-process. Task types are ignored."""

    def __init__(self, config: RAGConfig):
        super().__init__(config)
        self.model = None

    def _load_embedding_model(self) -> None:
        """Load the sentence transformer model lazily to reduce startup memory."""
        if self.model is None:
            try:
                # Lazy import to avoid heavy torch load at module import time
                from sentence_transformers import SentenceTransformer  # type: ignore
            except ImportError as e:
                raise RuntimeError(
                    "Local embeddings require sentence-transformers. "
                    "Install with: pip install '.[local-embeddings]'"
                ) from e
            logger.info(f"Loading embedding model: {self.config.embedding_model}")
            self.model = SentenceTransformer(self.config.embedding_model, device=self.config.device)
            logger.info("Embedding model loaded successfully")

    def embed(self, text: str, task_type: Optional[str] = None) -> List[float]:
        self._load_embedding_model()
        vector = self.model.encode(text, convert_to_numpy=True, normalize_embeddings=True)
        return self._check_dimension(vector.tolist())


def create_embedder(config: RAGConfig) -> Embedder:
    if config.embedding_provider == "local":
        return LocalEmbedder(config)
    return GeminiEmbedder(config)
