"""
Retrieval Engine Module

Embeds the question and pulls the nearest knowledge chunks from the vector store.
"""

import asyncio
from typing import Any, Dict, Optional
import logging

from .config import RAGConfig
from .embeddings import Embedder
from .vector_store import VectorStore


logger = logging.getLogger(__name__)


class RetrieverEngine:
    """Main retrieval engine for RAG pipeline."""

    def __init__(self, config: RAGConfig, embedder: Embedder, vector_store: VectorStore):
        self.config = config
        self.embedder = embedder
        self.vector_store = vector_store

    async def _call(self, awaitable):
        if self.config.request_timeout:
            return await asyncio.wait_for(awaitable, self.config.request_timeout)
        return await awaitable

    async def retrieve(self, question: str, k: Optional[int] = None) -> Dict[str, Any]:
        """
        Retrieve relevant context for a question.

        Args:
            question: User question
            k: Number of chunks to retrieve (defaults to config.top_k_results)

        Returns:
            Dictionary with the ordered chunk texts, the newline-joined
            context and retrieval stats
        """
        k = k or self.config.top_k_results

        query_embedding = await self._call(self.embedder.embed_query(question))
        documents = await self._call(
            asyncio.to_thread(self.vector_store.query, query_embedding, k)
        )

        logger.info(f"Found {len(documents)} relevant chunks for question")
        return {
            'context': "\n".join(documents),
            'documents': documents,
            'retrieval_stats': {
                'question': question,
                'requested': k,
                'results_found': len(documents),
            },
        }

    def get_stats(self) -> Dict[str, Any]:
        """Get retrieval engine statistics."""
        return {
            'vector_store_stats': self.vector_store.get_stats(),
            'config': {
                'top_k_results': self.config.top_k_results,
                'document_task_type': self.config.document_task_type,
                'query_task_type': self.config.query_task_type,
            },
        }
