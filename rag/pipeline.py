"""
RAG Pipeline

Ingest: embed every knowledge chunk, upsert them in one batch.
Query: embed the question, retrieve the nearest chunks, answer from them only.
"""

import asyncio
import time
from typing import Any, Dict, Optional, Sequence
import logging

from .config import RAGConfig
from .embeddings import Embedder, create_embedder
from .knowledge_base import KnowledgeChunk, build_chunks
from .response_generator import ResponseGenerator, build_prompt
from .retrieval import RetrieverEngine
from .vector_store import VectorStore, create_vector_store


logger = logging.getLogger(__name__)


FALLBACK_ANSWER = "I don't have enough information to answer that."


class RAGPipeline:
    """Ties the embedder, vector store and generator together."""

    def __init__(self, config: RAGConfig, embedder: Embedder,
                 vector_store: VectorStore, generator: ResponseGenerator):
        self.config = config
        self.embedder = embedder
        self.vector_store = vector_store
        self.generator = generator
        self.retriever = RetrieverEngine(config, embedder, vector_store)

    @classmethod
    def from_config(cls, config: RAGConfig) -> 'RAGPipeline':
        """Build the pipeline with real collaborators after validating config."""
        config.validate()
        vector_store = create_vector_store(config)
        vector_store.verify_compatibility()
        return cls(
            config,
            embedder=create_embedder(config),
            vector_store=vector_store,
            generator=ResponseGenerator(config),
        )

    async def _call(self, awaitable):
        if self.config.request_timeout:
            return await asyncio.wait_for(awaitable, self.config.request_timeout)
        return await awaitable

    async def ingest_knowledge(self, chunks: Optional[Sequence[KnowledgeChunk]] = None) -> int:
        """
        Embed and store the knowledge base.

        Embeddings are requested concurrently; if any of them fails nothing
        is written.

        Returns:
            Number of chunks stored
        """
        chunks = list(chunks) if chunks is not None else build_chunks()
        if not chunks:
            logger.warning("No knowledge chunks to ingest")
            return 0

        start_time = time.time()
        embeddings = await self._call(self.embedder.embed_documents([c.text for c in chunks]))

        await self._call(asyncio.to_thread(
            self.vector_store.upsert,
            [c.id for c in chunks],
            [c.text for c in chunks],
            embeddings,
            [c.metadata for c in chunks],
        ))

        logger.info(
            f"Knowledge ingested successfully: {len(chunks)} chunks "
            f"in {int((time.time() - start_time) * 1000)}ms"
        )
        return len(chunks)

    async def ask_question(self, question: str) -> str:
        """
        Answer a question from the stored knowledge only.

        Returns the fixed fallback answer, without calling the generator,
        when retrieval comes back empty.
        """
        retrieval = await self.retriever.retrieve(question)
        context = retrieval['context']

        if not context:
            logger.info("No context retrieved, returning fallback answer")
            return FALLBACK_ANSWER

        prompt = build_prompt(question, context)
        return await self._call(self.generator.agenerate(prompt))

    def get_stats(self) -> Dict[str, Any]:
        return self.retriever.get_stats()
