"""
Static knowledge base ingested at startup.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List


DEFAULT_SOURCE = "phase1"

DEFAULT_KNOWLEDGE_BASE = (
    "RAG stands for Retrieval Augmented Generation.",
    "Embeddings convert text into numerical vectors.",
    "Vector databases store embeddings for similarity search.",
)


@dataclass(frozen=True)
class KnowledgeChunk:
    """One unit of source text stored for retrieval."""
    id: str
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


def build_chunks(texts: Iterable[str] = DEFAULT_KNOWLEDGE_BASE,
                 source: str = DEFAULT_SOURCE) -> List[KnowledgeChunk]:
    """Wrap raw texts as chunks with ids doc-0, doc-1, ..."""
    return [
        KnowledgeChunk(
            id=f"doc-{i}",
            text=text,
            metadata={"source": source, "chunk": i},
        )
        for i, text in enumerate(texts)
    ]
