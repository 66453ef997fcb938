"""
RAG (Retrieval-Augmented Generation) demo

Text extraction and normalization for common document formats, plus a
small grounded question-answering pipeline over a static knowledge base.
"""

__version__ = "0.2.0"

# Import main components for easy access
from .config import RAGConfig
from .document_processor import DocumentProcessor, ExtractionError, ExtractionResult
from .knowledge_base import KnowledgeChunk, build_chunks
from .normalizer import detect_format, get_normalizer, normalize_text
from .pipeline import FALLBACK_ANSWER, RAGPipeline

__all__ = [
    "RAGConfig",
    "DocumentProcessor",
    "ExtractionError",
    "ExtractionResult",
    "KnowledgeChunk",
    "build_chunks",
    "detect_format",
    "get_normalizer",
    "normalize_text",
    "FALLBACK_ANSWER",
    "RAGPipeline",
]
