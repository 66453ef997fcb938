"""
RAG Configuration Management

Centralized configuration for the extractors and the RAG query path.
Loads from environment variables with sensible defaults.
"""

import os
from typing import Optional
from dataclasses import dataclass


# Embedding task types that belong together. Documents and questions must be
# embedded in compatible modes or similarity scores silently degrade.
EMBEDDING_TASK_PAIRS = {
    ("retrieval_document", "retrieval_query"),
    ("semantic_similarity", "semantic_similarity"),
    ("classification", "classification"),
    ("clustering", "clustering"),
}

SUPPORTED_DISTANCES = ("cosine", "l2")

# Defaults used when EMBEDDING_PROVIDER=local
LOCAL_EMBEDDING_MODEL = "all-MiniLM-L6-v2"
LOCAL_EMBEDDING_DIMENSION = 384


@dataclass
class RAGConfig:
    """Configuration class for RAG pipeline settings."""

    # Document Extraction
    input_folder: str = './inputs'
    output_folder: str = './outputs'
    ocr_language: str = "eng"

    # Embedding Model
    embedding_provider: str = "gemini"  # options: gemini, local
    embedding_model: str = "models/gemini-embedding-001"
    embedding_dimension: int = 768
    document_task_type: str = "retrieval_document"
    query_task_type: str = "retrieval_query"
    device: str = "cpu"

    # Vector Database
    vector_backend: str = "chroma"  # options: chroma, faiss
    chroma_url: str = "http://localhost:8000"
    collection_name: str = "phase1-knowledge"
    distance_metric: str = "cosine"
    vector_db_path: str = "./vector_store"
    top_k_results: int = 2

    # LLM Configuration
    llm_provider: str = "gemini"  # options: gemini, openai
    default_model: str = "gemini-2.5-flash"
    gemini_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    max_tokens: int = 1000
    temperature: float = 0.1

    # Collaborator calls
    request_timeout: float = 60.0  # seconds, 0 disables

    @classmethod
    def from_env(cls) -> 'RAGConfig':
        """Create configuration from environment variables."""
        embedding_provider = os.getenv('EMBEDDING_PROVIDER', cls.embedding_provider)
        if embedding_provider == "local":
            model_default, dimension_default = LOCAL_EMBEDDING_MODEL, LOCAL_EMBEDDING_DIMENSION
        else:
            model_default, dimension_default = cls.embedding_model, cls.embedding_dimension

        return cls(
            # Document Extraction
            input_folder=os.getenv('INPUT_FOLDER', cls.input_folder),
            output_folder=os.getenv('OUTPUT_FOLDER', cls.output_folder),
            ocr_language=os.getenv('OCR_LANGUAGE', cls.ocr_language),

            # Embedding Model
            embedding_provider=embedding_provider,
            embedding_model=os.getenv('EMBEDDING_MODEL', model_default),
            embedding_dimension=int(os.getenv('EMBEDDING_DIMENSION', dimension_default)),
            document_task_type=os.getenv('DOCUMENT_TASK_TYPE', cls.document_task_type),
            query_task_type=os.getenv('QUERY_TASK_TYPE', cls.query_task_type),
            device=os.getenv('DEVICE', cls.device),

            # Vector Database
            vector_backend=os.getenv('VECTOR_BACKEND', cls.vector_backend),
            chroma_url=os.getenv('CHROMA_URL', cls.chroma_url),
            collection_name=os.getenv('COLLECTION_NAME', cls.collection_name),
            distance_metric=os.getenv('DISTANCE_METRIC', cls.distance_metric),
            vector_db_path=os.getenv('VECTOR_DB_PATH', cls.vector_db_path),
            top_k_results=int(os.getenv('TOP_K_RESULTS', cls.top_k_results)),

            # LLM Configuration
            llm_provider=os.getenv('LLM_PROVIDER', cls.llm_provider),
            default_model=os.getenv('DEFAULT_MODEL', cls.default_model),
            gemini_api_key=os.getenv('GEMINI_API_KEY'),
            openai_api_key=os.getenv('OPENAI_API_KEY'),
            max_tokens=int(os.getenv('MAX_TOKENS', cls.max_tokens)),
            temperature=float(os.getenv('TEMPERATURE', cls.temperature)),

            request_timeout=float(os.getenv('REQUEST_TIMEOUT', cls.request_timeout)),
        )

    def validate(self) -> None:
        """Validate configuration settings."""
        if self.embedding_dimension <= 0:
            raise ValueError("embedding_dimension must be positive")
        if self.top_k_results <= 0:
            raise ValueError("top_k_results must be positive")
        if self.request_timeout < 0:
            raise ValueError("request_timeout cannot be negative")
        if self.distance_metric not in SUPPORTED_DISTANCES:
            raise ValueError(
                f"distance_metric must be one of: {', '.join(SUPPORTED_DISTANCES)}"
            )
        if self.embedding_provider not in ("gemini", "local"):
            raise ValueError("embedding_provider must be 'gemini' or 'local'")
        if self.embedding_provider == "local" and self.embedding_model.startswith("models/"):
            raise ValueError(
                f"embedding_model {self.embedding_model!r} is a Gemini model; "
                f"set EMBEDDING_MODEL to a sentence-transformers model for local embeddings"
            )
        if self.vector_backend not in ("chroma", "faiss"):
            raise ValueError("vector_backend must be 'chroma' or 'faiss'")
        if self.llm_provider not in ("gemini", "openai"):
            raise ValueError("llm_provider must be 'gemini' or 'openai'")

        pair = (self.document_task_type.lower(), self.query_task_type.lower())
        if pair not in EMBEDDING_TASK_PAIRS:
            raise ValueError(
                f"Embedding task types {pair[0]!r} (documents) and {pair[1]!r} (queries) "
                f"are not a compatible pair"
            )
