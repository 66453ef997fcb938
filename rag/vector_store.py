"""
Vector Store Module

Stores knowledge-chunk embeddings and answers nearest-neighbour queries.
Chroma (over HTTP) is the default backend; a FAISS index persisted to
disk can be used when no Chroma server is around.
"""

import os
import json
import pickle
from typing import List, Dict, Any, Optional, Sequence
from urllib.parse import urlparse
import logging

import numpy as np

from .config import RAGConfig


logger = logging.getLogger(__name__)


class VectorStore:
    """Interface shared by the vector store backends."""

    def __init__(self, config: RAGConfig):
        self.config = config

    def _collection_metadata(self) -> Dict[str, Any]:
        return {
            "description": "Phase 1 RAG knowledge base",
            "embedding_model": self.config.embedding_model,
            "dimension": self.config.embedding_dimension,
            "distance": self.config.distance_metric,
        }

    def _stored_metadata(self) -> Dict[str, Any]:
        raise NotImplementedError

    def verify_compatibility(self) -> None:
        """
        Check that the stored collection was built with the same embedding
        model, dimension and distance metric as the current configuration.

        Raises:
            ValueError: On any mismatch
        """
        stored = self._stored_metadata() or {}
        expected = self._collection_metadata()
        for key in ("embedding_model", "dimension", "distance"):
            if key in stored and stored[key] != expected[key]:
                raise ValueError(
                    f"Vector store '{self.config.collection_name}' was built with "
                    f"{key}={stored[key]!r}, but configuration says {expected[key]!r}"
                )

    def upsert(self, ids: Sequence[str], documents: Sequence[str],
               embeddings: Sequence[Sequence[float]], metadatas: Sequence[Dict[str, Any]]) -> None:
        raise NotImplementedError

    def query(self, embedding: Sequence[float], n_results: int) -> List[str]:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def get_stats(self) -> Dict[str, Any]:
        """Get vector store statistics."""
        return {
            'backend': self.config.vector_backend,
            'collection': self.config.collection_name,
            'total_vectors': self.count(),
            'embedding_dimension': self.config.embedding_dimension,
            'model_name': self.config.embedding_model,
            'distance': self.config.distance_metric,
        }


class ChromaVectorStore(VectorStore):
    """Chroma collection accessed through the HTTP client."""

    def __init__(self, config: RAGConfig, client=None):
        super().__init__(config)
        if client is None:
            import chromadb

            url = urlparse(config.chroma_url)
            client = chromadb.HttpClient(
                host=url.hostname or "localhost",
                port=url.port or (443 if url.scheme == "https" else 8000),
                ssl=url.scheme == "https",
            )
            logger.info(f"Connecting to Chroma at {config.chroma_url}")
        self.client = client
        self.collection = self._get_collection()

    def _get_collection(self):
        metadata = self._collection_metadata()
        metadata["hnsw:space"] = "cosine" if self.config.distance_metric == "cosine" else "l2"
        return self.client.get_or_create_collection(
            name=self.config.collection_name,
            metadata=metadata,
        )

    def _stored_metadata(self) -> Dict[str, Any]:
        return self.collection.metadata or {}

    def upsert(self, ids, documents, embeddings, metadatas) -> None:
        self.collection.upsert(
            ids=list(ids),
            documents=list(documents),
            embeddings=[list(e) for e in embeddings],
            metadatas=list(metadatas),
        )
        logger.info(f"Upserted {len(ids)} chunks into '{self.config.collection_name}'")

    def query(self, embedding, n_results: int) -> List[str]:
        total = self.collection.count()
        if total == 0:
            logger.warning("Vector store is empty")
            return []
        results = self.collection.query(
            query_embeddings=[list(embedding)],
            n_results=min(n_results, total),
        )
        documents = results.get("documents") or [[]]
        return [doc for doc in documents[0] if doc]

    def count(self) -> int:
        return self.collection.count()

    def clear(self) -> None:
        self.client.delete_collection(self.config.collection_name)
        self.collection = self._get_collection()
        logger.info(f"Cleared collection '{self.config.collection_name}'")


class FaissVectorStore(VectorStore):
    """FAISS-based vector store persisted under vector_db_path."""

    def __init__(self, config: RAGConfig):
        super().__init__(config)
        self.index = None
        self.document_map = {}  # Maps vector index to {id, document, metadata}
        self.stored_metadata = {}
        os.makedirs(self.config.vector_db_path, exist_ok=True)
        self._load_or_create_index()

    def _paths(self):
        base = os.path.join(self.config.vector_db_path, self.config.collection_name)
        return f"{base}.faiss", f"{base}.pkl", f"{base}.json"

    def _new_index(self):
        import faiss

        if self.config.distance_metric == "cosine":
            return faiss.IndexFlatIP(self.config.embedding_dimension)  # on normalized vectors
        return faiss.IndexFlatL2(self.config.embedding_dimension)

    def _load_or_create_index(self) -> None:
        """Load existing FAISS index or create a new one."""
        import faiss

        index_path, mapping_path, meta_path = self._paths()

        if os.path.exists(index_path) and os.path.exists(mapping_path):
            self.index = faiss.read_index(index_path)
            with open(mapping_path, 'rb') as f:
                self.document_map = pickle.load(f)
            if os.path.exists(meta_path):
                with open(meta_path, 'r', encoding='utf-8') as f:
                    self.stored_metadata = json.load(f)
            logger.info(f"Loaded existing index with {self.index.ntotal} vectors")
            return

        self.index = self._new_index()
        self.document_map = {}
        self.stored_metadata = self._collection_metadata()
        logger.info("Created new FAISS index")

    def _save_index(self) -> None:
        """Save FAISS index, document mapping and collection metadata to disk."""
        import faiss

        index_path, mapping_path, meta_path = self._paths()
        faiss.write_index(self.index, index_path)
        with open(mapping_path, 'wb') as f:
            pickle.dump(self.document_map, f)
        with open(meta_path, 'w', encoding='utf-8') as f:
            json.dump(self.stored_metadata, f, indent=2)
        logger.debug("Saved vector index")

    def _stored_metadata(self) -> Dict[str, Any]:
        return self.stored_metadata

    def _prepare(self, vectors) -> np.ndarray:
        import faiss

        array = np.asarray(vectors, dtype=np.float32)
        if array.ndim == 1:
            array = array.reshape(1, -1)
        if array.shape[1] != self.config.embedding_dimension:
            raise ValueError(
                f"Embedding dimension mismatch: got {array.shape[1]}, "
                f"expected {self.config.embedding_dimension}"
            )
        if self.config.distance_metric == "cosine":
            faiss.normalize_L2(array)
        return array

    def _remove_ids(self, ids: set) -> None:
        """FAISS flat indexes have no cheap delete, so rebuild without the given ids."""
        keep = [idx for idx in sorted(self.document_map) if self.document_map[idx]['id'] not in ids]
        if len(keep) == len(self.document_map):
            return

        vectors = [self.index.reconstruct(int(idx)) for idx in keep]
        self.index = self._new_index()
        if vectors:
            self.index.add(np.vstack(vectors).astype(np.float32))
        self.document_map = {new_idx: self.document_map[old_idx] for new_idx, old_idx in enumerate(keep)}

    def upsert(self, ids, documents, embeddings, metadatas) -> None:
        if not ids:
            logger.warning("No chunks provided to upsert")
            return

        vectors = self._prepare(embeddings)
        self._remove_ids(set(ids))

        start_index = self.index.ntotal
        self.index.add(vectors)
        for i, (chunk_id, document, metadata) in enumerate(zip(ids, documents, metadatas)):
            self.document_map[start_index + i] = {
                'id': chunk_id,
                'document': document,
                'metadata': dict(metadata or {}),
            }

        self._save_index()
        logger.info(f"Upserted {len(ids)} chunks. Total vectors: {self.index.ntotal}")

    def query(self, embedding, n_results: int) -> List[str]:
        if self.index.ntotal == 0:
            logger.warning("Vector store is empty")
            return []

        _, indices = self.index.search(self._prepare(embedding), min(n_results, self.index.ntotal))
        documents = []
        for idx in indices[0]:
            if idx == -1:  # FAISS returns -1 for invalid indices
                continue
            documents.append(self.document_map[int(idx)]['document'])
        return documents

    def count(self) -> int:
        return self.index.ntotal if self.index else 0

    def clear(self) -> None:
        """Clear all vectors from the store."""
        self.index = self._new_index()
        self.document_map = {}
        self.stored_metadata = self._collection_metadata()
        self._save_index()
        logger.info("Cleared all vectors from store")


def create_vector_store(config: RAGConfig) -> VectorStore:
    if config.vector_backend == "faiss":
        return FaissVectorStore(config)
    return ChromaVectorStore(config)
