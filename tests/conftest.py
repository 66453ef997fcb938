import asyncio
import os
import re
import sys
import threading

import numpy as np
import pytest

# Ensure test mode
os.environ.setdefault("DEBUG", "false")

# Guarantee the project root (parent of tests) is on sys.path so `import app` works
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from rag.config import RAGConfig  # noqa: E402
from rag.embeddings import Embedder  # noqa: E402
from rag.pipeline import RAGPipeline  # noqa: E402
from rag.response_generator import ResponseGenerator  # noqa: E402
from rag.vector_store import VectorStore  # noqa: E402


class FakeEmbedder(Embedder):
    """Bag-of-words vectors; every new word gets the next free dimension."""

    def __init__(self, config):
        super().__init__(config)
        self.vocab = {}
        self.calls = []
        self._lock = threading.Lock()

    def embed(self, text, task_type=None):
        with self._lock:
            self.calls.append((text, task_type))
            vector = [0.0] * self.config.embedding_dimension
            for word in re.findall(r"[a-z]+", text.lower()):
                if word not in self.vocab:
                    self.vocab[word] = len(self.vocab) % self.config.embedding_dimension
                vector[self.vocab[word]] += 1.0
        return self._check_dimension(vector)


class FailingEmbedder(FakeEmbedder):
    """Fails for any text containing the trigger word."""

    def __init__(self, config, trigger):
        super().__init__(config)
        self.trigger = trigger

    def embed(self, text, task_type=None):
        if self.trigger in text:
            raise RuntimeError("embedding service unavailable")
        return super().embed(text, task_type)


class InMemoryVectorStore(VectorStore):
    """Cosine-similarity store kept in a dict."""

    def __init__(self, config):
        super().__init__(config)
        self.records = {}
        self.upsert_calls = []

    def _stored_metadata(self):
        return self._collection_metadata()

    def upsert(self, ids, documents, embeddings, metadatas):
        self.upsert_calls.append(list(ids))
        for chunk_id, document, embedding, metadata in zip(ids, documents, embeddings, metadatas):
            self.records[chunk_id] = (document, np.asarray(embedding, dtype=float), metadata)

    def query(self, embedding, n_results):
        query = np.asarray(embedding, dtype=float)
        scored = []
        for document, vector, _ in self.records.values():
            denom = np.linalg.norm(vector) * np.linalg.norm(query)
            scored.append((float(vector @ query / denom) if denom else 0.0, document))
        scored.sort(key=lambda item: item[0], reverse=True)
        return [document for _, document in scored[:n_results]]

    def count(self):
        return len(self.records)

    def clear(self):
        self.records = {}


class FakeGenerator(ResponseGenerator):
    """Answers with the first context line; records every prompt."""

    def __init__(self, config):
        super().__init__(config, client=object())
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        context = prompt.split("Context:\n", 1)[1].split("\n\nQuestion:", 1)[0]
        return f"According to the context: {context.splitlines()[0]}"


@pytest.fixture
def config(tmp_path):
    return RAGConfig(
        embedding_dimension=32,
        vector_db_path=str(tmp_path / "vector_store"),
        input_folder=str(tmp_path / "inputs"),
        output_folder=str(tmp_path / "outputs"),
        request_timeout=5.0,
    )


@pytest.fixture
def embedder(config):
    return FakeEmbedder(config)


@pytest.fixture
def vector_store(config):
    return InMemoryVectorStore(config)


@pytest.fixture
def generator(config):
    return FakeGenerator(config)


@pytest.fixture
def pipeline(config, embedder, vector_store, generator):
    return RAGPipeline(config, embedder=embedder, vector_store=vector_store, generator=generator)


@pytest.fixture
def ingested_pipeline(pipeline):
    asyncio.run(pipeline.ingest_knowledge())
    return pipeline


@pytest.fixture
def client(ingested_pipeline, monkeypatch):
    monkeypatch.delenv("API_KEY", raising=False)
    from app import create_app

    flask_app = create_app(ingested_pipeline)
    flask_app.config["TESTING"] = True
    with flask_app.test_client() as c:
        yield c
