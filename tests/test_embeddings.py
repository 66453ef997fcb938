import asyncio

import pytest

from rag.config import RAGConfig
from rag.embeddings import GeminiEmbedder, LocalEmbedder, create_embedder


@pytest.fixture
def genai(monkeypatch):
    module = pytest.importorskip("google.generativeai")
    calls = []

    def fake_embed_content(**kwargs):
        calls.append(kwargs)
        return {"embedding": [0.5] * kwargs["output_dimensionality"]}

    monkeypatch.setattr(module, "configure", lambda **kwargs: None)
    monkeypatch.setattr(module, "embed_content", fake_embed_content)
    monkeypatch.setattr(module, "calls", calls, raising=False)
    return module


def test_gemini_requires_api_key():
    with pytest.raises(ValueError, match="GEMINI_API_KEY"):
        GeminiEmbedder(RAGConfig(gemini_api_key=None))


def test_gemini_passes_task_type_and_dimension(genai):
    embedder = GeminiEmbedder(RAGConfig(gemini_api_key="test-key"))

    vector = asyncio.run(embedder.embed_query("What is RAG?"))

    assert len(vector) == 768
    call = genai.calls[-1]
    assert call["model"] == "models/gemini-embedding-001"
    assert call["content"] == "What is RAG?"
    assert call["task_type"] == "retrieval_query"
    assert call["output_dimensionality"] == 768


def test_gemini_documents_use_document_task_type(genai):
    embedder = GeminiEmbedder(RAGConfig(gemini_api_key="test-key", embedding_dimension=16))

    vectors = asyncio.run(embedder.embed_documents(["one", "two", "three"]))

    assert len(vectors) == 3
    assert {call["task_type"] for call in genai.calls} == {"retrieval_document"}
    assert sorted(call["content"] for call in genai.calls) == ["one", "three", "two"]


def test_dimension_mismatch_is_an_error(genai, monkeypatch):
    monkeypatch.setattr(genai, "embed_content", lambda **kwargs: {"embedding": [0.1, 0.2]})
    embedder = GeminiEmbedder(RAGConfig(gemini_api_key="test-key"))

    with pytest.raises(ValueError, match="dimension mismatch"):
        embedder.embed("hello", "retrieval_query")


def test_missing_embedding_in_response(genai, monkeypatch):
    monkeypatch.setattr(genai, "embed_content", lambda **kwargs: {})
    embedder = GeminiEmbedder(RAGConfig(gemini_api_key="test-key"))

    with pytest.raises(RuntimeError, match="missing 'embedding'"):
        embedder.embed("hello", "retrieval_query")


def test_embed_documents_empty():
    embedder = LocalEmbedder(RAGConfig(embedding_provider="local"))
    assert asyncio.run(embedder.embed_documents([])) == []
    assert embedder.model is None


def test_create_embedder_local():
    assert isinstance(create_embedder(RAGConfig(embedding_provider="local")), LocalEmbedder)
