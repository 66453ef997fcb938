import asyncio
from types import SimpleNamespace

import pytest

from rag.config import RAGConfig
from rag.response_generator import ResponseGenerator, build_prompt


class FakeGeminiModel:
    def __init__(self, text):
        self.text = text
        self.prompts = []

    def generate_content(self, prompt):
        self.prompts.append(prompt)
        return SimpleNamespace(text=self.text)


class FakeOpenAIClient:
    def __init__(self, content):
        self.requests = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))
        self._content = content

    def _create(self, **kwargs):
        self.requests.append(kwargs)
        message = SimpleNamespace(content=self._content)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=message)],
            usage=SimpleNamespace(total_tokens=12),
        )


def test_build_prompt_layout():
    prompt = build_prompt("What is RAG?", "line one\nline two")

    assert prompt.startswith("\nYou are a strict AI assistant.\n")
    assert "Answer ONLY using the context below." in prompt
    assert 'If the answer is not in the context, say "I don\'t know".' in prompt
    assert "Context:\nline one\nline two\n\nQuestion:\nWhat is RAG?\n" in prompt


def test_gemini_text_returned_verbatim():
    model = FakeGeminiModel("  RAG stands for Retrieval Augmented Generation.  ")
    generator = ResponseGenerator(RAGConfig(), client=model)

    answer = asyncio.run(generator.agenerate("prompt text"))

    assert answer == "  RAG stands for Retrieval Augmented Generation.  "
    assert model.prompts == ["prompt text"]


def test_openai_request_shape():
    client = FakeOpenAIClient("I don't know")
    cfg = RAGConfig(llm_provider="openai", default_model="gpt-4o-mini", max_tokens=200, temperature=0.0)
    generator = ResponseGenerator(cfg, client=client)

    assert generator.generate("prompt text") == "I don't know"
    request = client.requests[0]
    assert request["model"] == "gpt-4o-mini"
    assert request["messages"] == [{"role": "user", "content": "prompt text"}]
    assert request["max_tokens"] == 200


def test_generation_errors_propagate():
    class BrokenModel:
        def generate_content(self, prompt):
            raise ConnectionError("quota exceeded")

    generator = ResponseGenerator(RAGConfig(), client=BrokenModel())
    with pytest.raises(ConnectionError, match="quota exceeded"):
        generator.generate("prompt")


def test_missing_keys_are_rejected():
    with pytest.raises(ValueError, match="GEMINI_API_KEY"):
        ResponseGenerator(RAGConfig(gemini_api_key=None))
    with pytest.raises(ValueError, match="OPENAI_API_KEY"):
        ResponseGenerator(RAGConfig(llm_provider="openai", openai_api_key=None))
