"""
Response Generator Module

Builds the grounded prompt and sends it to the text-generation API.
"""

import asyncio
import logging

from .config import RAGConfig


logger = logging.getLogger(__name__)


PROMPT_TEMPLATE = """
You are a strict AI assistant.
Answer ONLY using the context below.
If the answer is not in the context, say "I don't know".

Context:
{context}

Question:
{question}
"""


def build_prompt(question: str, context: str) -> str:
    """Create the grounded prompt from retrieved context and the question."""
    return PROMPT_TEMPLATE.format(context=context, question=question)


class ResponseGenerator:
    """Generates answers with Gemini (default) or OpenAI."""

    def __init__(self, config: RAGConfig, client=None):
        self.config = config
        self.client = client
        self.gemini_model = None
        self.provider = (self.config.llm_provider or "gemini").lower()
        if client is None:
            if self.provider == "openai":
                self._setup_openai()
            else:
                self._setup_gemini()

    def _setup_openai(self) -> None:
        """Initialize OpenAI client."""
        if not self.config.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required when LLM_PROVIDER=openai")

        import openai

        self.client = openai.OpenAI(api_key=self.config.openai_api_key)
        logger.info("OpenAI client initialized successfully")

    def _setup_gemini(self) -> None:
        """Initialize Gemini client."""
        if not self.config.gemini_api_key:
            raise ValueError("GEMINI_API_KEY is required when LLM_PROVIDER=gemini")

        import google.generativeai as genai

        genai.configure(api_key=self.config.gemini_api_key)
        self.gemini_model = genai.GenerativeModel(self.config.default_model)
        logger.info(f"Gemini client initialized successfully ({self.config.default_model})")

    def generate(self, prompt: str) -> str:
        """Send the prompt and return the generated text verbatim."""
        if self.provider == "openai":
            return self._generate_openai(prompt)
        return self._generate_gemini(prompt)

    async def agenerate(self, prompt: str) -> str:
        return await asyncio.to_thread(self.generate, prompt)

    def _generate_gemini(self, prompt: str) -> str:
        model = self.gemini_model or self.client
        resp = model.generate_content(prompt)
        return resp.text

    def _generate_openai(self, prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.config.default_model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        logger.debug(f"OpenAI tokens used: {getattr(response.usage, 'total_tokens', 0)}")
        return response.choices[0].message.content
