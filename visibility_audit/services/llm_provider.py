"""LLM provider abstraction for Claude and Ollama."""
from abc import ABC, abstractmethod
from typing import Optional

import anthropic
import ollama

from ..config import settings
from ..utils.logger import logger


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    def complete(self, prompt: str, system: Optional[str] = None, max_tokens: int = 4096) -> str:
        """Send a single-turn prompt and return the text reply.

        Args:
            prompt: User prompt
            system: Optional system prompt
            max_tokens: Maximum tokens to generate

        Returns:
            Generated text response
        """

    @abstractmethod
    def get_name(self) -> str:
        """Return provider name for logging."""


class ClaudeProvider(LLMProvider):
    """Claude API provider."""

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None):
        self.client = anthropic.Anthropic(api_key=api_key or settings.anthropic_api_key)
        self.model = model or settings.analysis_model

    def complete(self, prompt: str, system: Optional[str] = None, max_tokens: int = 4096) -> str:
        logger.info(f"[LLM] Calling Claude {self.model}...")
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                system=system or "",
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            logger.error(f"[LLM] Claude {self.model} failed: {e}")
            raise

        logger.info(f"[LLM] Claude {self.model} responded")
        return "".join(
            block.text for block in response.content if getattr(block, "text", None)
        )

    def get_name(self) -> str:
        return f"Claude ({self.model})"


class OllamaProvider(LLMProvider):
    """Ollama API provider (local or cloud)."""

    def __init__(self, model: Optional[str] = None, host: Optional[str] = None):
        self.model = model or settings.ollama_model
        self.host = host or settings.ollama_host

        if self.host == "https://ollama.com":
            # Cloud mode requires an API key
            if not settings.ollama_api_key:
                raise ValueError("OLLAMA_API_KEY required for Ollama Cloud")
            self.client = ollama.Client(
                host=self.host,
                headers={"Authorization": f"Bearer {settings.ollama_api_key}"},
            )
            logger.info("[LLM] Initialized Ollama Cloud client")
        else:
            self.client = ollama.Client(host=self.host)
            logger.info(f"[LLM] Initialized Ollama local client at {self.host}")

    def complete(self, prompt: str, system: Optional[str] = None, max_tokens: int = 4096) -> str:
        logger.info(f"[LLM] Calling Ollama {self.model} at {self.host}...")

        messages = [{"role": "user", "content": prompt}]
        if system:
            messages.insert(0, {"role": "system", "content": system})

        try:
            response = self.client.chat(
                model=self.model,
                messages=messages,
                options={"num_predict": max_tokens},
                format="json",
            )
        except Exception as e:
            logger.error(f"[LLM] Ollama {self.model} failed: {e}")
            raise

        logger.info(f"[LLM] Ollama {self.model} responded")
        return response.message.content

    def get_name(self) -> str:
        return f"Ollama ({self.model})"


def get_analysis_provider(provider_type: Optional[str] = None) -> LLMProvider:
    """Get the LLM provider used for page analysis.

    Args:
        provider_type: "claude" or "ollama". Defaults to settings.llm_provider

    Returns:
        LLM provider instance
    """
    if (provider_type or settings.llm_provider) == "ollama":
        return OllamaProvider()
    return ClaudeProvider()
