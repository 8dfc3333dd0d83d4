"""
Base LLM Interface
==================

Abstract interface for remote model providers.
"""

from abc import ABC, abstractmethod

from dq_analysis.models import GenerationConfig, LLMResponse


class LLMInterface(ABC):
    """Abstract interface for LLM providers."""

    @abstractmethod
    async def generate(self, prompt: str, config: GenerationConfig | None = None) -> LLMResponse:
        """
        Generate a response from the LLM.

        Args:
            prompt: The full prompt text
            config: Generation settings (temperature, seed, response schema)

        Returns:
            LLMResponse whose ``text`` is the raw response body

        Raises:
            RemoteError: On any transport or model failure
        """
        pass
