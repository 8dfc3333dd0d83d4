"""
Mock LLM
========

Scripted LLM implementation for testing and demonstration.
"""

import asyncio
from dataclasses import dataclass

from dq_analysis.llm.base import LLMInterface
from dq_analysis.models import GenerationConfig, LLMResponse

EMPTY_ANALYSIS = '{"issues_detected": [], "rule_effectiveness": [], "rule_conflicts": [], "inferred_relationships": [], "hotspot_score": 0}'


@dataclass
class MockCall:
    """One recorded call to the mock."""

    prompt: str
    config: GenerationConfig | None
    route: str | None


class MockLLM(LLMInterface):
    """
    Mock LLM for demonstration and testing purposes.

    In production, replace with ``GeminiLLM``.
    """

    def __init__(
        self,
        responses: dict[str, list[str | Exception]] | None = None,
        default: str | Exception = EMPTY_ANALYSIS,
        delays: dict[str, float] | None = None,
    ) -> None:
        """
        Initialize with canned responses.

        Args:
            responses: Dict mapping prompt substrings to a list of outcomes.
                       Each outcome is a response body or an exception to
                       raise; they are used in sequence and the last one
                       repeats once the list is exhausted.
            default: Outcome for prompts that match no key
            delays: Optional seconds to wait per key before answering
        """
        self.responses = responses or {}
        self.default = default
        self.delays = delays or {}
        self.call_counts: dict[str, int] = {}
        self.calls: list[MockCall] = []

    def _match(self, prompt: str) -> str | None:
        lowered = prompt.lower()
        for key in self.responses:
            if key.lower() in lowered:
                return key
        return None

    async def generate(self, prompt: str, config: GenerationConfig | None = None) -> LLMResponse:
        """
        Return the next scripted outcome for the first key found in the prompt.
        """
        route = self._match(prompt)
        self.calls.append(MockCall(prompt=prompt, config=config, route=route))

        if route is None:
            outcome = self.default
        else:
            count = self.call_counts.get(route, 0)
            self.call_counts[route] = count + 1
            attempts = self.responses[route]
            outcome = attempts[min(count, len(attempts) - 1)]

        delay = self.delays.get(route, 0.0) if route is not None else 0.0
        if delay:
            await asyncio.sleep(delay)

        if isinstance(outcome, Exception):
            raise outcome

        return LLMResponse(text=outcome, model="mock-llm-v1")

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def reset(self) -> None:
        """Reset call history for fresh test runs."""
        self.call_counts = {}
        self.calls = []
