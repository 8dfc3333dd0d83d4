"""
Retrying LLM
============

Bounded exponential backoff around any LLM provider.

Only rate-limit signals (and per-call timeouts, when a deadline is set) are
retried. Every other failure is assumed non-transient and propagates on the
first attempt.
"""

import asyncio
import random
from typing import Awaitable, Callable

from dq_analysis.exceptions import RateLimitError, RemoteTimeoutError
from dq_analysis.llm.base import LLMInterface
from dq_analysis.models import GenerationConfig, LLMResponse
from observability.logging_config import get_logger
from observability.metrics import LLM_RETRIES_TOTAL

logger = get_logger(__name__)

RATE_LIMIT_MARKERS = ("429", "RESOURCE_EXHAUSTED")


def is_rate_limit_error(error: BaseException) -> bool:
    """Check whether an error signals rate limiting or quota exhaustion."""
    if isinstance(error, RateLimitError):
        return True
    message = str(error)
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def is_retryable_error(error: BaseException) -> bool:
    """Check whether an error is worth another attempt."""
    return is_rate_limit_error(error) or isinstance(error, RemoteTimeoutError)


class RetryingLLM(LLMInterface):
    """
    LLM wrapper that retries rate-limited calls with exponential backoff.

    The wait before retry ``n`` is ``base_delay * 2**(n-1)`` plus up to
    ``max_jitter`` seconds of random jitter. No wait follows the final attempt;
    its error is re-raised as-is.
    """

    def __init__(
        self,
        llm: LLMInterface,
        max_attempts: int = 3,
        base_delay: float = 4.0,
        max_jitter: float = 1.0,
        timeout: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize the wrapper.

        Args:
            llm: Provider to call
            max_attempts: Total attempts, the first call included
            base_delay: Seconds to wait before the first retry
            max_jitter: Upper bound of the random jitter added to each wait
            timeout: Per-attempt deadline in seconds (None disables)
            sleep: Coroutine used for backoff waits
            rng: Random source for jitter
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.llm = llm
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_jitter = max_jitter
        self.timeout = timeout
        self.sleep = sleep
        self.rng = rng or random.Random()

    async def _attempt(self, prompt: str, config: GenerationConfig | None) -> LLMResponse:
        if self.timeout is None:
            return await self.llm.generate(prompt, config)
        try:
            return await asyncio.wait_for(self.llm.generate(prompt, config), self.timeout)
        except asyncio.TimeoutError as e:
            raise RemoteTimeoutError(
                f"Remote model did not respond within {self.timeout:g}s"
            ) from e

    async def generate(self, prompt: str, config: GenerationConfig | None = None) -> LLMResponse:
        delay = self.base_delay
        last_error: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self._attempt(prompt, config)
            except Exception as e:
                if not is_retryable_error(e):
                    raise
                last_error = e

            if attempt == self.max_attempts:
                break

            reason = "timeout" if isinstance(last_error, RemoteTimeoutError) else "rate_limit"
            wait = delay + self.rng.uniform(0, self.max_jitter)
            logger.warning(
                "llm_call_retrying",
                reason=reason,
                attempt=attempt,
                max_attempts=self.max_attempts,
                wait_seconds=round(wait, 2),
                error=str(last_error),
            )
            LLM_RETRIES_TOTAL.labels(reason=reason).inc()
            await self.sleep(wait)
            delay *= 2

        logger.error(
            "llm_call_retries_exhausted",
            max_attempts=self.max_attempts,
            error=str(last_error),
        )
        raise last_error
