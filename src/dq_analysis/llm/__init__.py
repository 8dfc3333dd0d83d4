"""
LLM Module
==========

Pluggable remote model clients for table analysis.
"""

from dq_analysis.llm.base import LLMInterface
from dq_analysis.llm.gemini import GeminiLLM
from dq_analysis.llm.mock import MockLLM
from dq_analysis.llm.retry import RetryingLLM, is_rate_limit_error, is_retryable_error

__all__ = [
    "LLMInterface",
    "GeminiLLM",
    "MockLLM",
    "RetryingLLM",
    "is_rate_limit_error",
    "is_retryable_error",
]
