"""
Unit Tests for GeminiLLM
========================

Tests for the SDK adapter, using a fake client.
"""

from types import SimpleNamespace

import pytest
from google.genai import errors

from dq_analysis.exceptions import RateLimitError, RemoteError
from dq_analysis.llm.gemini import GeminiLLM
from dq_analysis.models import GenerationConfig
from dq_analysis.prompts import TABLE_ANALYSIS_SCHEMA


class FakeModels:
    """Stands in for ``client.aio.models``."""

    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.requests: list[dict] = []

    async def generate_content(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def fake_client(models: FakeModels) -> SimpleNamespace:
    return SimpleNamespace(aio=SimpleNamespace(models=models))


class TestGeminiLLM:
    """Tests for request mapping and error wrapping."""

    @pytest.mark.asyncio
    async def test_structured_request(self) -> None:
        """Test that the generation config is mapped onto the SDK config."""
        models = FakeModels(
            response=SimpleNamespace(
                text='{"issues_detected": []}',
                usage_metadata=SimpleNamespace(total_token_count=321),
            )
        )
        llm = GeminiLLM(model="gemini-2.5-flash", client=fake_client(models))
        config = GenerationConfig(temperature=0.0, seed=42, response_schema=TABLE_ANALYSIS_SCHEMA)

        response = await llm.generate("analyze", config)

        assert response.text == '{"issues_detected": []}'
        assert response.tokens_used == 321
        assert response.model == "gemini-2.5-flash"

        request = models.requests[0]
        assert request["model"] == "gemini-2.5-flash"
        assert request["contents"] == "analyze"
        assert request["config"].temperature == 0.0
        assert request["config"].seed == 42
        assert request["config"].response_mime_type == "application/json"
        assert request["config"].response_schema is not None

    @pytest.mark.asyncio
    async def test_model_override(self) -> None:
        """Test that a per-call model wins over the default."""
        models = FakeModels(response=SimpleNamespace(text="ok", usage_metadata=None))
        llm = GeminiLLM(client=fake_client(models))

        response = await llm.generate("hi", GenerationConfig(model="gemini-other"))

        assert models.requests[0]["model"] == "gemini-other"
        assert response.tokens_used == 0

    @pytest.mark.asyncio
    async def test_error_wrapped_keeps_message(self) -> None:
        """Test that SDK errors become RemoteError with the original text."""
        models = FakeModels(error=RuntimeError("429 RESOURCE_EXHAUSTED quota"))
        llm = GeminiLLM(client=fake_client(models))

        with pytest.raises(RemoteError, match="RESOURCE_EXHAUSTED"):
            await llm.generate("hi")

    @pytest.mark.asyncio
    async def test_quota_error_is_rate_limit(self) -> None:
        """Test that an SDK 429 becomes a retryable RateLimitError."""
        quota = errors.APIError(
            429,
            {"error": {"code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}},
        )
        llm = GeminiLLM(client=fake_client(FakeModels(error=quota)))

        with pytest.raises(RateLimitError, match="RESOURCE_EXHAUSTED") as exc_info:
            await llm.generate("hi")
        assert exc_info.value.__cause__ is quota

    @pytest.mark.asyncio
    async def test_other_api_error_not_rate_limit(self) -> None:
        """Test that non-quota SDK errors stay plain RemoteErrors."""
        invalid = errors.APIError(
            400,
            {"error": {"code": 400, "message": "Bad schema", "status": "INVALID_ARGUMENT"}},
        )
        llm = GeminiLLM(client=fake_client(FakeModels(error=invalid)))

        with pytest.raises(RemoteError) as exc_info:
            await llm.generate("hi")
        assert not isinstance(exc_info.value, RateLimitError)

    @pytest.mark.asyncio
    async def test_empty_text(self) -> None:
        """Test that a response without text is a remote failure."""
        models = FakeModels(response=SimpleNamespace(text=None, usage_metadata=None))
        llm = GeminiLLM(client=fake_client(models))

        with pytest.raises(RemoteError, match="no text"):
            await llm.generate("hi")
