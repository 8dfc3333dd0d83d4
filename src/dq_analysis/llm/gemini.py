"""
Gemini LLM
==========

Production provider backed by the Google Gen AI SDK.
"""

from google import genai
from google.genai import errors, types

from dq_analysis.config import DEFAULT_MODEL
from dq_analysis.exceptions import RateLimitError, RemoteError
from dq_analysis.llm.base import LLMInterface
from dq_analysis.models import GenerationConfig, LLMResponse


class GeminiLLM(LLMInterface):
    """
    Gemini model client.

    The client instance is owned by this object rather than created at import
    time, so callers control its lifetime and tests can pass a fake.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        client: genai.Client | None = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            api_key: Gemini API key (ignored when ``client`` is given)
            model: Default model name, overridable per call
            client: Pre-built SDK client
        """
        self.model = model
        self.client = client or genai.Client(api_key=api_key)

    def _build_config(self, config: GenerationConfig) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=config.temperature,
            seed=config.seed,
            response_mime_type=config.response_mime_type,
            response_schema=config.response_schema,
        )

    async def generate(self, prompt: str, config: GenerationConfig | None = None) -> LLMResponse:
        config = config or GenerationConfig()
        model = config.model or self.model

        try:
            response = await self.client.aio.models.generate_content(
                model=model,
                contents=prompt,
                config=self._build_config(config),
            )
        except errors.APIError as e:
            # str(e) carries "429 RESOURCE_EXHAUSTED ..." for quota errors
            if e.code == 429:
                raise RateLimitError(str(e)) from e
            raise RemoteError(str(e)) from e
        except Exception as e:
            raise RemoteError(f"{type(e).__name__}: {e}") from e

        text = response.text
        if text is None:
            raise RemoteError(f"Model {model} returned no text content")

        usage = response.usage_metadata
        tokens_used = (usage.total_token_count or 0) if usage is not None else 0

        return LLMResponse(text=text, model=model, tokens_used=tokens_used)
