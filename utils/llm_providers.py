"""
Text-completion providers behind the /ask endpoint.

Every provider exposes ``async complete(prompt) -> str``. The registry maps the
closed set of model tags sent by the frontend onto providers and falls back to
the default provider for anything it does not recognise.
"""

from enum import Enum
from typing import Dict, Optional

import httpx
import openai
from openai import AsyncOpenAI

from utils.error_handling import ProviderError, PipelineTimeoutError
from utils.structured_logging import get_logger, LogCategory

logger = get_logger("llm")


class ModelId(str, Enum):
    GEMINI = "gemini"
    GROQ_LLAMA = "groq-llama"
    MIXTRAL = "mixtral"


DEFAULT_MODEL = ModelId.GEMINI


class CompletionProvider:
    """Uniform logical signature over provider-specific transports"""

    name = "provider"

    async def complete(self, prompt: str) -> str:
        raise NotImplementedError


class GeminiProvider(CompletionProvider):
    """Google Gemini ``generateContent`` over plain HTTPS"""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = http_client

    @property
    def url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def _post(self, payload: dict) -> httpx.Response:
        headers = {"Content-Type": "application/json", "X-goog-api-key": self.api_key}
        if self._http_client is not None:
            return await self._http_client.post(self.url, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, json=payload, headers=headers)

    @staticmethod
    def extract_text(data: dict) -> str:
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"] or ""
        except (KeyError, IndexError, TypeError):
            return ""

    async def complete(self, prompt: str) -> str:
        if not self.api_key:
            raise ProviderError("GEMINI_API_KEY is not configured")

        try:
            response = await self._post({"contents": [{"parts": [{"text": prompt}]}]})
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.error("Gemini request timed out", category=LogCategory.LLM, exception=e)
            raise PipelineTimeoutError(f"Gemini timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            logger.error(
                "Gemini returned an error status",
                category=LogCategory.LLM,
                response_status=e.response.status_code,
                error_message=e.response.text[:500],
            )
            raise ProviderError(f"Gemini HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Gemini request failed", category=LogCategory.LLM, exception=e)
            raise ProviderError(f"Gemini request failed: {e}") from e

        return self.extract_text(data)


class OpenAICompatibleProvider(CompletionProvider):
    """Chat-completions provider reached through the OpenAI SDK (Groq, Mistral)"""

    def __init__(
        self,
        name: str,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.name = name
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            # No automatic retries: a transient failure surfaces to the caller
            self._client = AsyncOpenAI(
                api_key=self.api_key, base_url=self.base_url, timeout=self.timeout, max_retries=0
            )
        return self._client

    async def complete(self, prompt: str) -> str:
        if not self.api_key and self._client is None:
            raise ProviderError(f"API key for {self.name} is not configured")

        options = {}
        if self.max_tokens is not None:
            options["max_tokens"] = self.max_tokens
        if self.temperature is not None:
            options["temperature"] = self.temperature

        try:
            completion = await self._get_client().chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                **options,
            )
        except openai.APITimeoutError as e:
            logger.error(f"{self.name} request timed out", category=LogCategory.LLM, exception=e)
            raise PipelineTimeoutError(f"{self.name} timed out") from e
        except openai.APIError as e:
            logger.error(f"{self.name} request failed", category=LogCategory.LLM, exception=e)
            raise ProviderError(f"{self.name} request failed: {e}") from e

        try:
            return completion.choices[0].message.content or ""
        except (AttributeError, IndexError) as e:
            raise ProviderError(f"{self.name} returned an unexpected payload") from e


class ProviderRegistry:
    """Strategy map from model tag to provider"""

    def __init__(self, providers: Dict[ModelId, CompletionProvider], default: ModelId = DEFAULT_MODEL):
        if default not in providers:
            raise ValueError(f"Default provider {default.value} is not registered")
        self._providers = dict(providers)
        self.default = default

    def parse(self, tag: Optional[str]) -> ModelId:
        """Map a caller-supplied tag onto a registered ModelId, defaulting when unknown"""
        if not isinstance(tag, str):
            return self.default
        try:
            model_id = ModelId(tag)
        except ValueError:
            return self.default
        return model_id if model_id in self._providers else self.default

    def resolve(self, tag: Optional[str]) -> CompletionProvider:
        return self._providers[self.parse(tag)]


def build_provider_registry(settings) -> ProviderRegistry:
    """Build the three providers from an explicit settings object"""
    timeout = settings.LLM_TIMEOUT_SECONDS
    return ProviderRegistry(
        {
            ModelId.GEMINI: GeminiProvider(
                api_key=settings.GEMINI_API_KEY,
                model=settings.GEMINI_MODEL,
                base_url=settings.GEMINI_BASE_URL,
                timeout=timeout,
            ),
            ModelId.GROQ_LLAMA: OpenAICompatibleProvider(
                name="groq",
                api_key=settings.GROQ_API_KEY,
                model=settings.GROQ_MODEL,
                base_url=settings.GROQ_BASE_URL,
                timeout=timeout,
                max_tokens=1024,
                temperature=0.7,
            ),
            ModelId.MIXTRAL: OpenAICompatibleProvider(
                name="mistral",
                api_key=settings.MISTRAL_API_KEY,
                model=settings.MISTRAL_MODEL,
                base_url=settings.MISTRAL_BASE_URL,
                timeout=timeout,
            ),
        },
        default=DEFAULT_MODEL,
    )
