"""
Gemini LLM Provider.

Talks to the Generative Language REST API (``models/<model>:generateContent``).
"""

from typing import Dict, Any, Optional
import httpx

from ..parsing import extract_json
from .base import BaseLLMProvider, LLMConfig, LLMResponse

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_API_VERSION = "v1beta"


class GeminiProvider(BaseLLMProvider):
    """
    Gemini LLM provider.

    Supports:
    - Text completions
    - JSON mode (``responseMimeType: application/json``)
    """

    def __init__(self, config: LLMConfig, api_version: str = DEFAULT_API_VERSION,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize Gemini provider.

        Args:
            config: LLM configuration; ``api_key`` is required
            api_version: REST API version segment (default 'v1beta')
            transport: Optional httpx transport (tests inject a mock here)
        """
        super().__init__(config)
        self.api_version = api_version
        self._transport = transport

    @property
    def name(self) -> str:
        return "gemini"

    @classmethod
    def from_api_key(
        cls,
        api_key: str,
        model: str = "gemini-1.5-flash",
        **kwargs
    ) -> 'GeminiProvider':
        """
        Create provider for the public Gemini endpoint.

        Args:
            api_key: Gemini API key
            model: Model name (e.g., 'gemini-1.5-flash', 'gemini-2.0-flash')
            **kwargs: Additional config parameters

        Returns:
            Configured GeminiProvider
        """
        config = LLMConfig(
            base_url=GEMINI_BASE_URL,
            api_key=api_key,
            model=model,
            **kwargs
        )
        return cls(config)

    async def initialize(self) -> None:
        """Initialize HTTP client."""
        if not self.config.api_key:
            raise ValueError("Gemini provider requires an API key")
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            transport=self._transport,
        )

    async def cleanup(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _endpoint(self) -> str:
        return f"/{self.api_version}/models/{self.config.model}:generateContent"

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Generate completion using Gemini.

        Args:
            prompt: User prompt
            system_prompt: Optional system instruction
            **kwargs: Additional parameters (temperature, top_p, response_mime_type)

        Returns:
            LLMResponse with generated text
        """
        if not self._client:
            await self.initialize()

        generation_config = {
            "temperature": kwargs.get("temperature", self.config.temperature),
            "topP": kwargs.get("top_p", self.config.top_p),
        }
        if self.config.max_tokens:
            generation_config["maxOutputTokens"] = self.config.max_tokens
        if kwargs.get("response_mime_type"):
            generation_config["responseMimeType"] = kwargs["response_mime_type"]

        # Build request payload
        data = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        if system_prompt:
            data["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        # Make request
        response = await self._client.post(
            self._endpoint(),
            params={"key": self.config.api_key},
            json=data,
        )
        response.raise_for_status()

        result = response.json()
        candidates = result.get("candidates") or []
        if not candidates:
            raise ValueError(f"Gemini returned no candidates: {str(result)[:200]}")

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        usage = result.get("usageMetadata") or {}

        return LLMResponse(
            content=text,
            model=result.get("modelVersion", self.config.model),
            finish_reason=candidate.get("finishReason"),
            usage={
                "prompt_tokens": usage.get("promptTokenCount", 0),
                "completion_tokens": usage.get("candidatesTokenCount", 0),
            },
            raw_response=result,
        )

    async def complete_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> Any:
        """
        Generate JSON completion.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            **kwargs: Additional parameters

        Returns:
            Parsed JSON value
        """
        json_system = "You are a helpful assistant that responds only in valid JSON format."
        if system_prompt:
            json_system = f"{system_prompt}\n\n{json_system}"

        kwargs["response_mime_type"] = "application/json"
        response = await self.complete(prompt, system_prompt=json_system, **kwargs)

        return extract_json(response.content)
