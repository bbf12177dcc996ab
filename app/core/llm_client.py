"""LLM clients used by the contract analysis function.

Two providers are supported: an OpenAI-compatible chat-completions gateway
(OpenRouter or any compatible endpoint) called over httpx, and Google
Gemini through the ``google-genai`` SDK. ``UnifiedLLMClient`` picks one
from settings and can optionally fall back to Gemini.
"""

import asyncio
from enum import Enum
from typing import Any, Dict, Optional, Union

import httpx
from google import genai
from google.genai import types
from httpx import HTTPStatusError, TimeoutException

from app.core.exceptions import APIClientError, APITimeoutError, ConfigurationError
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BaseLLMClient:
    """HTTP transport for LLM APIs with retry and exponential backoff.

    Retries 5xx, 429, timeouts and transport errors. Other 4xx responses
    fail immediately.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: int = 60,
        max_retries: int = 3,
        retry_delay: int = 2
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.logger = LOGGER

    async def call_api(
        self,
        payload: Dict[str, Any],
        endpoint: str = "",
        headers: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """POST ``payload`` as JSON and return the parsed response.

        Raises:
            APIClientError: If the API call fails after retries
            APITimeoutError: If the API call times out after retries
        """
        url = f"{self.base_url}{endpoint}" if endpoint else self.base_url

        request_headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if headers:
            request_headers.update(headers)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for attempt in range(self.max_retries):
                try:
                    response = await client.post(url, headers=request_headers, json=payload)
                    response.raise_for_status()
                    return response.json()

                except HTTPStatusError as e:
                    await self._handle_http_error(e, attempt, url)

                except TimeoutException as e:
                    await self._handle_timeout_error(e, attempt, url)

                except httpx.TransportError as e:
                    await self._handle_transport_error(e, attempt, url)

        raise APIClientError(f"Failed to call API {url} after {self.max_retries} attempts")

    async def _handle_http_error(self, error: HTTPStatusError, attempt: int, url: str):
        status_code = error.response.status_code
        error_body = error.response.text

        self.logger.warning(
            f"API HTTP error (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": url, "status_code": status_code, "error_body": error_body[:500]}
        )

        if 400 <= status_code < 500 and status_code != 429:
            raise APIClientError(f"API Client Error {status_code}: {error_body}", original_error=error) from error

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise APIClientError(f"API HTTP Error {status_code} after retries", original_error=error) from error

    async def _handle_timeout_error(self, error: TimeoutException, attempt: int, url: str):
        self.logger.warning(
            f"API Timeout (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": url}
        )

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise APITimeoutError(f"API Timeout after {self.max_retries} attempts", original_error=error) from error

    async def _handle_transport_error(self, error: httpx.TransportError, attempt: int, url: str):
        self.logger.warning(
            f"API transport error (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": url, "error": str(error)}
        )

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise APIClientError(f"API Error: {error}", original_error=error) from error

    async def _wait_before_retry(self, attempt: int):
        await asyncio.sleep(self.retry_delay * (2 ** attempt))


class OpenRouterClient:
    """Chat-completions client for OpenRouter and compatible gateways."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://openrouter.ai/api/v1/chat/completions",
        timeout: int = 60,
        max_retries: int = 3,
        retry_delay: int = 2,
    ):
        self.model = model
        self.transport = BaseLLMClient(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            retry_delay=retry_delay,
        )
        LOGGER.info(f"Initialized OpenRouter client with model {self.model}")

    async def generate_content(
        self,
        contents: str,
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Run one chat completion and return the assistant message text.

        Raises:
            APIClientError: If the call fails or the response has no choices
        """
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": contents})

        payload: Dict[str, Any] = {"model": self.model, "messages": messages}
        config = generation_config or {}
        payload["temperature"] = config.get("temperature", 0.0)
        if "max_output_tokens" in config:
            payload["max_tokens"] = config["max_output_tokens"]

        response = await self.transport.call_api(payload=payload)

        choices = response.get("choices") or []
        if not choices:
            LOGGER.error(f"Unexpected OpenRouter response format: {str(response)[:500]}")
            raise APIClientError("Invalid response format from OpenRouter")

        content = (choices[0].get("message") or {}).get("content") or ""
        if not content:
            LOGGER.warning("Empty response from OpenRouter")
        return content


class GeminiClient:
    """Wrapper for the Google Gemini API client."""

    def __init__(
        self,
        api_key: str,
        model: str,
        max_retries: int = 3,
    ):
        self.model = model
        self.max_retries = max_retries
        self.client = genai.Client(api_key=api_key)
        LOGGER.info(f"Initialized Gemini client with model {self.model}")

    async def generate_content(
        self,
        contents: str,
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Generate content using the Gemini async API.

        Raises:
            APIClientError: If generation fails after retries
        """
        config = types.GenerateContentConfig(temperature=0.0)
        if generation_config:
            if "temperature" in generation_config:
                config.temperature = generation_config["temperature"]
            if "max_output_tokens" in generation_config:
                config.max_output_tokens = generation_config["max_output_tokens"]
            if "response_mime_type" in generation_config:
                config.response_mime_type = generation_config["response_mime_type"]
        if system_instruction:
            config.system_instruction = system_instruction

        for attempt in range(self.max_retries):
            try:
                response = await self.client.aio.models.generate_content(
                    model=self.model,
                    contents=contents,
                    config=config,
                )
                if not response.text:
                    LOGGER.warning("Empty response from Gemini")
                    return ""
                return response.text

            except Exception as e:
                LOGGER.warning(f"Gemini API error (Attempt {attempt + 1}/{self.max_retries}): {e}")
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(2 ** attempt)
                else:
                    raise APIClientError(f"Gemini generation failed: {e}", original_error=e) from e

        raise APIClientError("Gemini generation failed")


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    GEMINI = "gemini"
    OPENROUTER = "openrouter"


class UnifiedLLMClient:
    """Provider-agnostic client with optional Gemini fallback."""

    def __init__(
        self,
        client: Union[OpenRouterClient, GeminiClient],
        provider: LLMProvider,
        fallback_client: Optional[GeminiClient] = None,
    ):
        self.client = client
        self.provider = provider
        self.fallback_client = fallback_client

    async def generate_content(
        self,
        contents: str,
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> str:
        try:
            return await self.client.generate_content(
                contents=contents,
                system_instruction=system_instruction,
                generation_config=generation_config,
            )
        except APIClientError as e:
            if not self.fallback_client:
                raise
            LOGGER.warning(f"Primary provider ({self.provider.value}) failed, attempting Gemini fallback: {e}")
            try:
                return await self.fallback_client.generate_content(
                    contents=contents,
                    system_instruction=system_instruction,
                    generation_config=generation_config,
                )
            except APIClientError as fallback_error:
                LOGGER.error(f"Fallback to Gemini also failed: {fallback_error}")
                raise APIClientError(
                    f"Both primary ({self.provider.value}) and fallback (Gemini) failed",
                    original_error=fallback_error,
                ) from fallback_error


def create_llm_client_from_settings(app_settings) -> UnifiedLLMClient:
    """Build the configured LLM client.

    Raises:
        ConfigurationError: If the provider is unknown or its API key is missing
    """
    llm = app_settings.llm
    try:
        provider = LLMProvider(llm.provider.lower())
    except ValueError as e:
        raise ConfigurationError(f"Unsupported LLM provider: {llm.provider}") from e

    gemini_key = llm.gemini_api_key.strip()

    if provider == LLMProvider.GEMINI:
        if not gemini_key:
            raise ConfigurationError("GEMINI_API_KEY is required when LLM_PROVIDER=gemini")
        return UnifiedLLMClient(
            client=GeminiClient(api_key=gemini_key, model=llm.gemini_model, max_retries=app_settings.max_retries),
            provider=provider,
        )

    openrouter_key = llm.openrouter_api_key.strip()
    if not openrouter_key:
        raise ConfigurationError("OPENROUTER_API_KEY is required when LLM_PROVIDER=openrouter")

    fallback = None
    if llm.enable_fallback and gemini_key:
        fallback = GeminiClient(api_key=gemini_key, model=llm.gemini_model, max_retries=app_settings.max_retries)

    return UnifiedLLMClient(
        client=OpenRouterClient(
            api_key=openrouter_key,
            model=llm.openrouter_model,
            base_url=llm.openrouter_api_url,
            timeout=app_settings.http_timeout,
            max_retries=app_settings.max_retries,
            retry_delay=app_settings.retry_delay,
        ),
        provider=provider,
        fallback_client=fallback,
    )
