"""
Vision model clients used by the extraction flow.

Providers:
- Ollama (local)
- LM Studio (local, OpenAI-compatible)
- Gemini (cloud)

Connection errors are retried, other failures fall through to the next provider.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from invoiceai.config import (
    AppConfig,
    GeminiConfig,
    LLMProvider,
    LMStudioConfig,
    OllamaConfig,
    get_config,
)
from invoiceai.llm.images import parse_data_uri, prepare_image
from invoiceai.llm.prompts import get_vision_prompt

logger = logging.getLogger(__name__)


class LLMClientError(Exception):
    """Raised when a provider cannot turn an image into a response."""
    pass


class LLMConnectionError(LLMClientError):
    """Network failure or rate limit; retried before falling back."""
    pass


class LLMResponseError(LLMClientError):
    """The provider answered with an error status or an unexpected body."""
    pass


_retry_on_connection = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type(LLMConnectionError),
    reraise=True,
)


def _json_body(response: requests.Response, provider: str):
    """Decode a JSON response body, treating anything else as a bad response."""
    try:
        return response.json()
    except ValueError as e:
        raise LLMResponseError(f"{provider} returned a non-JSON body: {e}") from e


class BaseLLMClient(ABC):
    """Abstract base class for vision LLM clients."""

    max_image_size: int = 1536

    @abstractmethod
    def extract_from_image(self, data_uri: str) -> str:
        """Extract invoice data from a base64 image data URI. Returns the raw model text."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Cheap reachability check made before each extraction."""
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Human readable provider name for logs."""
        pass

    def _prepare_image(self, data_uri: str) -> tuple[str, str]:
        """Decode the data URI and re-encode it for the vision API."""
        _, content = parse_data_uri(data_uri)
        return prepare_image(content, max_size=self.max_image_size)


class OllamaClient(BaseLLMClient):
    """Vision extraction through Ollama's generate endpoint."""

    def __init__(self, config: Optional[OllamaConfig] = None):
        self.config = config or get_config().ollama
        self.base_url = self.config.base_url.rstrip("/")

    def get_provider_name(self) -> str:
        return "Ollama"

    def is_available(self) -> bool:
        """Check if Ollama is running and the vision model is pulled."""
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=5)
        except requests.exceptions.RequestException as e:
            logger.debug(f"Ollama not available: {e}")
            return False
        if response.status_code != 200:
            return False
        try:
            model_names = [m.get("name", "") for m in _json_body(response, "Ollama").get("models", [])]
        except LLMResponseError as e:
            logger.debug(f"Ollama not available: {e}")
            return False
        return any(
            self.config.vision_model in name or name in self.config.vision_model
            for name in model_names
        )

    @_retry_on_connection
    def extract_from_image(self, data_uri: str) -> str:
        """Extract invoice data using an Ollama vision model."""
        if not self.config.vision_model:
            raise LLMClientError("Ollama vision model is not set")

        image_base64, _ = self._prepare_image(data_uri)

        try:
            response = requests.post(
                f"{self.base_url}/api/generate",
                json={
                    "model": self.config.vision_model,
                    "prompt": get_vision_prompt(),
                    "images": [image_base64],
                    "stream": False,
                    "format": "json",
                    "options": {
                        "temperature": self.config.temperature,
                        "num_ctx": self.config.context_length,
                    },
                },
                timeout=self.config.timeout,
            )
        except requests.exceptions.ConnectionError as e:
            raise LLMConnectionError(f"Failed to connect to Ollama: {e}") from e
        except requests.exceptions.Timeout as e:
            raise LLMConnectionError("Ollama vision request timed out") from e
        except requests.exceptions.RequestException as e:
            raise LLMConnectionError(f"Ollama request failed: {e}") from e

        if response.status_code != 200:
            raise LLMResponseError(f"Ollama error {response.status_code}: {response.text[:200]}")

        return _json_body(response, "Ollama").get("response", "")


class LMStudioClient(BaseLLMClient):
    """Vision extraction through LM Studio's chat completions endpoint."""

    def __init__(self, config: Optional[LMStudioConfig] = None):
        self.config = config or get_config().lm_studio
        self.base_url = self.config.base_url.rstrip("/")

    def get_provider_name(self) -> str:
        return "LM Studio"

    def is_available(self) -> bool:
        """True when the server lists its models."""
        try:
            response = requests.get(f"{self.base_url}/models", timeout=5)
            return response.status_code == 200
        except requests.exceptions.RequestException as e:
            logger.debug(f"LM Studio not available: {e}")
            return False

    @_retry_on_connection
    def extract_from_image(self, data_uri: str) -> str:
        """Send the prompt and image as one user message."""
        if not self.config.vision_model:
            raise LLMClientError("LM Studio vision model is not set")

        image_base64, mime_type = self._prepare_image(data_uri)
        logger.info(f"Sending image to LM Studio vision model: {self.config.vision_model} ({mime_type})")

        try:
            response = requests.post(
                f"{self.base_url}/chat/completions",
                json={
                    "model": self.config.vision_model,
                    "messages": [
                        {
                            "role": "user",
                            "content": [
                                {"type": "text", "text": get_vision_prompt()},
                                {
                                    "type": "image_url",
                                    "image_url": {"url": f"data:{mime_type};base64,{image_base64}"},
                                },
                            ],
                        }
                    ],
                    "temperature": self.config.temperature,
                    "max_tokens": self.config.max_tokens,
                },
                timeout=self.config.timeout,
            )
        except requests.exceptions.ConnectionError as e:
            raise LLMConnectionError(f"Failed to connect to LM Studio: {e}") from e
        except requests.exceptions.Timeout as e:
            raise LLMConnectionError("LM Studio vision request timed out") from e
        except requests.exceptions.RequestException as e:
            raise LLMConnectionError(f"LM Studio request failed: {e}") from e

        if response.status_code != 200:
            raise LLMResponseError(f"LM Studio error {response.status_code}: {response.text[:200]}")

        try:
            return _json_body(response, "LM Studio")["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMResponseError(f"Unexpected LM Studio response shape: {e}") from e


class GeminiClient(BaseLLMClient):
    """Client for the Gemini generateContent API."""

    def __init__(self, config: Optional[GeminiConfig] = None):
        self.config = config or get_config().gemini
        self.base_url = self.config.base_url.rstrip("/")

    def get_provider_name(self) -> str:
        return "Gemini"

    def is_available(self) -> bool:
        """Check if a Gemini API key is configured."""
        return bool(self.config.api_key)

    def _get_headers(self) -> dict:
        return {
            "x-goog-api-key": self.config.api_key,
            "Content-Type": "application/json",
        }

    @_retry_on_connection
    def extract_from_image(self, data_uri: str) -> str:
        """Extract invoice data using Gemini with inline image data."""
        image_base64, mime_type = self._prepare_image(data_uri)

        try:
            response = requests.post(
                f"{self.base_url}/models/{self.config.model}:generateContent",
                headers=self._get_headers(),
                json={
                    "contents": [
                        {
                            "parts": [
                                {"text": get_vision_prompt()},
                                {"inline_data": {"mime_type": mime_type, "data": image_base64}},
                            ]
                        }
                    ],
                    "generationConfig": {
                        "temperature": self.config.temperature,
                        "responseMimeType": "application/json",
                    },
                },
                timeout=self.config.timeout,
            )
        except requests.exceptions.ConnectionError as e:
            raise LLMConnectionError(f"Failed to connect to Gemini: {e}") from e
        except requests.exceptions.Timeout as e:
            raise LLMConnectionError("Gemini request timed out") from e
        except requests.exceptions.RequestException as e:
            raise LLMConnectionError(f"Gemini request failed: {e}") from e

        if response.status_code in (401, 403):
            raise LLMClientError("Invalid Gemini API key")
        elif response.status_code == 429:
            raise LLMConnectionError("Gemini rate limit exceeded")
        elif response.status_code != 200:
            raise LLMResponseError(f"Gemini error {response.status_code}: {response.text[:200]}")

        try:
            parts = _json_body(response, "Gemini")["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMResponseError(f"Gemini returned no candidates: {e}") from e
        return "".join(part.get("text", "") for part in parts)


class LLMClient:
    """
    Runs extraction against the first provider that answers.

    Unavailable or failing providers are skipped and their errors collected.
    Order: the preferred provider, then Ollama, LM Studio, Gemini.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        preferred_provider: Optional[LLMProvider] = None,
        clients: Optional[dict[LLMProvider, BaseLLMClient]] = None,
    ):
        """
        Set up one client per provider.

        Args:
            config: Application configuration
            preferred_provider: Preferred provider to try first
            clients: Provider clients to use instead of the configured ones
        """
        self.config = config or get_config()
        self.preferred_provider = preferred_provider or self.config.llm_provider

        self.clients: dict[LLMProvider, BaseLLMClient] = clients or {
            LLMProvider.OLLAMA: OllamaClient(self.config.ollama),
            LLMProvider.LM_STUDIO: LMStudioClient(self.config.lm_studio),
            LLMProvider.GEMINI: GeminiClient(self.config.gemini),
        }
        for client in self.clients.values():
            client.max_image_size = self.config.max_image_dimension

    def _get_provider_order(self) -> list[LLMProvider]:
        """Preferred provider first, then the rest in enum order."""
        order = [self.preferred_provider]
        for provider in LLMProvider:
            if provider not in order:
                order.append(provider)
        return [p for p in order if p in self.clients]

    def extract_from_image(
        self,
        data_uri: str,
        provider: Optional[LLMProvider] = None,
    ) -> tuple[str, LLMProvider]:
        """
        Extract invoice data from an image data URI using a vision model.

        Args:
            data_uri: Invoice image as 'data:<mimetype>;base64,<data>'
            provider: Specific provider to use (optional, disables fallback)

        Returns:
            Tuple of (raw model response, provider used)

        Raises:
            LLMClientError: If all providers fail
        """
        providers = [provider] if provider else self._get_provider_order()

        errors = []
        for prov in providers:
            client = self.clients[prov]

            if not client.is_available():
                logger.info(f"Skipping {prov.value}: not available")
                errors.append(f"{prov.value}: not available")
                continue

            try:
                logger.info(f"Attempting vision extraction with {client.get_provider_name()}")
                result = client.extract_from_image(data_uri)
                return result, prov
            except LLMClientError as e:
                logger.warning(f"{prov.value} failed, trying next provider: {e}")
                errors.append(f"{prov.value}: {e}")

        raise LLMClientError(f"No provider could extract the invoice: {'; '.join(errors)}")
