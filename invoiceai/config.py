"""
Configuration module for InvoiceAI.

Handles settings for LLM providers, API keys, local storage location,
and application-wide settings with validation.
"""

import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

import requests
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class LLMProvider(Enum):
    """Supported vision LLM providers for invoice extraction."""
    OLLAMA = "ollama"
    LM_STUDIO = "lm_studio"
    GEMINI = "gemini"


def _list_models(url: str, list_key: str, name_key: str) -> list[str]:
    """GET a model listing endpoint and return the model names. Raises on non-200."""
    response = requests.get(url, timeout=5)
    if response.status_code != 200:
        raise requests.exceptions.HTTPError(f"status {response.status_code}")
    return [m.get(name_key, "unknown") for m in response.json().get(list_key, [])]


@dataclass
class OllamaConfig:
    """Connection settings for a local Ollama server."""
    base_url: str = field(default_factory=lambda: os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"))
    vision_model: str = field(default_factory=lambda: os.getenv("OLLAMA_VISION_MODEL", "llava:13b"))
    temperature: float = 0.1
    timeout: int = 240  # vision models are slow on CPU
    context_length: int = 4096

    @staticmethod
    def validate_connection(base_url: str = "http://localhost:11434") -> tuple[bool, str]:
        """Check Ollama answers on /api/tags and list the pulled models."""
        try:
            names = _list_models(f"{base_url}/api/tags", "models", "name")
        except requests.exceptions.ConnectionError:
            return False, (
                "Ollama is not reachable. Start it with `ollama serve` "
                "and pull a vision model, e.g. `ollama pull llava:13b`."
            )
        except requests.exceptions.RequestException as e:
            return False, f"Ollama check failed: {e}"
        return True, f"Ollama is up with {len(names)} model(s): {', '.join(names[:5]) or 'none pulled'}"


@dataclass
class LMStudioConfig:
    """Connection settings for LM Studio's OpenAI-compatible server."""
    base_url: str = field(default_factory=lambda: os.getenv("LM_STUDIO_BASE_URL", "http://localhost:1234/v1"))
    vision_model: str = field(default_factory=lambda: os.getenv("LM_STUDIO_VISION_MODEL", "qwen3-vl-4b-instruct"))
    api_key: str = "lm-studio"  # ignored by the server
    temperature: float = 0.1
    timeout: int = 180
    max_tokens: int = 2048

    @staticmethod
    def validate_connection(base_url: str = "http://localhost:1234/v1") -> tuple[bool, str, list]:
        """
        Check the LM Studio server and list its loaded models.

        Returns:
            Tuple of (ok, message, model ids)
        """
        try:
            models = _list_models(f"{base_url}/models", "data", "id")
        except requests.exceptions.ConnectionError:
            return False, (
                "LM Studio is not reachable. Load a vision model and start "
                "the local server from the Developer tab."
            ), []
        except requests.exceptions.RequestException as e:
            return False, f"LM Studio check failed: {e}", []
        return True, f"LM Studio is up with model(s): {', '.join(models) or 'none loaded'}", models


def _gemini_key_from_env() -> str:
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY", "")


@dataclass
class GeminiConfig:
    """Configuration for the Gemini cloud API."""
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    model: str = field(default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.0-flash"))
    api_key: str = field(default_factory=_gemini_key_from_env)
    temperature: float = 0.1
    timeout: int = 60

    def validate_api_key(self) -> tuple[bool, str]:
        """Validate Gemini API key is set."""
        if not self.api_key:
            return False, (
                "Gemini API key not set. "
                "Add GEMINI_API_KEY to .env or enter it in the API Key field."
            )
        if len(self.api_key) < 20:
            return False, "Gemini API key appears to be invalid (too short)"
        return True, "Gemini API key is configured"


@dataclass
class StorageConfig:
    """Where the local key-value store keeps its documents."""
    data_dir: Path = field(
        default_factory=lambda: Path(os.getenv("INVOICEAI_DATA_DIR", str(Path.home() / ".invoiceai")))
    )
    clients_key: str = "invoiceAI_clients"
    invoices_key: str = "invoiceAI_invoices"

    def validate_writable(self) -> tuple[bool, str]:
        """Check the data directory can be created and written to."""
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(dir=self.data_dir):
                pass
        except OSError as e:
            return False, f"Storage directory {self.data_dir} is not writable: {e}"
        return True, f"Storing data in {self.data_dir}"


def _provider_from_env() -> LLMProvider:
    value = os.getenv("INVOICEAI_LLM_PROVIDER", LLMProvider.OLLAMA.value).strip().lower()
    try:
        return LLMProvider(value)
    except ValueError:
        return LLMProvider.OLLAMA


@dataclass
class AppConfig:
    """Main application configuration."""
    # LLM Settings
    llm_provider: LLMProvider = field(default_factory=_provider_from_env)

    # Provider-specific configs
    ollama: OllamaConfig = field(default_factory=OllamaConfig)
    lm_studio: LMStudioConfig = field(default_factory=LMStudioConfig)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    # Upload settings
    max_file_size_mb: int = 5
    accepted_image_types: tuple[str, ...] = ("image/jpeg", "image/png", "image/webp", "image/gif")
    max_image_dimension: int = 1536

    # Display settings
    currency_symbol: str = "$"
    excel_currency_format: str = '"$"#,##0.00'

    log_level: str = field(default_factory=lambda: os.getenv("INVOICEAI_LOG_LEVEL", "INFO").upper())


def validate_system_requirements(config: Optional[AppConfig] = None) -> dict:
    """
    Validate all system requirements on startup.

    Returns:
        Dictionary with validation results for each requirement.
    """
    config = config or get_config()
    results = {}

    ollama_ok, ollama_msg = OllamaConfig.validate_connection(config.ollama.base_url)
    results["ollama"] = {"available": ollama_ok, "message": ollama_msg}

    lm_ok, lm_msg, lm_models = LMStudioConfig.validate_connection(config.lm_studio.base_url)
    results["lm_studio"] = {"available": lm_ok, "message": lm_msg, "models": lm_models}

    gemini_ok, gemini_msg = config.gemini.validate_api_key()
    results["gemini"] = {"configured": gemini_ok, "message": gemini_msg}

    storage_ok, storage_msg = config.storage.validate_writable()
    results["storage"] = {
        "writable": storage_ok,
        "message": storage_msg,
        "path": str(config.storage.data_dir),
    }

    return results


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config


def update_config(**kwargs) -> AppConfig:
    """Update configuration with new values. Unknown keys are ignored."""
    config = get_config()
    for key, value in kwargs.items():
        if hasattr(config, key):
            setattr(config, key, value)
    return config
