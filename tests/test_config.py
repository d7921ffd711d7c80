"""Tests for configuration defaults, environment overrides and startup checks."""

from unittest.mock import patch

import pytest
import requests

from invoiceai import config as config_module
from invoiceai.config import (
    AppConfig,
    GeminiConfig,
    LLMProvider,
    StorageConfig,
    update_config,
    validate_system_requirements,
)


@pytest.fixture
def fresh_global_config(monkeypatch):
    monkeypatch.setattr(config_module, "_config", None)


def test_defaults(monkeypatch):
    monkeypatch.delenv("INVOICEAI_LLM_PROVIDER", raising=False)
    config = AppConfig()

    assert config.llm_provider == LLMProvider.OLLAMA
    assert config.max_file_size_mb == 5
    assert config.storage.clients_key == "invoiceAI_clients"
    assert config.storage.invoices_key == "invoiceAI_invoices"


@pytest.mark.parametrize("value, expected", [
    ("gemini", LLMProvider.GEMINI),
    (" LM_Studio ", LLMProvider.LM_STUDIO),
    ("nonsense", LLMProvider.OLLAMA),
])
def test_provider_from_environment(monkeypatch, value, expected):
    monkeypatch.setenv("INVOICEAI_LLM_PROVIDER", value)
    assert AppConfig().llm_provider == expected


def test_gemini_key_falls_back_to_google_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("GOOGLE_API_KEY", "google-key")
    assert GeminiConfig().api_key == "google-key"


def test_gemini_key_check():
    assert GeminiConfig(api_key="").validate_api_key()[0] is False
    assert GeminiConfig(api_key="short").validate_api_key()[0] is False
    assert GeminiConfig(api_key="x" * 39).validate_api_key()[0] is True


def test_missing_gemini_key_message_names_both_sources():
    ok, message = GeminiConfig(api_key="").validate_api_key()
    assert not ok
    assert "GEMINI_API_KEY" in message
    assert ".env" in message
    assert "API Key field" in message


def test_data_dir_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("INVOICEAI_DATA_DIR", str(tmp_path / "store"))
    assert StorageConfig().data_dir == tmp_path / "store"


def test_storage_writable(tmp_path):
    ok, _ = StorageConfig(data_dir=tmp_path / "new").validate_writable()
    assert ok
    assert (tmp_path / "new").is_dir()


def test_storage_not_writable(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")

    ok, message = StorageConfig(data_dir=blocker / "data").validate_writable()

    assert not ok
    assert "not writable" in message


def test_update_config(fresh_global_config):
    config = update_config(llm_provider=LLMProvider.GEMINI, unknown_setting=1)

    assert config is config_module.get_config()
    assert config.llm_provider == LLMProvider.GEMINI
    assert not hasattr(config, "unknown_setting")


@patch("invoiceai.config.requests.get", side_effect=requests.exceptions.ConnectionError("refused"))
def test_validate_system_requirements_offline(mock_get, app_config):
    results = validate_system_requirements(app_config)

    assert results["ollama"]["available"] is False
    assert results["lm_studio"]["available"] is False
    assert results["lm_studio"]["models"] == []
    assert results["gemini"]["configured"] is True
    assert results["storage"]["writable"] is True
    assert results["storage"]["path"] == str(app_config.storage.data_dir)
