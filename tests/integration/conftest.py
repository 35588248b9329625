"""Integration test fixtures (service checks and prerequisites).

Integration tests talk to a real Ollama server and are skipped when it is not
reachable or the configured model has not been pulled.
"""

import os

import httpx
import pytest

from analysis_layer.llm.ollama_client import OllamaClient

OLLAMA_URL = os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
OLLAMA_MODEL = os.environ.get("OLLAMA_MODEL", "qwen3:4b-instruct")


@pytest.fixture(scope="session")
def check_ollama():
    """Skip unless Ollama is reachable and has the test model."""
    try:
        response = httpx.get(f"{OLLAMA_URL}/api/tags", timeout=5)
    except httpx.HTTPError as e:
        pytest.skip(f"Ollama not available: {e}")
    if response.status_code != 200:
        pytest.skip("Ollama not available (non-200 status)")

    models = [model.get("name") for model in response.json().get("models", [])]
    if OLLAMA_MODEL not in models:
        pytest.skip(f"Model {OLLAMA_MODEL} not pulled (run: ollama pull {OLLAMA_MODEL})")


@pytest.fixture
def integration_settings(test_settings, check_ollama):
    """Test settings pointed at the local Ollama server."""
    return test_settings.model_copy(update={
        "OLLAMA_BASE_URL": OLLAMA_URL,
        "OLLAMA_MODEL": OLLAMA_MODEL,
        "OLLAMA_TIMEOUT": 300,
    })


@pytest.fixture
def real_ollama_client(integration_settings):
    """Real OllamaClient; close it in the test (it is used inside the test's loop)."""
    return OllamaClient(
        base_url=integration_settings.OLLAMA_BASE_URL,
        timeout=integration_settings.OLLAMA_TIMEOUT,
        max_retries=integration_settings.OLLAMA_MAX_RETRIES,
    )
