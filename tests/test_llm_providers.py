"""
Unit tests for LLM Providers

Tests for the provider strategies: configuration validation and
the chat model arguments each one builds.
"""

import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
from unittest.mock import patch

from core.llm_providers import (
    LLMProvider,
    OpenAICompatibleProvider,
    OpenAIProvider,
    NebiusProvider,
    SambanovaProvider,
    GeminiProvider,
    GEMINI_AVAILABLE,
    MAX_RETRIES,
    REQUEST_TIMEOUT_SECONDS,
)


class TestLLMProviderInterface:
    """Test the abstract provider interface"""

    def test_llm_provider_is_abstract(self):
        """Should not instantiate the abstract base class"""
        with pytest.raises(TypeError):
            LLMProvider()

    def test_llm_provider_requires_create_llm(self):
        """Should require create_llm to be implemented"""
        class IncompleteProvider(LLMProvider):
            def validate_configuration(self):
                pass

            @property
            def default_model(self):
                return "model"

        with pytest.raises(TypeError):
            IncompleteProvider()

    def test_llm_provider_requires_default_model_property(self):
        """Should require default_model to be implemented"""
        class IncompleteProvider(LLMProvider):
            def create_llm(self, model=None, temperature=0.0, json_mode=False, max_tokens=None):
                pass

            def validate_configuration(self):
                pass

        with pytest.raises(TypeError):
            IncompleteProvider()


class TestOpenAIProvider:
    """Test OpenAI provider"""

    @patch('core.llm_providers.settings')
    def test_initialization_with_settings(self, mock_settings):
        """Should read the key from settings"""
        mock_settings.OPENAI_API_KEY = "sk-settings"

        provider = OpenAIProvider()

        assert provider.api_key == "sk-settings"
        assert provider.endpoint is None

    @patch('core.llm_providers.settings')
    def test_initialization_with_custom_key(self, mock_settings):
        """Should prefer an explicit key over settings"""
        mock_settings.OPENAI_API_KEY = "sk-settings"

        provider = OpenAIProvider(api_key="sk-custom")

        assert provider.api_key == "sk-custom"

    @patch('core.llm_providers.settings')
    def test_missing_api_key_raises_error(self, mock_settings):
        """Should raise RuntimeError naming the missing variable"""
        mock_settings.OPENAI_API_KEY = None

        with pytest.raises(RuntimeError) as exc_info:
            OpenAIProvider()

        assert "OPENAI_API_KEY" in str(exc_info.value)
        assert "ENDPOINT" not in str(exc_info.value)

    def test_default_model(self):
        """Should default to gpt-4o-mini"""
        assert OpenAIProvider(api_key="sk-test").default_model == "gpt-4o-mini"

    @patch('core.llm_providers.ChatOpenAI')
    def test_create_llm(self, mock_chat_openai):
        """Should build ChatOpenAI with timeout and retries"""
        provider = OpenAIProvider(api_key="sk-test")

        provider.create_llm(temperature=0.2)

        kwargs = mock_chat_openai.call_args.kwargs
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.2
        assert kwargs["request_timeout"] == REQUEST_TIMEOUT_SECONDS
        assert kwargs["max_retries"] == MAX_RETRIES
        assert "base_url" not in kwargs
        assert "model_kwargs" not in kwargs

    @patch('core.llm_providers.ChatOpenAI')
    def test_create_llm_json_mode(self, mock_chat_openai):
        """Should request a JSON object response format"""
        provider = OpenAIProvider(api_key="sk-test")

        provider.create_llm(json_mode=True, max_tokens=4000)

        kwargs = mock_chat_openai.call_args.kwargs
        assert kwargs["model_kwargs"] == {"response_format": {"type": "json_object"}}
        assert kwargs["max_tokens"] == 4000


class TestNebiusProvider:
    """Test Nebius provider"""

    @patch('core.llm_providers.settings')
    def test_initialization_with_settings(self, mock_settings):
        """Should read key and endpoint from settings"""
        mock_settings.NEBIUS_API_KEY = "nebius-key"
        mock_settings.NEBIUS_ENDPOINT = "https://api.studio.nebius.ai/v1/"

        provider = NebiusProvider()

        assert provider.api_key == "nebius-key"
        assert provider.endpoint == "https://api.studio.nebius.ai/v1/"

    @patch('core.llm_providers.settings')
    def test_missing_endpoint_raises_error(self, mock_settings):
        """Should require an endpoint"""
        mock_settings.NEBIUS_API_KEY = "nebius-key"
        mock_settings.NEBIUS_ENDPOINT = None

        with pytest.raises(RuntimeError) as exc_info:
            NebiusProvider()

        assert "NEBIUS_ENDPOINT" in str(exc_info.value)

    @patch('core.llm_providers.ChatOpenAI')
    def test_create_llm_uses_endpoint(self, mock_chat_openai):
        """Should pass the endpoint as base_url"""
        provider = NebiusProvider(api_key="k", endpoint="https://nebius.example/v1/")

        provider.create_llm(model="custom-model")

        kwargs = mock_chat_openai.call_args.kwargs
        assert kwargs["base_url"] == "https://nebius.example/v1/"
        assert kwargs["model"] == "custom-model"


class TestSambanovaProvider:
    """Test SambaNova provider"""

    @patch('core.llm_providers.settings')
    def test_missing_api_key_raises_error(self, mock_settings):
        """Should raise RuntimeError when the key is missing"""
        mock_settings.SAMBANOVA_API_KEY = None
        mock_settings.SAMBANOVA_ENDPOINT = "https://api.sambanova.ai/v1"

        with pytest.raises(RuntimeError) as exc_info:
            SambanovaProvider()

        assert "SAMBANOVA_API_KEY" in str(exc_info.value)

    def test_default_model(self):
        """Should return the SambaNova default model"""
        provider = SambanovaProvider(api_key="k", endpoint="https://sambanova.example/v1")

        assert provider.default_model == "Llama-4-Maverick-17B-128E-Instruct"

    def test_is_openai_compatible(self):
        """Should share the OpenAI-compatible implementation"""
        assert issubclass(SambanovaProvider, OpenAICompatibleProvider)


class TestGeminiProvider:
    """Test Gemini provider"""

    @pytest.mark.skipif(GEMINI_AVAILABLE, reason="langchain-google-genai is installed")
    def test_unavailable_raises_error(self):
        """Should explain how to install Gemini support"""
        with pytest.raises(RuntimeError) as exc_info:
            GeminiProvider(api_key="g-key")

        assert "gemini" in str(exc_info.value).lower()

    @pytest.mark.skipif(not GEMINI_AVAILABLE, reason="langchain-google-genai not installed")
    @patch('core.llm_providers.settings')
    def test_missing_api_key_raises_error(self, mock_settings):
        """Should raise RuntimeError when the key is missing"""
        mock_settings.GEMINI_API_KEY = None

        with pytest.raises(RuntimeError) as exc_info:
            GeminiProvider()

        assert "GEMINI_API_KEY" in str(exc_info.value)

    @pytest.mark.skipif(not GEMINI_AVAILABLE, reason="langchain-google-genai not installed")
    @patch('core.llm_providers.ChatGoogleGenerativeAI')
    def test_create_llm_json_mode(self, mock_gemini):
        """Should ask Gemini for a JSON mime type"""
        GeminiProvider(api_key="g-key").create_llm(json_mode=True, max_tokens=500)

        kwargs = mock_gemini.call_args.kwargs
        assert kwargs["response_mime_type"] == "application/json"
        assert kwargs["max_output_tokens"] == 500
        assert kwargs["model"] == "gemini-2.5-flash"
