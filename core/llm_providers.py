"""
LLM Providers - Strategy Pattern Implementation
Each provider knows how to build a chat model for the code assistant.
"""
from abc import ABC, abstractmethod
from typing import Optional
from langchain_openai import ChatOpenAI
from langchain_core.language_models.chat_models import BaseChatModel

from core.settings import settings

# Gemini support is an optional extra
try:
    from langchain_google_genai import ChatGoogleGenerativeAI
    GEMINI_AVAILABLE = True
except ImportError:
    GEMINI_AVAILABLE = False


REQUEST_TIMEOUT_SECONDS = 60.0
MAX_RETRIES = 3


class LLMProvider(ABC):
    """
    Abstract Base Class for LLM Providers (Strategy Pattern).
    All providers must implement this interface.
    """

    @abstractmethod
    def create_llm(
        self,
        model: Optional[str] = None,
        temperature: float = 0.0,
        json_mode: bool = False,
        max_tokens: Optional[int] = None,
    ) -> BaseChatModel:
        """
        Create and return a chat model.

        Args:
            model: Model identifier (uses default if None)
            temperature: Temperature setting
            json_mode: Ask the model for a single JSON object
            max_tokens: Upper bound on completion length

        Returns:
            Configured chat model
        """
        pass

    @abstractmethod
    def validate_configuration(self) -> None:
        """Validate that provider configuration is complete."""
        pass

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Return the default model for this provider."""
        pass


class OpenAICompatibleProvider(LLMProvider):
    """
    Shared implementation for anything that speaks the OpenAI chat API.
    Subclasses only say where the key and endpoint come from.
    """

    name = "openai-compatible"
    requires_endpoint = True

    def __init__(self, api_key: Optional[str] = None, endpoint: Optional[str] = None):
        self.api_key = api_key
        self.endpoint = endpoint
        self.validate_configuration()

    @property
    def default_model(self) -> str:
        return "gpt-4o-mini"

    def validate_configuration(self) -> None:
        if not self.api_key or (self.requires_endpoint and not self.endpoint):
            env_prefix = self.name.upper()
            needed = f"{env_prefix}_API_KEY and {env_prefix}_ENDPOINT" if self.requires_endpoint else f"{env_prefix}_API_KEY"
            raise RuntimeError(
                f"{self.name.capitalize()} configuration incomplete. "
                f"Set {needed} in your .env file."
            )

    def create_llm(
        self,
        model: Optional[str] = None,
        temperature: float = 0.0,
        json_mode: bool = False,
        max_tokens: Optional[int] = None,
    ) -> ChatOpenAI:
        """
        Build a ChatOpenAI client with timeout and retry protection.
        JSON mode is passed through as the OpenAI `response_format`.
        """
        kwargs = {
            "api_key": self.api_key,
            "model": model or self.default_model,
            "temperature": temperature,
            "request_timeout": REQUEST_TIMEOUT_SECONDS,
            "max_retries": MAX_RETRIES,
        }
        if self.endpoint:
            kwargs["base_url"] = str(self.endpoint)
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        if json_mode:
            kwargs["model_kwargs"] = {"response_format": {"type": "json_object"}}
        return ChatOpenAI(**kwargs)


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI LLM Provider Implementation."""

    name = "openai"
    requires_endpoint = False

    def __init__(self, api_key: Optional[str] = None):
        super().__init__(api_key=api_key or settings.OPENAI_API_KEY)


class NebiusProvider(OpenAICompatibleProvider):
    """Nebius LLM Provider Implementation."""

    name = "nebius"

    def __init__(self, api_key: Optional[str] = None, endpoint: Optional[str] = None):
        super().__init__(
            api_key=api_key or settings.NEBIUS_API_KEY,
            endpoint=endpoint or settings.NEBIUS_ENDPOINT,
        )

    @property
    def default_model(self) -> str:
        return "Qwen/Qwen2.5-Coder-32B-Instruct"


class SambanovaProvider(OpenAICompatibleProvider):
    """SambaNova LLM Provider Implementation."""

    name = "sambanova"

    def __init__(self, api_key: Optional[str] = None, endpoint: Optional[str] = None):
        super().__init__(
            api_key=api_key or settings.SAMBANOVA_API_KEY,
            endpoint=endpoint or settings.SAMBANOVA_ENDPOINT,
        )

    @property
    def default_model(self) -> str:
        return "Llama-4-Maverick-17B-128E-Instruct"


class GeminiProvider(LLMProvider):
    """Google Gemini LLM Provider Implementation."""

    def __init__(self, api_key: Optional[str] = None):
        if not GEMINI_AVAILABLE:
            raise RuntimeError(
                "Gemini support not available. "
                "Install with: pip install webcraft-ai[gemini]"
            )
        self.api_key = api_key or settings.GEMINI_API_KEY
        self.validate_configuration()

    @property
    def default_model(self) -> str:
        return "gemini-2.5-flash"

    def validate_configuration(self) -> None:
        """Validate Gemini configuration."""
        if not self.api_key:
            raise RuntimeError(
                "Gemini configuration incomplete. "
                "Set GEMINI_API_KEY in your .env file."
            )

    def create_llm(
        self,
        model: Optional[str] = None,
        temperature: float = 0.0,
        json_mode: bool = False,
        max_tokens: Optional[int] = None,
    ) -> BaseChatModel:
        kwargs = {
            "google_api_key": self.api_key,
            "model": model or self.default_model,
            "temperature": temperature,
            "timeout": REQUEST_TIMEOUT_SECONDS,
            "max_retries": MAX_RETRIES,
        }
        if max_tokens:
            kwargs["max_output_tokens"] = max_tokens
        if json_mode:
            kwargs["response_mime_type"] = "application/json"
        return ChatGoogleGenerativeAI(**kwargs)
