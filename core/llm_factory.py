"""
LLM Factory - Factory Pattern Implementation
Centralized factory for creating chat models from the configured provider.
"""
from typing import Optional
from langchain_core.language_models.chat_models import BaseChatModel

from core.settings import settings
from core.llm_providers import (
    LLMProvider,
    NebiusProvider,
    SambanovaProvider,
    OpenAIProvider,
    GeminiProvider,
)


class LLMFactory:
    """
    Factory class for creating LLM instances.
    New providers are added through register_provider().
    """

    # Registry of available providers
    _providers: dict[str, type[LLMProvider]] = {
        "openai": OpenAIProvider,
        "nebius": NebiusProvider,
        "sambanova": SambanovaProvider,
        "gemini": GeminiProvider,
    }

    @classmethod
    def register_provider(cls, name: str, provider_class: type[LLMProvider]) -> None:
        """
        Register a new LLM provider.

        Args:
            name: Provider identifier
            provider_class: Provider class implementing LLMProvider
        """
        cls._providers[name.lower()] = provider_class

    @classmethod
    def create(
        cls,
        provider_name: str,
        model: Optional[str] = None,
        temperature: float = 0.0,
        json_mode: bool = False,
        max_tokens: Optional[int] = None,
        **provider_kwargs
    ) -> BaseChatModel:
        """
        Create an LLM instance using the specified provider.

        Args:
            provider_name: Name of the provider ("openai", "nebius", ...)
            model: Optional model name (uses provider default if None)
            temperature: Temperature setting (0.0 - 1.0)
            json_mode: Request a single JSON object as the completion
            max_tokens: Optional completion length cap
            **provider_kwargs: Additional provider-specific arguments

        Raises:
            ValueError: If provider is not registered
            RuntimeError: If provider configuration is invalid

        Examples:
            >>> llm = LLMFactory.create("openai", json_mode=True)
            >>> llm = LLMFactory.create("nebius", model="custom-model", temperature=0.7)
        """
        provider_name = provider_name.lower()

        if provider_name not in cls._providers:
            available = ", ".join(cls._providers.keys())
            raise ValueError(
                f"Unknown provider: '{provider_name}'. "
                f"Available providers: {available}"
            )

        provider = cls._providers[provider_name](**provider_kwargs)
        return provider.create_llm(
            model=model,
            temperature=temperature,
            json_mode=json_mode,
            max_tokens=max_tokens,
        )

    @classmethod
    def list_providers(cls) -> list[str]:
        """Get list of registered provider names."""
        return list(cls._providers.keys())


def create_default_llm(
    json_mode: bool = False,
    max_tokens: Optional[int] = None,
    provider: Optional[str] = None,
) -> BaseChatModel:
    """
    Create a chat model from LLM_PROVIDER / MODEL_NAME / TEMPERATURE.

    Args:
        json_mode: Request JSON-object output
        max_tokens: Optional completion length cap
        provider: Override for the configured provider name
    """
    return LLMFactory.create(
        provider or settings.LLM_PROVIDER,
        model=settings.MODEL_NAME,
        temperature=settings.TEMPERATURE,
        json_mode=json_mode,
        max_tokens=max_tokens,
    )
