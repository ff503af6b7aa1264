"""
copilotrm.integrations.llm.factory - LLM Provider Factory
============================================================

Maps ``LLMConfig.provider`` to a concrete provider.

Usage:
    >>> provider = create_llm_provider(LLMConfig(provider="mock"))
    >>> type(provider)  # MockLLMProvider
"""

from __future__ import annotations

from copilotrm.core.config import LLMConfig
from copilotrm.core.exceptions import ConfigurationError
from copilotrm.integrations.llm.base import BaseLLMProvider


def create_llm_provider(config: LLMConfig) -> BaseLLMProvider:
    """Create an LLM provider instance based on configuration.

    Supported providers:
        - "mock" → MockLLMProvider (no API key needed)

    Hosted providers are plugged in by the host application, which passes
    its own BaseLLMProvider subclass to the facade.

    Args:
        config: LLM configuration.

    Returns:
        A ready-to-use provider.

    Raises:
        ConfigurationError: If the provider name is not recognized.
    """
    provider_name = config.provider.lower()

    if provider_name == "mock":
        from copilotrm.integrations.llm.mock import MockLLMProvider
        return MockLLMProvider(config)

    raise ConfigurationError(
        message=f"Unknown LLM provider: '{provider_name}'",
        error_code="UNKNOWN_LLM_PROVIDER",
        details={"provider": provider_name, "available": ["mock"]},
    )
