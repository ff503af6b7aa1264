"""
copilotrm.integrations.llm - Language Model Providers
=======================================================

The language-model collaborator used by the discussion coordinator.

Available Providers:
    - BaseLLMProvider: Abstract chat-style contract.
    - MockLLMProvider: Queued/canned responses for tests and local runs.

Usage:
    >>> from copilotrm.integrations.llm import create_llm_provider
    >>> provider = create_llm_provider(config.llm)
"""

from copilotrm.integrations.llm.base import BaseLLMProvider, LLMMessage, LLMResponse, LLMUsage
from copilotrm.integrations.llm.factory import create_llm_provider
from copilotrm.integrations.llm.mock import MockLLMProvider

__all__ = [
    "BaseLLMProvider",
    "LLMMessage",
    "LLMResponse",
    "LLMUsage",
    "MockLLMProvider",
    "create_llm_provider",
]
