"""
copilotrm.integrations.llm.base - Abstract LLM Provider Interface
==================================================================

The contract every language-model provider implements. The engine treats
the model as an external collaborator: it is only used to write the turns
of an operator discussion, and every call is wrapped in a timeout and a
deterministic fallback by the caller.

    ┌─────────────────────┐       chat()        ┌──────────────────┐
    │ DiscussionCoordinator│ ──────────────────→ │  BaseLLMProvider  │
    │                     │ ←── LLMResponse ─── │  (abstract)       │
    └─────────────────────┘                     └──────────┬────────┘
                                                           │
                                                  ┌────────┴────────┐
                                                  │ MockLLMProvider │
                                                  └─────────────────┘

Chat Model:
    A call is a list of LLMMessage(role, content) with roles "system",
    "user", "assistant", plus an optional model tier hint
    ("small" | "medium" | "large") that providers may map to a concrete
    model. generate_with_system() is a convenience wrapper around chat().

Usage:
    >>> class MyProvider(BaseLLMProvider):
    ...     async def chat(self, messages, **kwargs):
    ...         text = await my_api_call([m.model_dump() for m in messages])
    ...         return LLMResponse(content=text, model=self.model)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from copilotrm.core.config import LLMConfig


ModelTier = Literal["small", "medium", "large"]


# =============================================================================
# Request / Response Models
# =============================================================================
class LLMMessage(BaseModel):
    """One chat message sent to the model."""

    role: Literal["system", "user", "assistant"]
    content: str


class LLMUsage(BaseModel):
    """Token usage for a single call."""

    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)


class LLMResponse(BaseModel):
    """Standardized response from any provider.

    Attributes:
        content: The generated text.
        model: Model identifier that produced the response.
        usage: Token counts.
        finish_reason: "stop", "length" or "error".
        metadata: Provider-specific extras.
        created_at: Response time (UTC).
    """

    content: str = Field(description="The generated text content")
    model: str = Field(description="Model identifier that produced this response")
    usage: LLMUsage = Field(default_factory=LLMUsage)
    finish_reason: str = Field(default="stop")
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# =============================================================================
# Abstract Base LLM Provider
# =============================================================================
class BaseLLMProvider(ABC):
    """Abstract base class for all LLM providers.

    Subclasses implement chat(). Everything else is derived.

    Attributes:
        _config: The LLM configuration.
    """

    def __init__(self, config: LLMConfig) -> None:
        self._config = config

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def provider_name(self) -> str:
        return self._config.provider

    @property
    def model(self) -> str:
        return self._config.model

    @property
    def temperature(self) -> float:
        return self._config.temperature

    @property
    def max_tokens(self) -> int:
        return self._config.max_tokens

    @property
    def config(self) -> LLMConfig:
        return self._config

    # =========================================================================
    # Abstract Methods
    # =========================================================================

    @abstractmethod
    async def chat(
        self,
        messages: list[LLMMessage],
        *,
        tier: Optional[ModelTier] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Run one chat completion.

        Args:
            messages: Ordered conversation, usually one system + one user.
            tier: Model size hint. None means the provider default.
            temperature: Override of the configured temperature.
            max_tokens: Override of the configured max_tokens.
            **kwargs: Provider-specific keyword arguments.

        Returns:
            LLMResponse with the generated content.

        Raises:
            Exception: Provider-specific failures. Callers in the engine
                never let these escape a discussion turn.
        """
        ...

    # =========================================================================
    # Convenience
    # =========================================================================

    async def generate_with_system(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        tier: Optional[ModelTier] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Shortcut for a system + user chat call."""
        return await self.chat(
            [
                LLMMessage(role="system", content=system_prompt),
                LLMMessage(role="user", content=user_prompt),
            ],
            tier=tier,
            max_tokens=max_tokens,
            **kwargs,
        )

    async def validate(self) -> bool:
        """Check that the provider is usable. Override in real providers."""
        return True

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"provider={self.provider_name!r}, "
            f"model={self.model!r})"
        )
