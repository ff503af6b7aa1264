"""
copilotrm.integrations.llm.mock - Mock LLM Provider for Testing
=================================================================

A provider that never touches the network. It is the default provider and
drives every discussion test.

How It Works:
    The mock keeps a FIFO queue. Each chat() call:
    1. Records the call in call_history.
    2. Sleeps for the configured delay (to exercise timeouts).
    3. Raises if the failure switch is on.
    4. Pops the next queued item: a response is returned, an exception
       is raised.
    5. With an empty queue, returns a smart default picked from the
       persona named in the system prompt.

Smart defaults never contain @mentions, so an un-primed discussion always
takes the deterministic fallback path.

Usage:
    >>> provider = MockLLMProvider()
    >>> provider.queue_response("Brief: serve un preventivo. @Commerciale")
    >>> provider.queue_error("upstream 503")
    >>> response = await provider.chat([LLMMessage(role="user", content="...")])
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Any, Optional, Union

import structlog

from copilotrm.core.config import LLMConfig
from copilotrm.integrations.llm.base import (
    BaseLLMProvider,
    LLMMessage,
    LLMResponse,
    LLMUsage,
    ModelTier,
)


logger = structlog.get_logger()


class MockLLMProvider(BaseLLMProvider):
    """Mock LLM provider for testing and development.

    Features:
        - **Response Queue**: queued responses and queued errors, FIFO.
        - **Smart Defaults**: persona-aware canned text.
        - **Call History**: every chat() call, for assertions.
        - **Error Simulation**: a global failure switch.
        - **Latency Simulation**: an artificial delay per call.

    Example:
        >>> provider = MockLLMProvider()
        >>> provider.queue_response("Hello")
        >>> (await provider.chat([LLMMessage(role="user", content="hi")])).content
        'Hello'
    """

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        default_response: str = "Risposta simulata: nessun elemento critico rilevato.",
    ) -> None:
        if config is None:
            config = LLMConfig(provider="mock", model="mock-model")
        super().__init__(config)

        # Queue items are either a response to return or an exception to raise
        self._response_queue: deque[Union[LLMResponse, Exception]] = deque()
        self._call_history: list[dict[str, Any]] = []
        self._default_response = default_response

        self._should_fail: bool = False
        self._failure_message: str = "Mock LLM API error"
        self._delay_seconds: float = 0.0

        self._logger = logger.bind(component="mock_llm_provider")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """All recorded chat() calls.

        Each entry contains "messages" (list of dicts), "system_prompt",
        "prompt" (the last user message), "tier" and "max_tokens".
        """
        return self._call_history

    @property
    def call_count(self) -> int:
        return len(self._call_history)

    @property
    def queue_size(self) -> int:
        return len(self._response_queue)

    # =========================================================================
    # Queue Management
    # =========================================================================

    def queue_response(
        self,
        content: str,
        *,
        model: Optional[str] = None,
        finish_reason: str = "stop",
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """Queue a response for the next chat() call.

        Example:
            >>> provider.queue_response("Brief @Assistenza @Telefonia")
            >>> provider.queue_response("Analisi tecnica completata")
        """
        self._response_queue.append(
            LLMResponse(
                content=content,
                model=model or self.model,
                usage=self._estimate_usage(content),
                finish_reason=finish_reason,
                metadata=metadata or {},
            )
        )

    def queue_responses(self, contents: list[str]) -> None:
        """Queue several responses in order."""
        for content in contents:
            self.queue_response(content)

    def queue_error(self, message: str = "Mock LLM API error") -> None:
        """Queue a failure: the matching chat() call raises RuntimeError."""
        self._response_queue.append(RuntimeError(message))

    def clear_queue(self) -> None:
        self._response_queue.clear()

    def clear_history(self) -> None:
        self._call_history.clear()

    # =========================================================================
    # Error and Latency Simulation
    # =========================================================================

    def set_should_fail(self, should_fail: bool, message: str = "Mock LLM API error") -> None:
        """Make every chat() call raise RuntimeError while enabled."""
        self._should_fail = should_fail
        self._failure_message = message

    def set_delay(self, seconds: float) -> None:
        """Sleep ``seconds`` inside every chat() call (0 disables)."""
        self._delay_seconds = max(0.0, seconds)

    # =========================================================================
    # Core Interface
    # =========================================================================

    async def chat(
        self,
        messages: list[LLMMessage],
        *,
        tier: Optional[ModelTier] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Return the next queued response or a smart default.

        Raises:
            RuntimeError: When the failure switch is on or a queued error
                is popped.
        """
        system_prompt = next((m.content for m in messages if m.role == "system"), None)
        user_prompt = next((m.content for m in reversed(messages) if m.role == "user"), "")

        self._call_history.append({
            "messages": [m.model_dump() for m in messages],
            "system_prompt": system_prompt,
            "prompt": user_prompt,
            "tier": tier,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "kwargs": kwargs,
        })

        self._logger.debug(
            "mock_chat_called",
            message_count=len(messages),
            tier=tier,
            queue_size=len(self._response_queue),
        )

        if self._delay_seconds:
            await asyncio.sleep(self._delay_seconds)

        if self._should_fail:
            raise RuntimeError(self._failure_message)

        if self._response_queue:
            item = self._response_queue.popleft()
            if isinstance(item, Exception):
                raise item
            return item

        return self._generate_smart_default(system_prompt or "")

    def get_available_models(self) -> list[str]:
        return ["mock-model", "mock-small", "mock-large"]

    # =========================================================================
    # Smart Default Generation
    # =========================================================================

    def _generate_smart_default(self, system_prompt: str) -> LLMResponse:
        """Pick a canned answer from the persona named in the system prompt.

        Keyword-based detection:
            - "moderatore" → operator-facing synthesis
            - "critico"    → confirmation without challenges
            - "coordinatore" / "orchestratore" → brief without mentions
            - otherwise    → the default response
        """
        lowered = system_prompt.lower()

        if "moderatore" in lowered:
            content = (
                "Azione consigliata: contattare il cliente oggi, presentare la proposta "
                "più coerente con il suo profilo e fissare un follow-up entro 48 ore."
            )
        elif "critico" in lowered:
            content = "Le proposte sono solide e supportate dai dati disponibili."
        elif "orchestratore" in lowered or "coordinatore" in lowered:
            content = "Brief: raccogliere il parere degli specialisti sulla richiesta dell'operatore."
        else:
            content = self._default_response

        return LLMResponse(
            content=content,
            model=self.model,
            usage=self._estimate_usage(content),
            finish_reason="stop",
            metadata={"source": "smart_default"},
        )

    @staticmethod
    def _estimate_usage(text: str) -> LLMUsage:
        """Estimate tokens at roughly 4 characters per token."""
        estimated_tokens = max(1, len(text) // 4)
        return LLMUsage(
            prompt_tokens=estimated_tokens,
            completion_tokens=estimated_tokens,
            total_tokens=estimated_tokens * 2,
        )
