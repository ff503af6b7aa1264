"""
copilotrm.core.exceptions - Custom Exception Hierarchy
========================================================

Structured exceptions for the CopilotRM engine. Every exception carries a
machine-readable error code and a details dict, and serializes cleanly to
JSON for structlog and for API error bodies.

Exception Hierarchy:
    CopilotError (base)
        ├── ConfigurationError   - Invalid config, malformed YAML
        ├── ContextError         - Malformed OrchestratorContext (fail fast)
        ├── AgentError           - A specialist agent failed
        ├── LLMError             - Language-model call failed or timed out
        ├── SwarmRunError        - Unknown or already-closed swarm run
        └── AgentBusError        - Bus used before connect()

Recovery Scope:
    Most of these never reach the ultimate caller. They are caught at the
    smallest possible scope and surfaced through the trail instead:

        AgentError  → SwarmRecorder  → failed SwarmStep + error SwarmMessage
        AgentError  → Orchestrator   → "agent.error" AuditRecord
        LLMError    → Discussion     → fallback text for that single turn

    ContextError, ConfigurationError, SwarmRunError and AgentBusError are
    programmer errors and propagate.

Usage:
    >>> from copilotrm.core.exceptions import AgentError
    >>> raise AgentError(
    ...     message="Offer catalogue snapshot is empty",
    ...     agent_name="preventivi",
    ...     error_code="NO_HARDWARE_OFFERS",
    ... )
"""

from __future__ import annotations

from typing import Any, Optional


# =============================================================================
# Base Exception
# =============================================================================
class CopilotError(Exception):
    """Base exception for all CopilotRM errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable code, UPPER_SNAKE_CASE.
        details: Arbitrary debugging context.

    Example:
        >>> try:
        ...     orchestrator.run(ctx)
        ... except CopilotError as e:
        ...     print(f"[{e.error_code}] {e.message}")
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize this exception to a dictionary.

        Returns:
            Dictionary with error_type, message, error_code, and details.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


# =============================================================================
# Configuration Error
# =============================================================================
class ConfigurationError(CopilotError):
    """Raised when configuration is invalid or cannot be parsed.

    Example:
        >>> raise ConfigurationError(
        ...     message="copilotrm.yaml root must be a mapping",
        ...     details={"path": "copilotrm.yaml"},
        ... )
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Context Error
# =============================================================================
# The only input error the engine does not recover from: a context without
# an event means the caller wired the pipeline wrong.
# =============================================================================
class ContextError(CopilotError):
    """Raised when an OrchestratorContext is malformed (e.g. missing event)."""

    def __init__(
        self,
        message: str,
        error_code: str = "INVALID_CONTEXT",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Agent Error
# =============================================================================
class AgentError(CopilotError):
    """Raised when a specialist agent fails while executing on a context.

    Attributes:
        agent_name: Name of the failing agent (e.g. "telephony").
        event_id: Optional id of the event being processed.

    Example:
        >>> raise AgentError(
        ...     message="Missing ticket id in outcome payload",
        ...     agent_name="assistance",
        ...     event_id="evt_123",
        ... )
    """

    def __init__(
        self,
        message: str,
        agent_name: str,
        event_id: Optional[str] = None,
        error_code: str = "AGENT_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["agent_name"] = agent_name
        if event_id is not None:
            enriched_details["event_id"] = event_id

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.agent_name = agent_name
        self.event_id = event_id


# =============================================================================
# LLM Error
# =============================================================================
class LLMError(CopilotError):
    """Raised when a language-model call fails or exceeds its timeout.

    Attributes:
        provider: The provider name from LLMConfig.
    """

    def __init__(
        self,
        message: str,
        provider: str,
        error_code: str = "LLM_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["provider"] = provider

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.provider = provider


# =============================================================================
# Swarm Run Error
# =============================================================================
class SwarmRunError(CopilotError):
    """Raised when writing to a swarm run that does not exist or is closed.

    Attributes:
        run_id: The offending run id.
    """

    def __init__(
        self,
        message: str,
        run_id: str,
        error_code: str = "SWARM_RUN_NOT_FOUND",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["run_id"] = run_id

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.run_id = run_id


# =============================================================================
# Agent Bus Error
# =============================================================================
class AgentBusError(CopilotError):
    """Raised when the agent bus is used incorrectly (e.g. not connected)."""

    def __init__(
        self,
        message: str,
        error_code: str = "BUS_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)
