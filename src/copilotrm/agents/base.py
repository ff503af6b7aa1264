"""
copilotrm.agents.base - Abstract Business Agent
=================================================

BaseAgent for every specialist (assistance, quoting, telephony, energy,
hardware, customer-care, content, compliance). It implements the Template
Method pattern so that every agent validates, logs and reports failures
the same way, while each specialist only writes its business rules.

Template Method Pattern:

    ┌─────────────────────────────────────────────────────┐
    │  BusinessAgent.execute(ctx)      ← Public API       │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ 1. check ctx.event is present (ContextError) │   │
    │  │ 2. _execute(ctx)             ← Override this │   │
    │  │ 3. wrap unexpected errors in AgentError      │   │
    │  │ 4. return AgentExecutionResult               │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Agents are pure: they read the immutable OrchestratorContext and return
new TaskItem / CommunicationDraft values. They never call each other and
never perform I/O, so the traced recorder can run and isolate them one by
one.

Subclass Contract:
    - name: AgentName class attribute
    - supports(event_type) → bool
    - _execute(ctx) → AgentExecutionResult

Usage:
    class LoyaltyAgent(BusinessAgent):
        name = AgentName.CONTENT

        def supports(self, event_type):
            return event_type == EventType.PROMO_INGESTED

        def _execute(self, ctx):
            return self._result(notes=["nothing to do"])
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog

from copilotrm.core.enums import AgentName, Audience, Channel, DraftStatus, EventType, TaskKind
from copilotrm.core.exceptions import AgentError, ContextError
from copilotrm.core.models import (
    ActionCandidate,
    AgentExecutionResult,
    CommunicationDraft,
    OrchestratorContext,
    TaskItem,
)


# =============================================================================
# Logger Setup
# =============================================================================
# Each agent binds its name so every log line carries {"agent": "telephony"}.
# =============================================================================
logger = structlog.get_logger()


# =============================================================================
# Payload Helpers
# =============================================================================
# Event payloads are opaque maps coming from HTTP handlers and ingest jobs.
# These helpers read the few keys the rules and agents rely on, tolerating
# missing or mistyped values.
# =============================================================================
def payload_signals(ctx: OrchestratorContext) -> list[str]:
    """Return ``payload.inferredSignals`` as a list of strings."""
    signals = ctx.event.payload.get("inferredSignals") or []
    if not isinstance(signals, (list, tuple)):
        return []
    return [str(s) for s in signals]


def payload_text(ctx: OrchestratorContext, key: str, default: str = "") -> str:
    """Return ``payload[key]`` as a string, or ``default`` when missing."""
    value = ctx.event.payload.get(key)
    return default if value is None else str(value)


def invoice_line_descriptions(ctx: OrchestratorContext) -> list[str]:
    """Return the descriptions of ``payload.lines`` for an invoice event."""
    lines = ctx.event.payload.get("lines") or []
    if not isinstance(lines, (list, tuple)):
        return []
    return [
        str(line.get("description", "")) for line in lines if isinstance(line, dict)
    ]


class BusinessAgent(ABC):
    """Abstract base class for all CopilotRM specialist agents.

    What BusinessAgent Handles:
        - Context validation (missing event fails fast)
        - Structured logging with the agent name bound
        - Wrapping unexpected errors in AgentError
        - Factory helpers for tasks, drafts and results

    What Subclasses Must Implement:
        - name (class attribute)
        - supports(event_type)
        - _execute(ctx)

    Attributes:
        name: The agent's identifier.
        _logger: Structured logger bound with the agent name.
    """

    name: AgentName

    def __init__(self) -> None:
        self._logger = logger.bind(agent=self.name.value)

    # =========================================================================
    # Public API
    # =========================================================================

    @abstractmethod
    def supports(self, event_type: EventType) -> bool:
        """Return True if this agent reacts to ``event_type``."""
        ...

    def execute(self, ctx: OrchestratorContext) -> AgentExecutionResult:
        """Run the agent on a context.

        Args:
            ctx: The read-only run snapshot.

        Returns:
            The agent's tasks, drafts, proposed actions and notes.

        Raises:
            ContextError: If ``ctx`` carries no event.
            AgentError: If the agent's rules fail. The original exception
                is chained as ``__cause__``.
        """
        if ctx is None or getattr(ctx, "event", None) is None:
            raise ContextError(
                message=f"Agent {self.name.value} received a context without an event",
                details={"agent_name": self.name.value},
            )

        self._logger.debug(
            "agent_execution_starting",
            event_id=ctx.event.id,
            event_type=ctx.event.type.value,
        )

        try:
            result = self._execute(ctx)
        except AgentError:
            raise
        except Exception as e:
            self._logger.error(
                "agent_execution_failed",
                event_id=ctx.event.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise AgentError(
                message=f"Agent {self.name.value} failed: {e}",
                agent_name=self.name.value,
                event_id=ctx.event.id,
                error_code="AGENT_EXECUTION_FAILED",
                details={"error_type": type(e).__name__},
            ) from e

        self._logger.debug(
            "agent_execution_completed",
            event_id=ctx.event.id,
            tasks=len(result.tasks),
            drafts=len(result.drafts),
            notes=len(result.notes),
        )
        return result

    # =========================================================================
    # Abstract Hook
    # =========================================================================

    @abstractmethod
    def _execute(self, ctx: OrchestratorContext) -> AgentExecutionResult:
        """The agent's business rules. Called only with a valid context."""
        ...

    # =========================================================================
    # Factory Helpers
    # =========================================================================

    def _task(
        self,
        ctx: OrchestratorContext,
        kind: TaskKind,
        title: str,
        assignee_role: str,
        priority: int,
        **kwargs: Any,
    ) -> TaskItem:
        """Build a TaskItem for the event's customer."""
        kwargs.setdefault("customer_id", ctx.event.customer_id)
        return TaskItem(
            kind=kind,
            title=title,
            assignee_role=assignee_role,
            priority=priority,
            **kwargs,
        )

    def _draft(
        self,
        ctx: OrchestratorContext,
        channel: Channel,
        body: str,
        reason: str,
        *,
        audience: Audience = Audience.ONE_TO_ONE,
        needs_approval: bool = True,
        subject: Optional[str] = None,
        related_offer_id: Optional[str] = None,
        recipient_ref: Optional[str] = None,
    ) -> CommunicationDraft:
        """Build a CommunicationDraft; status follows ``needs_approval``."""
        return CommunicationDraft(
            customer_id=ctx.event.customer_id if audience == Audience.ONE_TO_ONE else None,
            channel=channel,
            audience=audience,
            subject=subject,
            body=body,
            related_offer_id=related_offer_id,
            needs_approval=needs_approval,
            status=DraftStatus.PENDING_APPROVAL if needs_approval else DraftStatus.READY,
            reason=reason,
            recipient_ref=recipient_ref,
        )

    def _result(
        self,
        *,
        tasks: Optional[list[TaskItem]] = None,
        drafts: Optional[list[CommunicationDraft]] = None,
        notes: Optional[list[str]] = None,
        actions: Optional[list[ActionCandidate]] = None,
    ) -> AgentExecutionResult:
        """Build this agent's AgentExecutionResult."""
        return AgentExecutionResult(
            agent=self.name,
            actions=actions or [],
            tasks=tasks or [],
            drafts=drafts or [],
            notes=notes or [],
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name.value!r})"
