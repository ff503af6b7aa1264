"""
copilotrm.core.models - Core Data Models
==========================================

Pydantic models that flow through every stage of the engine. The engine
never performs I/O: an external collaborator resolves the customer and
fetches active offers/objectives, hands over an OrchestratorContext, and
receives pure data back.

Data Flow:
    ┌───────────────┐   generate    ┌─────────────────┐   rank    ┌──────────────────┐
    │ DomainEvent + │ ────────────→ │ ActionCandidate │ ────────→ │ ScoredCandidate  │
    │ Context       │               │ (+ Trigger)     │           │ (cand, breakdown)│
    └───────────────┘               └─────────────────┘           └────────┬─────────┘
                                                                           │
                      ┌─────────────────────────┬──────────────────────────┤
                      ↓                         ↓                          ↓
               ┌─────────────┐        ┌──────────────────┐       ┌──────────────────┐
               │ HandoffEdge │        │ TaskItem         │       │ AuditRecord      │
               │ (projection)│        │ CommunicationDraft│      │ (append-only)    │
               └─────────────┘        └──────────────────┘       └──────────────────┘

Design Principles:
    1. Snapshots: the context and the candidates are never mutated in place.
       Enrichment goes through model_copy(update=...).
    2. ScoreBreakdown.total is derived from its own fields, never hand-set.
    3. Every materialized item carries a stable, prefixed id.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, computed_field

from copilotrm.core.enums import (
    ActionType,
    AgentName,
    Audience,
    Channel,
    DraftStatus,
    EventType,
    OfferCategory,
    TaskKind,
    TaskStatus,
    Trigger,
)


# =============================================================================
# Helpers: IDs and Timestamps
# =============================================================================
def _generate_id(prefix: str) -> str:
    """Generate a prefixed unique identifier, e.g. "act_3f9c0a1b2d4e".

    Args:
        prefix: Short entity prefix ("evt", "act", "task", "draft", "audit").

    Returns:
        The prefix joined to 12 hex characters of a UUID4.
    """
    return f"{prefix}_{uuid4().hex[:12]}"


def _now() -> datetime:
    """Current UTC timestamp. Every timestamp in CopilotRM is UTC."""
    return datetime.now(timezone.utc)


# =============================================================================
# Inbound: Domain Event
# =============================================================================
class DomainEvent(BaseModel):
    """A business event, immutable once created.

    Attributes:
        id: Event id ("evt_...").
        type: One of the closed EventType values.
        occurred_at: When the event happened (UTC).
        customer_id: Customer the event refers to, if resolved.
        payload: Opaque event-specific data. Known keys per type:
            - ticket outcome: outcome, ticketId, inferredSignals
            - invoice: lines[{description, qty, unitCost}]
            - promo: title, offerId
            - inbound email: subject, body, from

    Example:
        >>> event = DomainEvent(
        ...     type=EventType.TICKET_OUTCOME,
        ...     customer_id="cust_1",
        ...     payload={"outcome": "not-worth-repairing", "inferredSignals": ["gamer"]},
        ... )
    """

    id: str = Field(default_factory=lambda: _generate_id("evt"), description="Event id")
    type: EventType = Field(description="Closed event type")
    occurred_at: datetime = Field(default_factory=_now, description="Occurrence time (UTC)")
    customer_id: Optional[str] = Field(default=None, description="Resolved customer id")
    payload: dict[str, Any] = Field(default_factory=dict, description="Opaque event data")


# =============================================================================
# Pre-fetched Context: Customer, Offers, Objectives
# =============================================================================
class ConsentState(BaseModel):
    """Per-channel marketing consent flags."""

    whatsapp: bool = False
    email: bool = False
    telegram: bool = False

    def allows(self, channel: Optional[Channel]) -> bool:
        """Return True if the customer consented on ``channel``.

        Channels without a consent flag (social, blog) are never consented
        on a one-to-one basis.
        """
        flags = {
            Channel.WHATSAPP: self.whatsapp,
            Channel.EMAIL: self.email,
            Channel.TELEGRAM: self.telegram,
        }
        return flags.get(channel, False) if channel is not None else False


class CustomerProfile(BaseModel):
    """A CRM customer as seen by the engine.

    Attributes:
        commercial_saturation_score: 0-100; how much commercial contact the
            customer received recently. Used as a penalty by scoring.
    """

    id: str
    full_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    segments: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    consents: ConsentState = Field(default_factory=ConsentState)
    commercial_saturation_score: float = Field(default=0.0, ge=0.0, le=100.0)


class ProductOffer(BaseModel):
    """An active catalogue offer."""

    id: str
    category: OfferCategory
    title: str
    margin_pct: Optional[float] = None
    stock_qty: Optional[int] = None
    suggested_price: Optional[float] = None
    target_segments: list[str] = Field(default_factory=list)
    active: bool = True


class ChannelWindow(BaseModel):
    """Hours of the day during which a channel may be used."""

    channel: Channel
    from_hour: int = Field(ge=0, le=23)
    to_hour: int = Field(ge=1, le=24)


class ManagerObjective(BaseModel):
    """A commercial objective set by the store manager.

    Only ``preferred_offer_ids`` participates in scoring; the remaining
    fields are carried for the operator UI and discussion prompts.
    """

    id: str
    name: str
    preferred_offer_ids: list[str] = Field(default_factory=list)
    category_weights: dict[str, float] = Field(default_factory=dict)
    stock_clearance_offer_ids: list[str] = Field(default_factory=list)
    min_margin_pct: Optional[float] = None
    channel_windows: list[ChannelWindow] = Field(default_factory=list)
    active: bool = True


class AssistanceTicket(BaseModel):
    """A repair ticket. Used by the discussion coordinator to pick defaults."""

    id: str
    customer_id: Optional[str] = None
    device_type: str = ""
    issue: str = ""
    outcome: Optional[str] = None
    inferred_signals: list[str] = Field(default_factory=list)
    status: Literal["open", "closed"] = "open"

    @property
    def is_open(self) -> bool:
        return self.status == "open"


class OrchestratorContext(BaseModel):
    """Read-only snapshot handed to every rule and agent of a run.

    Attributes:
        event: The triggering event. Required; a context without one is a
            programmer error and entry points raise ContextError.
        customer: Resolved customer profile, if any.
        active_objectives: Manager objectives active at ``now``.
        active_offers: Catalogue offers, in catalogue order. Rules pick the
            first match in this order.
        now: Snapshot time.
        enriched_data: What each context provider returned, keyed by
            provider name. Empty unless the run went through providers.
    """

    event: DomainEvent
    customer: Optional[CustomerProfile] = None
    active_objectives: list[ManagerObjective] = Field(default_factory=list)
    active_offers: list[ProductOffer] = Field(default_factory=list)
    now: datetime = Field(default_factory=_now)
    enriched_data: dict[str, Any] = Field(default_factory=dict)

    def find_offer(self, offer_id: Optional[str]) -> Optional[ProductOffer]:
        """Look up an active offer by id; None when absent or ``offer_id`` is None."""
        if offer_id is None:
            return None
        for offer in self.active_offers:
            if offer.id == offer_id:
                return offer
        return None


# =============================================================================
# Ranking Pipeline
# =============================================================================
class ScoreBreakdown(BaseModel):
    """Per-candidate score components.

    ``total`` is a computed field: the equal-weight sum of the positive
    components minus the saturation penalty, rounded to 4 decimals. It is
    serialized with the other fields but can never be passed in.
    """

    context_fit: float
    profile_fit: float
    objective_boost: float
    margin_score: float
    stock_score: float
    channel_consent_score: float
    saturation_penalty: float
    confidence_score: float

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> float:
        raw = (
            self.context_fit
            + self.profile_fit
            + self.objective_boost
            + self.margin_score
            + self.stock_score
            + self.channel_consent_score
            + self.confidence_score
            - self.saturation_penalty
        )
        return round(raw, 4)


class ActionCandidate(BaseModel):
    """A proposed next-best action, before or after ranking.

    Attributes:
        trigger: The rule that produced the candidate; join key for handoffs.
        metadata: Rule seeds (``context_fit``, ``profile_fit``) plus any
            rule-specific extras.
        score_breakdown: Set on the ranked copy only (see scoring.py).
    """

    id: str = Field(default_factory=lambda: _generate_id("act"))
    agent: AgentName
    action_type: ActionType
    title: str
    trigger: Optional[Trigger] = None
    channel: Optional[Channel] = None
    offer_id: Optional[str] = None
    customer_id: Optional[str] = None
    score_breakdown: Optional[ScoreBreakdown] = None
    confidence: float = Field(ge=0.0, le=1.0)
    needs_approval: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)


class ScoredCandidate(BaseModel):
    """The (candidate, breakdown) pair returned by the scoring stage."""

    candidate: ActionCandidate
    breakdown: ScoreBreakdown

    @property
    def total(self) -> float:
        return self.breakdown.total

    def ranked_action(self) -> ActionCandidate:
        """Return a copy of the candidate with its breakdown attached."""
        return self.candidate.model_copy(update={"score_breakdown": self.breakdown})


class HandoffEdge(BaseModel):
    """A directed suggestion that ``to_agent`` should follow up ``from_agent``."""

    from_agent: AgentName
    to_agent: AgentName
    reason: str
    source_action_id: Optional[str] = None
    blocking: bool = False
    requires_approval: bool = False


# =============================================================================
# Materialized Work
# =============================================================================
class TaskItem(BaseModel):
    """Internal work item for an operator role."""

    id: str = Field(default_factory=lambda: _generate_id("task"))
    kind: TaskKind
    title: str
    assignee_role: str
    priority: int = Field(ge=1, le=10)
    customer_id: Optional[str] = None
    ticket_id: Optional[str] = None
    offer_id: Optional[str] = None
    status: TaskStatus = TaskStatus.OPEN
    created_at: datetime = Field(default_factory=_now)


class CommunicationDraft(BaseModel):
    """An outbound message waiting for approval or dispatch."""

    id: str = Field(default_factory=lambda: _generate_id("draft"))
    customer_id: Optional[str] = None
    channel: Channel
    audience: Audience = Audience.ONE_TO_ONE
    subject: Optional[str] = None
    body: str
    related_offer_id: Optional[str] = None
    needs_approval: bool = True
    status: DraftStatus = DraftStatus.PENDING_APPROVAL
    reason: str = ""
    recipient_ref: Optional[str] = None


class AuditRecord(BaseModel):
    """Append-only record of an externally observable step."""

    id: str = Field(default_factory=lambda: _generate_id("audit"))
    actor: str
    type: str
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_now)


# =============================================================================
# Agent and Orchestrator Results
# =============================================================================
class AgentExecutionResult(BaseModel):
    """What one specialist agent produced for a context."""

    agent: AgentName
    actions: list[ActionCandidate] = Field(default_factory=list)
    tasks: list[TaskItem] = Field(default_factory=list)
    drafts: list[CommunicationDraft] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


class EvaluationResult(BaseModel):
    """An evaluator's verdict on the agent results of a run."""

    should_continue: bool = True
    notes: list[str] = Field(default_factory=list)


class OrchestratorOutput(BaseModel):
    """Result of a synchronous orchestration run.

    ``ranked_actions[0]`` is the recommendation.
    """

    ranked_actions: list[ActionCandidate] = Field(default_factory=list)
    handoffs: list[HandoffEdge] = Field(default_factory=list)
    tasks: list[TaskItem] = Field(default_factory=list)
    drafts: list[CommunicationDraft] = Field(default_factory=list)
    audit_records: list[AuditRecord] = Field(default_factory=list)

    @property
    def top_action(self) -> Optional[ActionCandidate]:
        return self.ranked_actions[0] if self.ranked_actions else None


class TracedOutput(BaseModel):
    """Result of a traced run: the output plus the run id to query."""

    output: OrchestratorOutput
    run_id: str
