"""
copilotrm.core.enums - Type-Safe Enumerations
===============================================

This module defines every closed vocabulary used by the CopilotRM engine.
All enums inherit from both `str` and `Enum`, which means:
    - They serialize to strings in JSON/YAML (Pydantic-friendly)
    - They compare with plain strings: EventType.TICKET_OUTCOME == "assistance.ticket.outcome"
    - The wire values match what the ingest jobs and the CRM front-end send

Architecture Mapping:

    ┌─────────────────────────────────────────────────────────────────┐
    │  INBOUND                                                        │
    │    EventType: what happened (ticket outcome, invoice, promo)    │
    ├─────────────────────────────────────────────────────────────────┤
    │  RANKING PIPELINE                                               │
    │    AgentName / Trigger / ActionType: who proposes what and why  │
    ├─────────────────────────────────────────────────────────────────┤
    │  MATERIALIZED WORK                                              │
    │    TaskKind / TaskStatus / DraftStatus / Channel / Audience     │
    ├─────────────────────────────────────────────────────────────────┤
    │  TRACED EXECUTION                                               │
    │    SwarmStatus / SwarmStepStatus / SwarmMessageKind /           │
    │    HandoffStatus                                                │
    ├─────────────────────────────────────────────────────────────────┤
    │  OPERATOR DISCUSSION                                            │
    │    DiscussionKind / DiscussionEventType                         │
    └─────────────────────────────────────────────────────────────────┘
"""

from enum import Enum


# =============================================================================
# Domain Event Types
# =============================================================================
# The closed set of business events the engine reacts to. Producers are
# external collaborators: HTTP handlers, the invoice ingest job, the promo
# feed reader. Only four of them currently have candidate rules (see
# orchestration/rules.py); the rest still reach the agents.
# =============================================================================
class EventType(str, Enum):
    """Business events that can start an orchestration run."""

    TICKET_CREATED = "assistance.ticket.created"
    TICKET_CLOSED = "assistance.ticket.closed"
    TICKET_OUTCOME = "assistance.ticket.outcome"      # Technician verdict on a repair
    INBOUND_EMAIL = "inbound.email.received"
    INBOUND_WHATSAPP = "inbound.whatsapp.received"
    INVOICE_INGESTED = "danea.invoice.ingested"       # Supplier invoice -> new stock
    PROMO_INGESTED = "offer.promo.ingested"           # Vendor promo feed
    OBJECTIVE_UPDATED = "manager.objective.updated"


# =============================================================================
# Outbound Channels
# =============================================================================
class Channel(str, Enum):
    """Channels a communication draft can be dispatched on.

    Only WHATSAPP, EMAIL and TELEGRAM carry per-customer consent flags;
    the social channels are one-to-many broadcast surfaces.
    """

    WHATSAPP = "whatsapp"
    EMAIL = "email"
    TELEGRAM = "telegram"
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    X = "x"
    BLOG = "blog"


class Audience(str, Enum):
    """Who a draft is addressed to."""

    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"


# =============================================================================
# Specialist Agents
# =============================================================================
# The order of the members is NOT the execution order. Execution order is
# owned by the AgentRegistry (agents/registry.py).
# =============================================================================
class AgentName(str, Enum):
    """Identifiers of the specialist agents and pseudo-agents."""

    ASSISTANCE = "assistance"
    PREVENTIVI = "preventivi"           # Quoting: replacement quotes in 3 price bands
    TELEPHONY = "telephony"
    ENERGY = "energy"
    HARDWARE = "hardware"
    CUSTOMER_CARE = "customer-care"
    CONTENT = "content"
    COMPLIANCE = "compliance"

    # --- Pseudo-agents (appear only as handoff sources or run actors) ---
    INGEST = "ingest"
    ORCHESTRATOR = "orchestrator"


class ActionType(str, Enum):
    """The kind of next-best action a candidate proposes."""

    QUOTE = "quote"
    CROSS_SELL = "cross-sell"
    CUSTOMER_CARE = "customer-care"
    CAMPAIGN = "campaign"
    CONTENT = "content"
    FOLLOWUP = "followup"


# =============================================================================
# Rule Triggers
# =============================================================================
# Every candidate records which rule produced it. The handoff resolver joins
# on this value, so adding a rule means adding a member here first.
# =============================================================================
class Trigger(str, Enum):
    """The rule that produced a candidate."""

    NOT_WORTH_REPAIRING = "not-worth-repairing"
    GAMER_LAG = "gamer-lag"
    ENERGY_SIGNAL = "energy-signal"
    INVOICE_HARDWARE = "invoice-hardware"
    INVOICE_HARDWARE_PLAYBOOK = "invoice-hardware-playbook"
    PROMO_SMARTPHONE = "promo-smartphone"
    POST_SALE_COMPLAINT = "post-sale-complaint"


class OfferCategory(str, Enum):
    """Catalogue categories for active offers."""

    HARDWARE = "hardware"
    SMARTPHONE = "smartphone"
    CONNECTIVITY = "connectivity"
    ENERGY = "energy"
    SERVICE = "service"
    ACCESSORY = "accessory"


# =============================================================================
# Materialized Work Items
# =============================================================================
class TaskKind(str, Enum):
    """Internal work item categories shown on the operator board."""

    ASSIST = "assist"
    FOLLOWUP = "followup"
    CAMPAIGN = "campaign"
    CUSTOMER_CARE = "customer-care"
    APPROVAL = "approval"
    CONTENT = "content"


class TaskStatus(str, Enum):
    """Task lifecycle. Only external collaborators move a task to DONE."""

    OPEN = "open"
    DONE = "done"


class DraftStatus(str, Enum):
    """Draft lifecycle as produced by the engine.

    PENDING_APPROVAL: an operator must approve before dispatch.
    READY:            the urgent path; dispatch may proceed directly.
    """

    PENDING_APPROVAL = "pending-approval"
    READY = "ready"


# =============================================================================
# Swarm (Traced Execution)
# =============================================================================
#   SwarmRun:  RUNNING → COMPLETED | FAILED   (terminal)
#   SwarmStep: RUNNING → COMPLETED | FAILED
# =============================================================================
class SwarmStatus(str, Enum):
    """Lifecycle of one traced run."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class SwarmStepStatus(str, Enum):
    """Lifecycle of one agent step within a run."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class SwarmMessageKind(str, Enum):
    """What a recorded swarm message represents."""

    OBSERVATION = "observation"     # Agent notes, briefs, critiques
    PROPOSAL = "proposal"           # Proposed actions, tasks, drafts
    HANDOFF = "handoff"             # One agent hands work to another
    DECISION = "decision"           # Final outcome (top action, synthesis)
    ERROR = "error"                 # Agent failure captured in the trail


class HandoffStatus(str, Enum):
    """Whether the target of a handoff has acted on it."""

    PENDING = "pending"
    EXECUTED = "executed"


# =============================================================================
# Operator Discussion
# =============================================================================
class DiscussionKind(str, Enum):
    """Kinds of visible turns in a discussion thread.

    SYNTHESIS never appears in the thread; it is only carried by the
    final "done" event.
    """

    BRIEF = "brief"
    ANALYSIS = "analysis"
    CRITIQUE = "critique"
    DEFENSE = "defense"
    SYNTHESIS = "synthesis"


class DiscussionEventType(str, Enum):
    """Event types streamed by the discussion coordinator."""

    TYPING = "typing"
    MESSAGE = "message"
    DONE = "done"
    ERROR = "error"
