"""
copilotrm.core - Foundation Layer
=================================

Building blocks every other CopilotRM package depends on:

    - config:      Configuration management (CopilotConfig and its sections)
    - enums:       Closed vocabularies (EventType, Trigger, SwarmMessageKind, ...)
    - models:      Domain and pipeline data models (DomainEvent, ActionCandidate, ...)
    - exceptions:  Structured exception hierarchy
    - state:       Swarm run history models

Dependency Rule:
    core/ depends on NOTHING else in the copilotrm package. Everything in
    core is plain data or configuration: no business logic, no I/O.
"""

from copilotrm.core.config import (
    CopilotConfig,
    DiscussionConfig,
    LLMConfig,
    OrchestratorConfig,
    SwarmConfig,
)
from copilotrm.core.enums import (
    ActionType,
    AgentName,
    Audience,
    Channel,
    DiscussionEventType,
    DiscussionKind,
    DraftStatus,
    EventType,
    HandoffStatus,
    OfferCategory,
    SwarmMessageKind,
    SwarmStatus,
    SwarmStepStatus,
    TaskKind,
    TaskStatus,
    Trigger,
)
from copilotrm.core.exceptions import (
    AgentBusError,
    AgentError,
    ConfigurationError,
    ContextError,
    CopilotError,
    LLMError,
    SwarmRunError,
)
from copilotrm.core.models import (
    ActionCandidate,
    AgentExecutionResult,
    AssistanceTicket,
    AuditRecord,
    CommunicationDraft,
    ConsentState,
    CustomerProfile,
    DomainEvent,
    HandoffEdge,
    ManagerObjective,
    OrchestratorContext,
    OrchestratorOutput,
    ProductOffer,
    ScoreBreakdown,
    ScoredCandidate,
    TaskItem,
    TracedOutput,
)
from copilotrm.core.state import (
    SwarmHandoff,
    SwarmMessage,
    SwarmRun,
    SwarmSnapshot,
    SwarmStep,
)

__all__ = [
    # Config
    "CopilotConfig",
    "DiscussionConfig",
    "LLMConfig",
    "OrchestratorConfig",
    "SwarmConfig",
    # Enums
    "ActionType",
    "AgentName",
    "Audience",
    "Channel",
    "DiscussionEventType",
    "DiscussionKind",
    "DraftStatus",
    "EventType",
    "HandoffStatus",
    "OfferCategory",
    "SwarmMessageKind",
    "SwarmStatus",
    "SwarmStepStatus",
    "TaskKind",
    "TaskStatus",
    "Trigger",
    # Exceptions
    "AgentBusError",
    "AgentError",
    "ConfigurationError",
    "ContextError",
    "CopilotError",
    "LLMError",
    "SwarmRunError",
    # Models
    "ActionCandidate",
    "AgentExecutionResult",
    "AssistanceTicket",
    "AuditRecord",
    "CommunicationDraft",
    "ConsentState",
    "CustomerProfile",
    "DomainEvent",
    "HandoffEdge",
    "ManagerObjective",
    "OrchestratorContext",
    "OrchestratorOutput",
    "ProductOffer",
    "ScoreBreakdown",
    "ScoredCandidate",
    "TaskItem",
    "TracedOutput",
    # State
    "SwarmHandoff",
    "SwarmMessage",
    "SwarmRun",
    "SwarmSnapshot",
    "SwarmStep",
]
