"""
copilotrm.orchestration - Orchestration Layer
===============================================

Decides which actions to recommend for an event and in what order, and
coordinates the specialists around that decision.

Components:
    - rules / scoring / handoffs / materializer: the pure ranking pipeline
    - Orchestrator:           synchronous pipeline returning pure data
    - SwarmStore:             run/step/message/handoff history
    - SwarmRecorder:          traced pipeline writing that history
    - DiscussionCoordinator:  moderated operator roundtable
    - AgentBus:               in-process pub/sub for produced outputs
"""

from copilotrm.orchestration.agent_bus import AgentBus
from copilotrm.orchestration.discussion import (
    DiscussionCoordinator,
    DiscussionMessage,
    DiscussionRequest,
    DiscussionResult,
    DoneEvent,
    ErrorEvent,
    MessageEvent,
    TypingEvent,
    extract_mentions,
)
from copilotrm.orchestration.handoffs import HANDOFF_ROUTES, derive_handoffs
from copilotrm.orchestration.materializer import materialize
from copilotrm.orchestration.orchestrator import Orchestrator, validate_context
from copilotrm.orchestration.rules import generate_candidates
from copilotrm.orchestration.scoring import rank_candidates, score_candidate
from copilotrm.orchestration.swarm_recorder import SwarmRecorder
from copilotrm.orchestration.swarm_store import InMemorySwarmStore, SwarmStore

__all__ = [
    # Ranking pipeline
    "generate_candidates",
    "score_candidate",
    "rank_candidates",
    "HANDOFF_ROUTES",
    "derive_handoffs",
    "materialize",
    # Synchronous mode
    "Orchestrator",
    "validate_context",
    # Traced mode
    "SwarmStore",
    "InMemorySwarmStore",
    "SwarmRecorder",
    # Discussion
    "DiscussionCoordinator",
    "DiscussionRequest",
    "DiscussionMessage",
    "DiscussionResult",
    "TypingEvent",
    "MessageEvent",
    "DoneEvent",
    "ErrorEvent",
    "extract_mentions",
    # Bus
    "AgentBus",
]
