"""
CopilotRM - Agent Orchestration and Action-Ranking Engine
===========================================================

CopilotRM turns a business event (a ticket outcome, an inbound message,
an ingested invoice or promo) into a ranked list of next-best actions,
materialized as operator tasks and outbound communication drafts, with an
audit trail of every step.

Architecture Layers (top to bottom):
    1. Orchestration Layer  - Rules, Scoring, Handoffs, Orchestrator,
                              SwarmRecorder, DiscussionCoordinator, AgentBus
    2. Agent Layer          - Eight specialist business agents + personas
    3. Infrastructure Layer - Audit trail
    4. Integration Layer    - Language-model providers

Quick Start:
    >>> from copilotrm import CopilotRM
    >>> async with CopilotRM() as copilot:
    ...     output = await copilot.orchestrate(ctx)
"""

__version__ = "0.1.0"

from copilotrm.facade import CopilotRM

__all__ = ["CopilotRM", "__version__"]
