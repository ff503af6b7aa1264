"""
copilotrm.agents - Specialist Business Agent Layer
====================================================

The agent framework and the eight specialists. Agents sit between the
orchestration layer (which decides when they run) and the core models
(which they read and produce). They never call each other: cooperation
happens through ranked candidates and handoff edges.

Architecture:
    ┌─────────────── ORCHESTRATION LAYER ─────────────────┐
    │  Orchestrator, SwarmRecorder, DiscussionCoordinator  │
    └─────────────────────┬───────────────────────────────┘
                          │ execute(ctx), in registry order
                          ▼
    ┌─────────────── AGENT LAYER ─────────────────────────┐
    │  BusinessAgent (abstract)                            │
    │    ├── service/     AssistanceAgent, CustomerCareAgent│
    │    ├── commercial/  PreventiviAgent, TelephonyAgent, │
    │    │                EnergyAgent, HardwareAgent       │
    │    ├── marketing/   ContentAgent                     │
    │    └── governance/  ComplianceAgent                  │
    │  AgentRegistry      ordered roster                   │
    │  PersonaDirectory   discussion personas              │
    └──────────────────────────────────────────────────────┘

Usage:
    from copilotrm.agents import create_default_registry
"""

from copilotrm.agents.base import BusinessAgent
from copilotrm.agents.commercial import EnergyAgent, HardwareAgent, PreventiviAgent, TelephonyAgent
from copilotrm.agents.governance import ComplianceAgent
from copilotrm.agents.marketing import ContentAgent
from copilotrm.agents.personas import (
    SPECIALIST_ROSTER,
    PersonaDirectory,
    PersonaProfile,
)
from copilotrm.agents.registry import AgentRegistry, create_default_registry
from copilotrm.agents.service import AssistanceAgent, CustomerCareAgent

__all__ = [
    "AgentRegistry",
    "AssistanceAgent",
    "BusinessAgent",
    "ComplianceAgent",
    "ContentAgent",
    "CustomerCareAgent",
    "EnergyAgent",
    "HardwareAgent",
    "PersonaDirectory",
    "PersonaProfile",
    "PreventiviAgent",
    "SPECIALIST_ROSTER",
    "TelephonyAgent",
    "create_default_registry",
]
