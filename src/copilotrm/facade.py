"""
copilotrm.facade - CopilotRM Top-Level Facade
===============================================

The single entry point that wires the engine's layers together and owns
their lifecycle.

Architecture Context:

    ┌──────────────────────────────────────────────────────┐
    │                  CopilotRM (Facade)                   │
    │                                                       │
    │  orchestrate(ctx) ──→ Orchestrator ──→ AuditTrail     │
    │  run_traced(ctx)  ──→ SwarmRecorder ──→ SwarmStore    │
    │  discuss(request) ──→ DiscussionCoordinator ──→ LLM   │
    │                                                       │
    │  every output ──────→ AgentBus (published events)     │
    └──────────────────────────────────────────────────────┘

Usage:
    >>> async with CopilotRM() as copilot:
    ...     output = await copilot.orchestrate(ctx)
    ...     traced = await copilot.run_traced(ctx)
    ...     snapshot = await copilot.snapshot(traced.run_id)
    ...     async for event in copilot.discuss(DiscussionRequest(message="...")):
    ...         print(event.type)
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Optional

import structlog

from copilotrm.agents.personas import PersonaDirectory
from copilotrm.agents.registry import AgentRegistry, create_default_registry
from copilotrm.core.config import CopilotConfig
from copilotrm.core.models import OrchestratorContext, OrchestratorOutput, TracedOutput
from copilotrm.core.state import (
    SwarmHandoff,
    SwarmMessage,
    SwarmRun,
    SwarmSnapshot,
    SwarmStep,
)
from copilotrm.infrastructure.audit_trail import AuditTrail, InMemoryAuditTrail
from copilotrm.integrations.llm.base import BaseLLMProvider
from copilotrm.integrations.llm.factory import create_llm_provider
from copilotrm.orchestration.agent_bus import (
    DISCUSSION_EVENT,
    ORCHESTRATOR_OUTPUT_EVENT,
    SWARM_RUN_COMPLETED_EVENT,
    AgentBus,
)
from copilotrm.orchestration.discussion import (
    DiscussionCoordinator,
    DiscussionEvent,
    DiscussionRequest,
)
from copilotrm.orchestration.enrichment import AgentEvaluator, AgentProvider
from copilotrm.orchestration.orchestrator import Orchestrator
from copilotrm.orchestration.swarm_recorder import SwarmRecorder
from copilotrm.orchestration.swarm_store import InMemorySwarmStore, SwarmStore


logger = structlog.get_logger()


class CopilotRM:
    """Top-level facade for the CopilotRM engine.

    Lifecycle:
        1. ``CopilotRM(config)``: build components (no I/O)
        2. ``await initialize()``: connect the bus and the swarm store
        3. orchestrate / run_traced / discuss / history queries
        4. ``await shutdown()``: disconnect in reverse order

    Attributes:
        _config: Engine configuration.
        _registry: Specialist agents, in execution order.
        _llm: Language-model collaborator for discussions.
        _swarm_store: Traced run history.
        _bus: Where produced outputs are announced.
        _audit_trail: Append-only log of orchestrate() and run_traced() audit records.
        _orchestrator: Synchronous pipeline.
        _recorder: Traced pipeline.
        _discussion: Operator roundtable.
        _initialized: Whether initialize() has been called.
    """

    def __init__(
        self,
        config: Optional[CopilotConfig] = None,
        *,
        registry: Optional[AgentRegistry] = None,
        llm_provider: Optional[BaseLLMProvider] = None,
        swarm_store: Optional[SwarmStore] = None,
        bus: Optional[AgentBus] = None,
        audit_trail: Optional[AuditTrail] = None,
        personas: Optional[PersonaDirectory] = None,
        providers: Optional[list[AgentProvider]] = None,
        evaluators: Optional[list[AgentEvaluator]] = None,
    ) -> None:
        """Build the facade.

        Args:
            config: Engine configuration. Defaults to CopilotConfig(), which
                reads COPILOTRM_* environment variables.
            registry: Agent roster. Defaults to the eight built-in specialists.
            llm_provider: Defaults to the provider named in ``config.llm``.
            swarm_store: Defaults to InMemorySwarmStore.
            bus: Defaults to a fresh AgentBus.
            audit_trail: Defaults to InMemoryAuditTrail.
            personas: Defaults to the built-in persona directory.
            providers: Context providers run before the agents of every
                orchestrate() and run_traced() call.
            evaluators: Reviewers of the agent results of those calls.
        """
        self._config = config or CopilotConfig()
        self._registry = registry if registry is not None else create_default_registry()
        self._llm = llm_provider or create_llm_provider(self._config.llm)
        self._swarm_store = swarm_store or InMemorySwarmStore()
        self._bus = bus or AgentBus()
        self._audit_trail = audit_trail or InMemoryAuditTrail()
        self._personas = personas or PersonaDirectory()

        self._orchestrator = Orchestrator(
            self._registry,
            self._config.orchestrator,
            providers=providers,
            evaluators=evaluators,
        )
        self._recorder = SwarmRecorder(self._swarm_store, self._orchestrator, self._config.swarm)
        self._discussion = DiscussionCoordinator(
            self._llm,
            personas=self._personas,
            config=self._config.discussion,
            recorder=self._recorder,
        )

        self._initialized = False
        self._logger = logger.bind(component="copilotrm")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> CopilotConfig:
        return self._config

    @property
    def registry(self) -> AgentRegistry:
        return self._registry

    @property
    def bus(self) -> AgentBus:
        return self._bus

    @property
    def audit_trail(self) -> AuditTrail:
        """The append-only trail fed by orchestrate() and run_traced()."""
        return self._audit_trail

    @property
    def personas(self) -> PersonaDirectory:
        return self._personas

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def initialize(self) -> None:
        """Connect the bus, then the swarm store. Idempotent."""
        if self._initialized:
            self._logger.debug("copilotrm_already_initialized")
            return

        self._logger.info(
            "copilotrm_initializing",
            environment=self._config.environment,
            agents=self._registry.names(),
            llm_provider=self._llm.provider_name,
        )
        await self._bus.connect()
        await self._swarm_store.connect()

        self._initialized = True
        self._logger.info("copilotrm_initialized")

    async def shutdown(self) -> None:
        """Disconnect the swarm store, then the bus. Idempotent."""
        if not self._initialized:
            self._logger.debug("copilotrm_not_initialized_skipping_shutdown")
            return

        self._logger.info("copilotrm_shutting_down")
        await self._swarm_store.disconnect()
        await self._bus.disconnect()

        self._initialized = False
        self._logger.info("copilotrm_shutdown_complete")

    async def __aenter__(self) -> CopilotRM:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.shutdown()

    # =========================================================================
    # Orchestration
    # =========================================================================

    async def orchestrate(self, ctx: OrchestratorContext) -> OrchestratorOutput:
        """Run the synchronous pipeline and keep its audit records.

        Configured providers and evaluators run around the agents. The
        output's tasks and drafts are the items materialized from the
        ranked actions followed by the items the agents wrote, so one case
        can appear twice: an urgent inbound email yields the customer-care
        task and draft of the ranked action plus the care desk task and the
        ready-to-send reply from CustomerCareAgent.

        Raises:
            RuntimeError: If the facade has not been initialized.
            ContextError: If ``ctx`` has no event.
        """
        self._ensure_initialized()
        output = await self._orchestrator.run_async(ctx)
        await self._audit_trail.write_many(output.audit_records)
        await self._bus.publish(ORCHESTRATOR_OUTPUT_EVENT, output)
        return output

    async def run_traced(self, ctx: OrchestratorContext) -> TracedOutput:
        """Run the pipeline in traced mode; query the run by its id afterwards.

        The traced audit records, ending with swarm.run.completed, go to
        the audit trail like those of orchestrate().

        Raises:
            RuntimeError: If the facade has not been initialized.
            ContextError: If ``ctx`` has no event.
        """
        self._ensure_initialized()
        traced = await self._recorder.run(ctx)
        await self._audit_trail.write_many(traced.output.audit_records)
        await self._bus.publish(SWARM_RUN_COMPLETED_EVENT, traced)
        return traced

    # =========================================================================
    # Swarm History
    # =========================================================================

    async def get_run(self, run_id: str) -> Optional[SwarmRun]:
        self._ensure_initialized()
        return await self._swarm_store.get_run(run_id)

    async def list_runs(self, limit: Optional[int] = None) -> list[SwarmRun]:
        """Newest runs first; ``limit`` defaults to config.swarm.list_runs_limit."""
        self._ensure_initialized()
        if limit is None:
            limit = self._config.swarm.list_runs_limit
        return await self._swarm_store.list_runs(limit)

    async def list_steps(self, run_id: str) -> list[SwarmStep]:
        self._ensure_initialized()
        return await self._swarm_store.list_steps(run_id)

    async def list_messages(self, run_id: str) -> list[SwarmMessage]:
        self._ensure_initialized()
        return await self._swarm_store.list_messages(run_id)

    async def list_handoffs(self, run_id: str) -> list[SwarmHandoff]:
        self._ensure_initialized()
        return await self._swarm_store.list_handoffs(run_id)

    async def snapshot(self, run_id: str) -> SwarmSnapshot:
        """Run plus full history; empty snapshot for an unknown id."""
        self._ensure_initialized()
        return await self._swarm_store.snapshot(run_id)

    # =========================================================================
    # Discussion
    # =========================================================================

    async def discuss(self, request: DiscussionRequest) -> AsyncIterator[DiscussionEvent]:
        """Stream a discussion, announcing every event on the bus.

        Raises:
            RuntimeError: If the facade has not been initialized.
        """
        self._ensure_initialized()
        async for event in self._discussion.discuss(request):
            await self._bus.publish(DISCUSSION_EVENT, event)
            yield event

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "CopilotRM has not been initialized. "
                "Call await copilot.initialize() or use 'async with CopilotRM() as copilot:'"
            )

    def __repr__(self) -> str:
        return (
            f"CopilotRM("
            f"initialized={self._initialized}, "
            f"agents={len(self._registry)}, "
            f"llm={self._llm.provider_name!r})"
        )
