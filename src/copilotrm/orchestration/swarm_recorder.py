"""
copilotrm.orchestration.swarm_recorder - Traced ("Swarm") Execution
=====================================================================

The SwarmRecorder runs the same pipeline as the Orchestrator but records
every agent step, message and handoff in a SwarmStore so the run can be
inspected afterwards.

Run State Machine:

    ┌─────────┐  all steps done        ┌───────────┐
    │ RUNNING │ ─────────────────────→ │ COMPLETED │
    │         │  every step failed     ├───────────┤
    │         │ ─────────────────────→ │  FAILED   │
    └─────────┘                        └───────────┘

Per Run:
    1. Create SwarmRun{running}.
    2. Enrich the context through the orchestrator's providers, rank the
       rule candidates and derive the handoff edges.
    3. For each agent in registry order whose supports(event) is True:
         step{running} → execute (isolated)
           failure → step{failed} + error message
           success → observation per note, proposal per owned action,
                     task and draft, step{completed}
         then one handoff message + SwarmHandoff{pending} per edge whose
         source is this agent. An agent whose supports() raises gets a
         failed step and an error message.
    4. Record edges from non-agent sources ("ingest").
    5. Resolve handoffs (bounded by SwarmConfig.max_handoff_depth):
         target already completed     → executed
         target unvisited, registered, depth < max → run it as an extra
                                        step at depth+1, executed on success
         otherwise                    → stays pending
    6. Decision message for the top action; evaluators; close the run.

    Any other error closes the run as FAILED before it propagates.

Sequencing:
    Steps and messages of a run share ONE counter. Every append takes the
    run's asyncio.Lock, draws the next number and writes it to the store,
    so step_no is strictly increasing in causal order. The lock is only
    held around the store write, never around agent execution or a
    language-model call.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from copilotrm.agents.base import BusinessAgent
from copilotrm.core.config import SwarmConfig
from copilotrm.core.enums import (
    HandoffStatus,
    SwarmMessageKind,
    SwarmStatus,
    SwarmStepStatus,
)
from copilotrm.core.exceptions import AgentError, SwarmRunError
from copilotrm.core.models import (
    ActionCandidate,
    AgentExecutionResult,
    AuditRecord,
    HandoffEdge,
    OrchestratorContext,
    OrchestratorOutput,
    TracedOutput,
)
from copilotrm.core.state import SwarmHandoff, SwarmMessage, SwarmRun, SwarmStep
from copilotrm.infrastructure.audit_trail import make_audit_record
from copilotrm.orchestration.handoffs import derive_handoffs
from copilotrm.orchestration.materializer import materialize
from copilotrm.orchestration.orchestrator import (
    ORCHESTRATOR_ACTOR,
    Orchestrator,
    agent_supports,
    validate_context,
)
from copilotrm.orchestration.swarm_store import SwarmStore


logger = structlog.get_logger()

T = TypeVar("T", SwarmStep, SwarmMessage)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SwarmRecorder:
    """Single writer of swarm run history.

    Attributes:
        _store: Where runs, steps, messages and handoffs are written.
        _orchestrator: Supplies the registry, ranking and materializer config.
        _config: Handoff depth bound.
        _locks: Per-run append lock.
        _sequence: Per-run last assigned step number.
    """

    def __init__(
        self,
        store: SwarmStore,
        orchestrator: Optional[Orchestrator] = None,
        config: Optional[SwarmConfig] = None,
    ) -> None:
        self._store = store
        self._orchestrator = orchestrator or Orchestrator()
        self._config = config or SwarmConfig()
        self._locks: dict[str, asyncio.Lock] = {}
        self._sequence: dict[str, int] = {}
        self._agents_involved: dict[str, list[str]] = {}
        self._logger = logger.bind(component="swarm_recorder")

    @property
    def store(self) -> SwarmStore:
        return self._store

    def is_open(self, run_id: str) -> bool:
        """Whether ``run_id`` was opened here and not closed yet."""
        return run_id in self._locks

    # =========================================================================
    # Low-Level Recording API (also used by the discussion coordinator)
    # =========================================================================

    async def open_run(self, event_type: str, depth: int = 0) -> SwarmRun:
        """Create a RUNNING run and its sequencer."""
        run = await self._store.create_run(SwarmRun(event_type=event_type, depth=depth))
        self._locks[run.id] = asyncio.Lock()
        self._sequence[run.id] = 0
        self._agents_involved[run.id] = []
        self._logger.info("swarm_run_started", run_id=run.id, event_type=event_type)
        return run

    async def record_step(self, run_id: str, agent: str, depth: int = 0) -> SwarmStep:
        """Append a RUNNING step for ``agent``."""
        involved = self._involved(run_id)
        if agent not in involved:
            involved.append(agent)
        return await self._append(
            run_id,
            lambda n: SwarmStep(run_id=run_id, agent=agent, step_no=n, depth=depth),
            self._store.add_step,
        )

    async def finish_step(
        self,
        step: SwarmStep,
        status: SwarmStepStatus,
        tasks_created: int = 0,
        drafts_created: int = 0,
    ) -> SwarmStep:
        """Move a step to COMPLETED or FAILED."""
        finished = step.model_copy(
            update={
                "status": status,
                "tasks_created": tasks_created,
                "drafts_created": drafts_created,
                "finished_at": _now(),
            }
        )
        return await self._store.update_step(finished)

    async def record_message(
        self,
        run_id: str,
        from_agent: str,
        kind: SwarmMessageKind,
        content: str,
        *,
        to_agent: Optional[str] = None,
        confidence: Optional[float] = None,
    ) -> SwarmMessage:
        """Append a message with the next step number."""
        return await self._append(
            run_id,
            lambda n: SwarmMessage(
                run_id=run_id,
                step_no=n,
                from_agent=from_agent,
                to_agent=to_agent,
                kind=kind,
                content=content,
                confidence=confidence,
            ),
            self._store.add_message,
        )

    async def record_handoff(self, run_id: str, edge: HandoffEdge) -> SwarmHandoff:
        """Record a handoff message plus a PENDING SwarmHandoff."""
        await self.record_message(
            run_id,
            edge.from_agent.value,
            SwarmMessageKind.HANDOFF,
            edge.reason,
            to_agent=edge.to_agent.value,
        )
        return await self._store.add_handoff(
            SwarmHandoff(
                run_id=run_id,
                from_agent=edge.from_agent.value,
                to_agent=edge.to_agent.value,
                reason=edge.reason,
                source_action_id=edge.source_action_id,
                blocking=edge.blocking,
                requires_approval=edge.requires_approval,
            )
        )

    async def close_run(
        self,
        run_id: str,
        status: SwarmStatus,
        top_action_score: Optional[float] = None,
    ) -> SwarmRun:
        """Move the run to a terminal status and drop its sequencer.

        The sequencer is dropped even when the store update fails.
        """
        try:
            run = await self._store.get_run(run_id)
            if run is None:
                raise SwarmRunError(message=f"Swarm run '{run_id}' not found", run_id=run_id)
            closed = run.model_copy(
                update={
                    "status": status,
                    "finished_at": _now(),
                    "agents_involved": list(self._agents_involved.get(run_id, run.agents_involved)),
                    "top_action_score": top_action_score,
                }
            )
            closed = await self._store.update_run(closed)
        finally:
            self._locks.pop(run_id, None)
            self._sequence.pop(run_id, None)
            self._agents_involved.pop(run_id, None)
        self._logger.info(
            "swarm_run_completed",
            run_id=run_id,
            status=status.value,
            top_action_score=top_action_score,
        )
        return closed

    # =========================================================================
    # Traced Pipeline
    # =========================================================================

    async def run(self, ctx: OrchestratorContext) -> TracedOutput:
        """Run the pipeline in traced mode.

        The run always ends in a terminal status. An unexpected error (a
        store write failing, for instance) closes it as FAILED and is then
        re-raised.

        Returns:
            The OrchestratorOutput plus the id of the recorded run.

        Raises:
            ContextError: If ``ctx`` has no event.
        """
        validate_context(ctx)
        run = await self.open_run(ctx.event.type.value)
        try:
            return await self._trace(run.id, ctx)
        finally:
            if self.is_open(run.id):
                await self._abort_run(run.id)

    async def _trace(self, run_id: str, ctx: OrchestratorContext) -> TracedOutput:
        event = ctx.event
        registry = self._orchestrator.registry

        ctx, provider_records = await self._orchestrator.enrich(ctx)
        scored = self._orchestrator.rank(ctx)
        ranked = [s.ranked_action() for s in scored]
        edges = derive_handoffs(ranked)
        tasks, drafts = materialize(ranked, self._orchestrator.config.min_actionable_confidence)

        completed: set[str] = set()
        visited: set[str] = set()
        step_outcomes: list[bool] = []
        results: list[AgentExecutionResult] = []
        handoffs: list[tuple[SwarmHandoff, int]] = []
        executed_agents: list[str] = []

        async def visit(agent: BusinessAgent, depth: int, failure: Optional[AgentError] = None) -> None:
            name = agent.name.value
            visited.add(name)
            executed_agents.append(name)
            result = await self._run_agent_step(run_id, agent, ctx, ranked, depth, failure)
            step_outcomes.append(result is not None)
            if result is None:
                return
            completed.add(name)
            results.append(result)
            tasks.extend(result.tasks)
            drafts.extend(result.drafts)
            for edge in edges:
                if edge.from_agent == agent.name:
                    handoffs.append((await self.record_handoff(run_id, edge), depth))

        for agent in registry:
            try:
                supported = agent_supports(agent, event)
            except AgentError as e:
                await visit(agent, 0, e)
                continue
            if supported:
                await visit(agent, 0)

        # Sources that never ran in this pass (e.g. "ingest")
        for edge in edges:
            if edge.from_agent.value not in visited:
                handoffs.append((await self.record_handoff(run_id, edge), 0))

        # Handoffs appended while resolving are processed in the same pass
        index = 0
        while index < len(handoffs):
            handoff, depth = handoffs[index]
            index += 1
            target = registry.get(handoff.to_agent)
            if (
                handoff.to_agent not in completed
                and handoff.to_agent not in visited
                and target is not None
                and depth < self._config.max_handoff_depth
            ):
                self._logger.info(
                    "handoff_executing",
                    run_id=run_id,
                    to_agent=handoff.to_agent,
                    depth=depth + 1,
                )
                await visit(target, depth + 1)
            if handoff.to_agent in completed:
                await self._store.update_handoff(
                    handoff.model_copy(update={"status": HandoffStatus.EXECUTED})
                )

        top = scored[0] if scored else None
        if top is not None:
            await self.record_message(
                run_id,
                ORCHESTRATOR_ACTOR,
                SwarmMessageKind.DECISION,
                f"Azione consigliata: {top.candidate.title}",
                to_agent=top.candidate.agent.value,
                confidence=top.candidate.confidence,
            )

        evaluator_records = await self._orchestrator.evaluate(ctx, results)

        all_failed = bool(step_outcomes) and not any(step_outcomes)
        status = SwarmStatus.FAILED if all_failed else SwarmStatus.COMPLETED
        await self.close_run(run_id, status, top.total if top else None)

        audit = self._audit_records(ctx, run_id, status, ranked, executed_agents)
        output = OrchestratorOutput(
            ranked_actions=ranked,
            handoffs=edges,
            tasks=tasks,
            drafts=drafts,
            audit_records=[audit[0], *provider_records, *audit[1:-1], *evaluator_records, audit[-1]],
        )
        return TracedOutput(output=output, run_id=run_id)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _abort_run(self, run_id: str) -> None:
        """Close a run left open by an unexpected error as FAILED."""
        self._logger.error("swarm_run_aborted", run_id=run_id)
        try:
            await self.close_run(run_id, SwarmStatus.FAILED)
        except Exception as e:
            # The error that aborted the run is already propagating
            self._logger.error(
                "swarm_run_abort_failed",
                run_id=run_id,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def _run_agent_step(
        self,
        run_id: str,
        agent: BusinessAgent,
        ctx: OrchestratorContext,
        ranked: list[ActionCandidate],
        depth: int,
        failure: Optional[AgentError] = None,
    ) -> Optional[AgentExecutionResult]:
        """Execute one agent inside its own step. Returns None on failure.

        ``failure`` records the step as failed without executing the agent.
        """
        name = agent.name.value
        step = await self.record_step(run_id, name, depth)
        result = None
        if failure is None:
            try:
                result = agent.execute(ctx)
            except AgentError as e:
                failure = e
        if failure is not None:
            self._logger.warning(
                "swarm_step_failed",
                run_id=run_id,
                agent=name,
                step_no=step.step_no,
                error=failure.message,
            )
            await self.finish_step(step, SwarmStepStatus.FAILED)
            await self.record_message(run_id, name, SwarmMessageKind.ERROR, failure.message)
            return None

        for note in result.notes:
            await self.record_message(run_id, name, SwarmMessageKind.OBSERVATION, note)
        for action in ranked:
            if action.agent == agent.name:
                await self.record_message(
                    run_id,
                    name,
                    SwarmMessageKind.PROPOSAL,
                    action.title,
                    confidence=action.confidence,
                )
        for action in result.actions:
            await self.record_message(
                run_id, name, SwarmMessageKind.PROPOSAL, action.title, confidence=action.confidence
            )
        for task in result.tasks:
            await self.record_message(run_id, name, SwarmMessageKind.PROPOSAL, f"Task: {task.title}")
        for draft in result.drafts:
            await self.record_message(
                run_id,
                name,
                SwarmMessageKind.PROPOSAL,
                f"Bozza {draft.channel.value}: {draft.reason or draft.body}",
            )

        await self.finish_step(
            step,
            SwarmStepStatus.COMPLETED,
            tasks_created=len(result.tasks),
            drafts_created=len(result.drafts),
        )
        return result

    async def _append(
        self,
        run_id: str,
        build: Callable[[int], T],
        write: Callable[[T], Awaitable[T]],
    ) -> T:
        lock = self._locks.get(run_id)
        if lock is None:
            raise SwarmRunError(
                message=f"Swarm run '{run_id}' is not open on this recorder",
                run_id=run_id,
                error_code="SWARM_RUN_CLOSED",
            )
        async with lock:
            step_no = self._sequence[run_id] + 1
            item = await write(build(step_no))
            self._sequence[run_id] = step_no
        return item

    def _involved(self, run_id: str) -> list[str]:
        if run_id not in self._agents_involved:
            raise SwarmRunError(
                message=f"Swarm run '{run_id}' is not open on this recorder",
                run_id=run_id,
                error_code="SWARM_RUN_CLOSED",
            )
        return self._agents_involved[run_id]

    @staticmethod
    def _audit_records(
        ctx: OrchestratorContext,
        run_id: str,
        status: SwarmStatus,
        ranked: list[ActionCandidate],
        agents: list[str],
    ) -> list[AuditRecord]:
        top = ranked[0] if ranked else None
        payloads: list[tuple[str, dict[str, Any]]] = [
            ("event.received", {"event_id": ctx.event.id, "event_type": ctx.event.type.value}),
            (
                "actions.ranked",
                {
                    "top_action": top.title if top else None,
                    "top_score": top.score_breakdown.total if top and top.score_breakdown else None,
                    "count": len(ranked),
                },
            ),
            ("agents.executed", {"agents": agents}),
            ("swarm.run.completed", {"run_id": run_id, "status": status.value}),
        ]
        return [make_audit_record(ORCHESTRATOR_ACTOR, t, p) for t, p in payloads]

    def __repr__(self) -> str:
        return f"SwarmRecorder(store={self._store.__class__.__name__}, open_runs={len(self._locks)})"
