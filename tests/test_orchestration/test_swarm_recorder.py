"""
Tests for copilotrm.orchestration.swarm_recorder
==================================================

Traced execution: steps, the shared step/message sequence, handoff
recording and resolution, failure handling and the low-level recording
API used by the discussion coordinator.
"""

import asyncio

import pytest

from copilotrm.agents.base import BusinessAgent
from copilotrm.agents.commercial import HardwareAgent, PreventiviAgent
from copilotrm.agents.governance import ComplianceAgent
from copilotrm.agents.marketing import ContentAgent
from copilotrm.agents.registry import AgentRegistry
from copilotrm.core.config import SwarmConfig
from copilotrm.core.enums import (
    AgentName,
    EventType,
    HandoffStatus,
    SwarmMessageKind,
    SwarmStatus,
    SwarmStepStatus,
)
from copilotrm.core.exceptions import ContextError, SwarmRunError
from copilotrm.core.models import DomainEvent, EvaluationResult, HandoffEdge, OrchestratorContext
from copilotrm.orchestration.enrichment import AgentEvaluator, AgentProvider
from copilotrm.orchestration.orchestrator import Orchestrator
from copilotrm.orchestration.swarm_recorder import SwarmRecorder
from copilotrm.orchestration.swarm_store import InMemorySwarmStore


# =============================================================================
# Helper Agents
# =============================================================================
class DormantContentAgent(ContentAgent):
    """Content agent that never volunteers; it only runs through a handoff."""

    def supports(self, event_type: EventType) -> bool:
        return False


class BrokenAgent(BusinessAgent):
    """Supports every event and always fails."""

    name = AgentName.ENERGY

    def supports(self, event_type: EventType) -> bool:
        return True

    def _execute(self, ctx):
        raise ValueError("broken tariff table")


class UndecidedAgent(BusinessAgent):
    """Raises while deciding whether it handles an event."""

    name = AgentName.HARDWARE

    def supports(self, event_type: EventType) -> bool:
        raise KeyError(event_type.value)

    def _execute(self, ctx):
        return self._result()


class HandofflessStore(InMemorySwarmStore):
    """Stores everything except handoffs."""

    async def add_handoff(self, handoff):
        raise RuntimeError("handoff table unavailable")


def _recorder(swarm_store, agents, max_depth: int = 2) -> SwarmRecorder:
    return SwarmRecorder(
        swarm_store,
        Orchestrator(AgentRegistry(agents)),
        SwarmConfig(max_handoff_depth=max_depth),
    )


# =============================================================================
# Tests: Gamer Ticket Outcome
# =============================================================================
class TestTicketOutcomeTrace:
    """Full traced run over the default registry."""

    async def test_run_completed(self, recorder, swarm_store, ticket_outcome_ctx) -> None:
        traced = await recorder.run(ticket_outcome_ctx)
        run = await swarm_store.get_run(traced.run_id)
        assert run.status == SwarmStatus.COMPLETED
        assert run.finished_at is not None
        assert run.top_action_score == pytest.approx(7.06)
        assert run.agents_involved == [
            "assistance",
            "preventivi",
            "telephony",
            "energy",
            "hardware",
            "compliance",
        ]

    async def test_steps(self, recorder, swarm_store, ticket_outcome_ctx) -> None:
        traced = await recorder.run(ticket_outcome_ctx)
        steps = await swarm_store.list_steps(traced.run_id)
        assert len(steps) == 6
        assert all(s.status == SwarmStepStatus.COMPLETED for s in steps)
        assert all(s.depth == 0 for s in steps)
        by_agent = {s.agent: s for s in steps}
        assert by_agent["assistance"].tasks_created == 1
        assert by_agent["hardware"].drafts_created == 1
        assert by_agent["compliance"].tasks_created == 0

    async def test_shared_sequence(self, recorder, swarm_store, ticket_outcome_ctx) -> None:
        traced = await recorder.run(ticket_outcome_ctx)
        snapshot = await swarm_store.snapshot(traced.run_id)
        numbers = sorted(
            [s.step_no for s in snapshot.steps] + [m.step_no for m in snapshot.messages]
        )
        assert numbers == list(range(1, len(numbers) + 1))

    async def test_handoffs_recorded_after_source_step(
        self, recorder, swarm_store, ticket_outcome_ctx
    ) -> None:
        traced = await recorder.run(ticket_outcome_ctx)
        steps = {s.agent: s.step_no for s in await swarm_store.list_steps(traced.run_id)}
        messages = await swarm_store.list_messages(traced.run_id)
        handoff_messages = [m for m in messages if m.kind == SwarmMessageKind.HANDOFF]
        assert [(m.from_agent, m.to_agent) for m in handoff_messages] == [
            ("assistance", "telephony"),
            ("assistance", "preventivi"),
        ]
        assert all(steps["assistance"] < m.step_no < steps["preventivi"] for m in handoff_messages)

    async def test_handoffs_executed(self, recorder, swarm_store, ticket_outcome_ctx) -> None:
        traced = await recorder.run(ticket_outcome_ctx)
        handoffs = await swarm_store.list_handoffs(traced.run_id)
        assert [h.to_agent for h in handoffs] == ["telephony", "preventivi"]
        assert all(h.status == HandoffStatus.EXECUTED for h in handoffs)
        assert handoffs[0].reason == "gamer profile + network issue"

    async def test_decision_message_last(self, recorder, swarm_store, ticket_outcome_ctx) -> None:
        traced = await recorder.run(ticket_outcome_ctx)
        messages = await swarm_store.list_messages(traced.run_id)
        decision = messages[-1]
        assert decision.kind == SwarmMessageKind.DECISION
        assert decision.from_agent == "orchestrator"
        assert decision.to_agent == "telephony"
        assert decision.content == (
            "Azione consigliata: Proposta connectivity gaming (fibra/router/mesh)"
        )
        assert decision.confidence == 0.86

    async def test_messages_per_agent(self, recorder, swarm_store, ticket_outcome_ctx) -> None:
        traced = await recorder.run(ticket_outcome_ctx)
        messages = await swarm_store.list_messages(traced.run_id)
        telephony = [m for m in messages if m.from_agent == "telephony"]
        assert [m.kind for m in telephony] == [
            SwarmMessageKind.OBSERVATION,
            SwarmMessageKind.PROPOSAL,
            SwarmMessageKind.PROPOSAL,
            SwarmMessageKind.PROPOSAL,
        ]
        assert telephony[1].content == "Proposta connectivity gaming (fibra/router/mesh)"
        assert telephony[2].content == "Task: Proposta connectivity gaming"
        assert telephony[3].content.startswith("Bozza whatsapp: ")

    async def test_output(self, recorder, ticket_outcome_ctx) -> None:
        traced = await recorder.run(ticket_outcome_ctx)
        output = traced.output
        assert output.top_action.agent == AgentName.TELEPHONY
        assert len(output.tasks) == 5
        assert len(output.drafts) == 6
        assert [r.type for r in output.audit_records] == [
            "event.received",
            "actions.ranked",
            "agents.executed",
            "swarm.run.completed",
        ]
        assert output.audit_records[-1].payload == {
            "run_id": traced.run_id,
            "status": "completed",
        }

    async def test_context_required(self, recorder) -> None:
        with pytest.raises(ContextError):
            await recorder.run(None)


# =============================================================================
# Tests: Non-Agent Handoff Sources and Depth
# =============================================================================
class TestInvoiceTrace:
    """ingest → content edges."""

    async def test_ingest_edge_recorded_after_pass(
        self, recorder, swarm_store, invoice_ctx
    ) -> None:
        traced = await recorder.run(invoice_ctx)
        steps = await swarm_store.list_steps(traced.run_id)
        assert [s.agent for s in steps] == ["hardware", "content", "compliance"]
        messages = await swarm_store.list_messages(traced.run_id)
        handoff_message = next(m for m in messages if m.kind == SwarmMessageKind.HANDOFF)
        assert handoff_message.from_agent == "ingest"
        assert handoff_message.step_no > steps[-1].step_no
        handoffs = await swarm_store.list_handoffs(traced.run_id)
        assert len(handoffs) == 1
        assert handoffs[0].status == HandoffStatus.EXECUTED

    async def test_handoff_runs_dormant_target(self, swarm_store, invoice_ctx) -> None:
        recorder = _recorder(swarm_store, [HardwareAgent(), DormantContentAgent(), ComplianceAgent()])
        traced = await recorder.run(invoice_ctx)
        steps = await swarm_store.list_steps(traced.run_id)
        assert [(s.agent, s.depth) for s in steps] == [
            ("hardware", 0),
            ("compliance", 0),
            ("content", 1),
        ]
        handoffs = await swarm_store.list_handoffs(traced.run_id)
        assert handoffs[0].status == HandoffStatus.EXECUTED
        assert "content" in (await swarm_store.get_run(traced.run_id)).agents_involved

    async def test_depth_zero_leaves_handoff_pending(self, swarm_store, invoice_ctx) -> None:
        recorder = _recorder(
            swarm_store,
            [HardwareAgent(), DormantContentAgent(), ComplianceAgent()],
            max_depth=0,
        )
        traced = await recorder.run(invoice_ctx)
        steps = await swarm_store.list_steps(traced.run_id)
        assert [s.agent for s in steps] == ["hardware", "compliance"]
        handoffs = await swarm_store.list_handoffs(traced.run_id)
        assert handoffs[0].status == HandoffStatus.PENDING
        assert (await swarm_store.get_run(traced.run_id)).status == SwarmStatus.COMPLETED

    async def test_unregistered_target_stays_pending(self, swarm_store, invoice_ctx) -> None:
        recorder = _recorder(swarm_store, [HardwareAgent(), ComplianceAgent()])
        traced = await recorder.run(invoice_ctx)
        handoffs = await swarm_store.list_handoffs(traced.run_id)
        assert handoffs[0].status == HandoffStatus.PENDING


# =============================================================================
# Tests: Failures
# =============================================================================
class TestFailures:
    """Failed steps and failed runs."""

    async def test_failed_step_isolated(self, swarm_store, ticket_outcome_ctx) -> None:
        recorder = _recorder(swarm_store, [BrokenAgent(), ComplianceAgent()])
        traced = await recorder.run(ticket_outcome_ctx)
        steps = await swarm_store.list_steps(traced.run_id)
        assert [s.status for s in steps] == [SwarmStepStatus.FAILED, SwarmStepStatus.COMPLETED]
        errors = [
            m
            for m in await swarm_store.list_messages(traced.run_id)
            if m.kind == SwarmMessageKind.ERROR
        ]
        assert len(errors) == 1
        assert errors[0].from_agent == "energy"
        assert "broken tariff table" in errors[0].content
        assert (await swarm_store.get_run(traced.run_id)).status == SwarmStatus.COMPLETED

    async def test_all_failed_run_failed(self, swarm_store, ticket_outcome_ctx) -> None:
        recorder = _recorder(swarm_store, [BrokenAgent()])
        traced = await recorder.run(ticket_outcome_ctx)
        run = await swarm_store.get_run(traced.run_id)
        assert run.status == SwarmStatus.FAILED
        assert traced.output.audit_records[-1].payload["status"] == "failed"

    async def test_no_agents_completed(self, swarm_store, ticket_outcome_ctx) -> None:
        recorder = _recorder(swarm_store, [])
        traced = await recorder.run(ticket_outcome_ctx)
        run = await swarm_store.get_run(traced.run_id)
        assert run.status == SwarmStatus.COMPLETED
        assert run.agents_involved == []
        handoffs = await swarm_store.list_handoffs(traced.run_id)
        assert all(h.status == HandoffStatus.PENDING for h in handoffs)

    async def test_no_candidates(self, recorder, swarm_store) -> None:
        ctx = OrchestratorContext(event=DomainEvent(type=EventType.OBJECTIVE_UPDATED))
        traced = await recorder.run(ctx)
        run = await swarm_store.get_run(traced.run_id)
        assert run.top_action_score is None
        messages = await swarm_store.list_messages(traced.run_id)
        assert all(m.kind != SwarmMessageKind.DECISION for m in messages)

    async def test_supports_failure_becomes_failed_step(
        self, swarm_store, ticket_outcome_ctx
    ) -> None:
        recorder = _recorder(swarm_store, [PreventiviAgent(), UndecidedAgent()])
        traced = await recorder.run(ticket_outcome_ctx)

        steps = await swarm_store.list_steps(traced.run_id)
        assert [(s.agent, s.status) for s in steps] == [
            ("preventivi", SwarmStepStatus.COMPLETED),
            ("hardware", SwarmStepStatus.FAILED),
        ]
        errors = [
            m
            for m in await swarm_store.list_messages(traced.run_id)
            if m.kind == SwarmMessageKind.ERROR
        ]
        assert [m.from_agent for m in errors] == ["hardware"]
        assert "failed to check support" in errors[0].content

        run = await swarm_store.get_run(traced.run_id)
        assert run.status == SwarmStatus.COMPLETED
        assert run.finished_at is not None
        assert repr(recorder) == "SwarmRecorder(store=InMemorySwarmStore, open_runs=0)"

    async def test_store_failure_closes_run_failed(self, ticket_outcome_ctx) -> None:
        store = HandofflessStore()
        recorder = SwarmRecorder(store, Orchestrator())

        with pytest.raises(RuntimeError, match="handoff table unavailable"):
            await recorder.run(ticket_outcome_ctx)

        runs = await store.list_runs()
        assert len(runs) == 1
        assert runs[0].status == SwarmStatus.FAILED
        assert runs[0].finished_at is not None
        assert runs[0].agents_involved == ["assistance"]
        assert repr(recorder) == "SwarmRecorder(store=HandofflessStore, open_runs=0)"

    async def test_closed_run_rejects_late_writes(self, ticket_outcome_ctx) -> None:
        store = HandofflessStore()
        recorder = SwarmRecorder(store, Orchestrator())
        with pytest.raises(RuntimeError):
            await recorder.run(ticket_outcome_ctx)

        run_id = (await store.list_runs())[0].id
        with pytest.raises(SwarmRunError) as exc_info:
            await recorder.record_step(run_id, "energy")
        assert exc_info.value.error_code == "SWARM_RUN_CLOSED"


# =============================================================================
# Tests: Low-Level Recording API
# =============================================================================
class TestRecordingApi:
    """open_run / record_* / close_run."""

    async def test_manual_run(self, recorder, swarm_store) -> None:
        run = await recorder.open_run("operator.discussion")
        step = await recorder.record_step(run.id, "Orchestratore")
        message = await recorder.record_message(
            run.id, "Orchestratore", SwarmMessageKind.OBSERVATION, "Brief"
        )
        await recorder.finish_step(step, SwarmStepStatus.COMPLETED)
        closed = await recorder.close_run(run.id, SwarmStatus.COMPLETED)
        assert (step.step_no, message.step_no) == (1, 2)
        assert closed.agents_involved == ["Orchestratore"]
        assert closed.is_terminal

    async def test_handoff_api(self, recorder, swarm_store) -> None:
        run = await recorder.open_run("danea.invoice.ingested")
        edge = HandoffEdge(
            from_agent=AgentName.INGEST,
            to_agent=AgentName.CONTENT,
            reason="hardware stock arrived",
        )
        handoff = await recorder.record_handoff(run.id, edge)
        assert handoff.status == HandoffStatus.PENDING
        messages = await swarm_store.list_messages(run.id)
        assert messages[0].kind == SwarmMessageKind.HANDOFF
        assert messages[0].to_agent == "content"

    async def test_write_after_close(self, recorder) -> None:
        run = await recorder.open_run("x")
        await recorder.close_run(run.id, SwarmStatus.COMPLETED)
        with pytest.raises(SwarmRunError) as exc_info:
            await recorder.record_message(run.id, "a", SwarmMessageKind.OBSERVATION, "late")
        assert exc_info.value.error_code == "SWARM_RUN_CLOSED"

    async def test_unknown_run(self, recorder) -> None:
        with pytest.raises(SwarmRunError):
            await recorder.record_step("run_missing", "energy")
        with pytest.raises(SwarmRunError):
            await recorder.close_run("run_missing", SwarmStatus.COMPLETED)

    async def test_concurrent_appends_strictly_increase(self, recorder, swarm_store) -> None:
        run = await recorder.open_run("x")
        await asyncio.gather(
            *[
                recorder.record_message(run.id, f"agent{i}", SwarmMessageKind.OBSERVATION, "n")
                for i in range(20)
            ]
        )
        numbers = [m.step_no for m in await swarm_store.list_messages(run.id)]
        assert numbers == list(range(1, 21))

    async def test_repr(self, recorder) -> None:
        assert repr(recorder) == "SwarmRecorder(store=InMemorySwarmStore, open_runs=0)"


# =============================================================================
# Tests: Providers and Evaluators
# =============================================================================
class CatalogueProvider(AgentProvider):
    name = "catalogue"

    async def provide(self, ctx):
        return {"offers": len(ctx.active_offers)}


class ApprovingEvaluator(AgentEvaluator):
    name = "approver"

    async def evaluate(self, ctx, results):
        return EvaluationResult(notes=[f"offers={ctx.enriched_data['catalogue']['offers']}"])


class TestTracedHooks:
    """Providers and evaluators configured on the orchestrator apply to traced runs."""

    async def test_hook_records_around_traced_records(
        self, registry, swarm_store, ticket_outcome_ctx
    ) -> None:
        orchestrator = Orchestrator(
            registry, providers=[CatalogueProvider()], evaluators=[ApprovingEvaluator()]
        )
        traced = await SwarmRecorder(swarm_store, orchestrator).run(ticket_outcome_ctx)

        records = traced.output.audit_records
        assert [r.type for r in records] == [
            "event.received",
            "providers.run",
            "actions.ranked",
            "agents.executed",
            "evaluator.result",
            "swarm.run.completed",
        ]
        assert records[4].payload["notes"] == [f"offers={len(ticket_outcome_ctx.active_offers)}"]
        assert (await swarm_store.get_run(traced.run_id)).status == SwarmStatus.COMPLETED
