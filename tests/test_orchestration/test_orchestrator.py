"""
Tests for copilotrm.orchestration.orchestrator
================================================

The synchronous pipeline end to end: ranking, handoffs, materialized and
agent-produced work items, audit records, agent failure isolation, and
the provider / evaluator hooks of run_async().
"""

import pytest

from copilotrm.agents.base import BusinessAgent
from copilotrm.agents.commercial import TelephonyAgent
from copilotrm.agents.governance import ComplianceAgent
from copilotrm.agents.registry import AgentRegistry
from copilotrm.core.config import OrchestratorConfig
from copilotrm.core.enums import AgentName, DraftStatus, EventType
from copilotrm.core.exceptions import ContextError
from copilotrm.core.models import DomainEvent, EvaluationResult, OrchestratorContext
from copilotrm.orchestration.enrichment import AgentEvaluator, AgentProvider
from copilotrm.orchestration.orchestrator import Orchestrator, validate_context


class ExplodingAgent(BusinessAgent):
    """Supports ticket outcomes and always fails."""

    name = AgentName.ENERGY

    def supports(self, event_type: EventType) -> bool:
        return event_type == EventType.TICKET_OUTCOME

    def _execute(self, ctx):
        raise KeyError("tariff table")


class PickyAgent(BusinessAgent):
    """Raises while deciding whether it handles an event."""

    name = AgentName.HARDWARE

    def supports(self, event_type: EventType) -> bool:
        raise KeyError(event_type.value)

    def _execute(self, ctx):
        return self._result()


class StaticProvider(AgentProvider):
    """Returns a fixed payload."""

    def __init__(self, name: str, data) -> None:
        self.name = name
        self.data = data
        self.seen = []

    async def provide(self, ctx):
        self.seen.append(ctx.event.id)
        return self.data


class OfflineProvider(AgentProvider):
    name = "danea"

    async def provide(self, ctx):
        raise ConnectionError("catalogue offline")


class CountingEvaluator(AgentEvaluator):
    """Notes how many agents produced results and what it saw in the context."""

    name = "counter"

    def __init__(self) -> None:
        self.enriched = None

    async def evaluate(self, ctx, results):
        self.enriched = dict(ctx.enriched_data)
        return EvaluationResult(notes=[f"{len(results)} agents"])


class BrokenEvaluator(AgentEvaluator):
    name = "broken"

    async def evaluate(self, ctx, results):
        raise ValueError("no verdict")


# =============================================================================
# Tests: Context Validation
# =============================================================================
class TestValidateContext:
    """Fail fast on a missing event."""

    def test_none(self) -> None:
        with pytest.raises(ContextError):
            validate_context(None)

    def test_run_rejects_none(self, orchestrator) -> None:
        with pytest.raises(ContextError):
            orchestrator.run(None)

    def test_valid_passes_through(self, ticket_outcome_ctx) -> None:
        assert validate_context(ticket_outcome_ctx) is ticket_outcome_ctx


# =============================================================================
# Tests: Gamer Ticket Outcome
# =============================================================================
class TestTicketOutcomeRun:
    """Not-worth-repairing outcome for a gamer with a connectivity objective."""

    def test_ranking(self, orchestrator, ticket_outcome_ctx) -> None:
        output = orchestrator.run(ticket_outcome_ctx)
        assert [a.agent for a in output.ranked_actions] == [
            AgentName.TELEPHONY,
            AgentName.PREVENTIVI,
        ]
        assert output.top_action.title == "Proposta connectivity gaming (fibra/router/mesh)"
        assert output.top_action.score_breakdown.total == pytest.approx(7.06)
        assert output.ranked_actions[1].score_breakdown.total == pytest.approx(4.07)

    def test_handoffs_follow_ranked_order(self, orchestrator, ticket_outcome_ctx) -> None:
        output = orchestrator.run(ticket_outcome_ctx)
        assert [(h.from_agent, h.to_agent) for h in output.handoffs] == [
            (AgentName.ASSISTANCE, AgentName.TELEPHONY),
            (AgentName.ASSISTANCE, AgentName.PREVENTIVI),
        ]
        assert [h.source_action_id for h in output.handoffs] == [
            a.id for a in output.ranked_actions
        ]

    def test_work_items(self, orchestrator, ticket_outcome_ctx) -> None:
        output = orchestrator.run(ticket_outcome_ctx)
        # 2 materialized + assistance, preventivi, telephony
        assert len(output.tasks) == 5
        # 2 materialized + assistance, preventivi, telephony, hardware
        assert len(output.drafts) == 6
        assert output.tasks[0].title == "Proposta connectivity gaming (fibra/router/mesh)"
        assert output.tasks[0].priority == 9

    def test_audit_records(self, orchestrator, ticket_outcome_ctx) -> None:
        output = orchestrator.run(ticket_outcome_ctx)
        types = [r.type for r in output.audit_records]
        assert types[:5] == [
            "event.received",
            "rules.candidates.generated",
            "actions.ranked",
            "handoffs.derived",
            "agents.executed",
        ]
        assert types[5:11] == ["agent.notes"] * 6
        assert types[11:] == ["candidate.scored"] * 2
        assert len(types) == 13

    def test_audit_payloads(self, orchestrator, ticket_outcome_ctx) -> None:
        records = orchestrator.run(ticket_outcome_ctx).audit_records
        assert records[1].payload == {"count": 2}
        assert records[2].payload["top_score"] == pytest.approx(7.06)
        assert len(records[3].payload["handoffs"]) == 2
        assert records[4].payload == {
            "agents": ["assistance", "preventivi", "telephony", "energy", "hardware", "compliance"],
            "failed": [],
        }
        assert [r.actor for r in records[5:11]] == [
            "assistance",
            "preventivi",
            "telephony",
            "energy",
            "hardware",
            "compliance",
        ]
        assert records[0].actor == "orchestrator"

    def test_candidate_scored_carries_breakdown(self, orchestrator, ticket_outcome_ctx) -> None:
        """candidate.scored holds every score component, not just the total."""
        output = orchestrator.run(ticket_outcome_ctx)
        scored = [r for r in output.audit_records if r.type == "candidate.scored"]
        top = scored[0].payload
        assert top["agent"] == "telephony"
        assert top["score"]["total"] == pytest.approx(7.06)
        assert set(top["score"]) == {
            "context_fit",
            "profile_fit",
            "objective_boost",
            "margin_score",
            "stock_score",
            "channel_consent_score",
            "saturation_penalty",
            "confidence_score",
            "total",
        }
        assert top["score"] == output.ranked_actions[0].score_breakdown.model_dump()

    def test_context_not_mutated(self, orchestrator, ticket_outcome_ctx) -> None:
        before = ticket_outcome_ctx.model_dump()
        orchestrator.run(ticket_outcome_ctx)
        assert ticket_outcome_ctx.model_dump() == before

    def test_rank_only(self, orchestrator, ticket_outcome_ctx) -> None:
        scored = orchestrator.rank(ticket_outcome_ctx)
        assert [s.candidate.agent for s in scored] == [AgentName.TELEPHONY, AgentName.PREVENTIVI]


# =============================================================================
# Tests: Other Event Types
# =============================================================================
class TestOtherEvents:
    """Invoice, promo, complaint and unruled events."""

    def test_invoice(self, orchestrator, invoice_ctx) -> None:
        output = orchestrator.run(invoice_ctx)
        assert [a.agent for a in output.ranked_actions] == [AgentName.CONTENT, AgentName.HARDWARE]
        assert all(a.needs_approval for a in output.ranked_actions)
        assert [(h.from_agent, h.to_agent) for h in output.handoffs] == [
            (AgentName.INGEST, AgentName.CONTENT)
        ]

    def test_promo(self, orchestrator, promo_ctx) -> None:
        output = orchestrator.run(promo_ctx)
        top = output.top_action
        assert top.agent == AgentName.TELEPHONY
        assert top.score_breakdown.channel_consent_score == 0.5
        assert output.handoffs == []
        assert output.drafts[0].customer_id is None

    def test_complaint_urgent_path(self, orchestrator, complaint_ctx) -> None:
        output = orchestrator.run(complaint_ctx)
        assert len(output.ranked_actions) == 1
        assert output.ranked_actions[0].needs_approval is False
        assert output.drafts[0].status == DraftStatus.READY

    def test_complaint_work_items_from_both_sources(self, orchestrator, complaint_ctx) -> None:
        """The ranked action's items come first, then the care agent's own."""
        output = orchestrator.run(complaint_ctx)
        assert [t.title for t in output.tasks] == [
            "Apri task customer care urgente con risposta suggerita",
            "Verifica stato pratica e risposta cliente",
        ]
        assert [t.assignee_role for t in output.tasks] == ["customer-care", "customer-care"]
        assert [t.priority for t in output.tasks] == [9, 10]
        assert [d.subject for d in output.drafts] == [None, "Aggiornamento sulla tua pratica"]
        assert all(d.status == DraftStatus.READY for d in output.drafts)

    def test_unruled_event(self, orchestrator) -> None:
        ctx = OrchestratorContext(event=DomainEvent(type=EventType.OBJECTIVE_UPDATED))
        output = orchestrator.run(ctx)
        assert output.ranked_actions == []
        assert output.top_action is None
        assert output.tasks == []
        types = [r.type for r in output.audit_records]
        assert types == [
            "event.received",
            "rules.candidates.generated",
            "actions.ranked",
            "handoffs.derived",
            "agents.executed",
            "agent.notes",
        ]
        assert output.audit_records[2].payload["top_action"] is None


# =============================================================================
# Tests: Failure Isolation and Config
# =============================================================================
class TestFailureIsolation:
    """A failing agent becomes an agent.error record."""

    def test_failing_agent(self, ticket_outcome_ctx) -> None:
        registry = AgentRegistry([TelephonyAgent(), ExplodingAgent(), ComplianceAgent()])
        output = Orchestrator(registry).run(ticket_outcome_ctx)

        executed = next(r for r in output.audit_records if r.type == "agents.executed")
        assert executed.payload["agents"] == ["telephony", "energy", "compliance"]
        assert executed.payload["failed"] == ["energy"]

        errors = [r for r in output.audit_records if r.type == "agent.error"]
        assert len(errors) == 1
        assert errors[0].actor == "energy"
        assert errors[0].payload["error_code"] == "AGENT_EXECUTION_FAILED"
        assert len(output.ranked_actions) == 2

    def test_record_order_kept_around_failure(self, ticket_outcome_ctx) -> None:
        registry = AgentRegistry([TelephonyAgent(), ExplodingAgent(), ComplianceAgent()])
        output = Orchestrator(registry).run(ticket_outcome_ctx)
        per_agent = [r for r in output.audit_records if r.type in ("agent.notes", "agent.error")]
        assert [(r.actor, r.type) for r in per_agent] == [
            ("telephony", "agent.notes"),
            ("energy", "agent.error"),
            ("compliance", "agent.notes"),
        ]

    def test_supports_failure_isolated(self, ticket_outcome_ctx) -> None:
        """An agent whose supports() raises is reported, the others still run."""
        registry = AgentRegistry([TelephonyAgent(), PickyAgent(), ComplianceAgent()])
        output = Orchestrator(registry).run(ticket_outcome_ctx)

        executed = next(r for r in output.audit_records if r.type == "agents.executed")
        assert executed.payload["agents"] == ["telephony", "hardware", "compliance"]
        assert executed.payload["failed"] == ["hardware"]

        error = next(r for r in output.audit_records if r.type == "agent.error")
        assert error.actor == "hardware"
        assert error.payload["error_code"] == "AGENT_SUPPORTS_FAILED"
        assert error.payload["details"]["original_error"] == "KeyError"


class TestConfig:
    """Actionable confidence threshold."""

    def test_threshold_limits_materialization(self, registry, ticket_outcome_ctx) -> None:
        orchestrator = Orchestrator(registry, OrchestratorConfig(min_actionable_confidence=0.85))
        output = orchestrator.run(ticket_outcome_ctx)
        assert len(output.ranked_actions) == 2
        # 1 materialized (telephony, 0.86) + 3 from agents
        assert len(output.tasks) == 4

    def test_default_registry(self) -> None:
        assert len(Orchestrator().registry) == 8


# =============================================================================
# Tests: Providers and Evaluators
# =============================================================================
class TestProvidersAndEvaluators:
    """run_async(): enrichment before the agents, review after them."""

    async def test_without_hooks_matches_run(self, orchestrator, ticket_outcome_ctx) -> None:
        output = await orchestrator.run_async(ticket_outcome_ctx)
        assert [r.type for r in output.audit_records] == [
            r.type for r in orchestrator.run(ticket_outcome_ctx).audit_records
        ]

    async def test_provider_data_reaches_evaluator(self, registry, ticket_outcome_ctx) -> None:
        provider = StaticProvider("stock", {"off_pc": 4})
        evaluator = CountingEvaluator()
        orchestrator = Orchestrator(registry, providers=[provider], evaluators=[evaluator])

        output = await orchestrator.run_async(ticket_outcome_ctx)

        assert provider.seen == [ticket_outcome_ctx.event.id]
        assert evaluator.enriched == {"stock": {"off_pc": 4}}
        assert ticket_outcome_ctx.enriched_data == {}

        types = [r.type for r in output.audit_records]
        assert types[:3] == ["event.received", "providers.run", "rules.candidates.generated"]
        assert types[-1] == "evaluator.result"
        assert output.audit_records[1].payload == {"providers": ["stock"]}
        assert output.audit_records[-1].payload == {
            "evaluator": "counter",
            "should_continue": True,
            "notes": ["6 agents"],
        }

    async def test_provider_failure_isolated(self, registry, ticket_outcome_ctx) -> None:
        evaluator = CountingEvaluator()
        orchestrator = Orchestrator(
            registry,
            providers=[OfflineProvider(), StaticProvider("news", ["fibra 2.5G"])],
            evaluators=[evaluator],
        )

        output = await orchestrator.run_async(ticket_outcome_ctx)

        records = output.audit_records
        assert [r.type for r in records[:3]] == ["event.received", "provider.error", "providers.run"]
        assert records[1].payload == {"provider": "danea", "error": "catalogue offline"}
        assert records[2].payload == {"providers": ["danea", "news"]}
        assert evaluator.enriched == {"news": ["fibra 2.5G"]}
        assert output.top_action.agent == AgentName.TELEPHONY

    async def test_evaluator_failure_isolated(self, registry, ticket_outcome_ctx) -> None:
        orchestrator = Orchestrator(registry, evaluators=[BrokenEvaluator(), CountingEvaluator()])

        output = await orchestrator.run_async(ticket_outcome_ctx)

        tail = output.audit_records[-2:]
        assert [r.type for r in tail] == ["evaluator.error", "evaluator.result"]
        assert tail[0].payload == {"evaluator": "broken", "error": "no verdict"}
        assert "providers.run" not in [r.type for r in output.audit_records]

    async def test_evaluator_sees_only_successful_agents(self, ticket_outcome_ctx) -> None:
        evaluator = CountingEvaluator()
        registry = AgentRegistry([TelephonyAgent(), ExplodingAgent(), ComplianceAgent()])
        output = await Orchestrator(registry, evaluators=[evaluator]).run_async(ticket_outcome_ctx)
        assert output.audit_records[-1].payload["notes"] == ["2 agents"]

    def test_sync_run_skips_hooks(self, registry, ticket_outcome_ctx) -> None:
        provider = StaticProvider("stock", {})
        orchestrator = Orchestrator(registry, providers=[provider], evaluators=[BrokenEvaluator()])
        output = orchestrator.run(ticket_outcome_ctx)
        assert provider.seen == []
        assert len(output.audit_records) == 13

    async def test_context_required(self, orchestrator) -> None:
        with pytest.raises(ContextError):
            await orchestrator.run_async(None)
