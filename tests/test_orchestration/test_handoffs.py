"""
Tests for copilotrm.orchestration.handoffs
============================================

The fixed handoff table and the projection over candidate lists.
"""

from copilotrm.core.enums import ActionType, AgentName, Trigger
from copilotrm.core.models import ActionCandidate
from copilotrm.orchestration.handoffs import HANDOFF_ROUTES, derive_handoffs
from copilotrm.orchestration.rules import generate_candidates


def _candidate(agent: AgentName, trigger) -> ActionCandidate:
    return ActionCandidate(
        agent=agent,
        action_type=ActionType.CROSS_SELL,
        title="x",
        trigger=trigger,
        confidence=0.5,
    )


class TestRoutes:
    """The three routed triggers."""

    def test_table(self) -> None:
        assert set(HANDOFF_ROUTES) == {
            Trigger.NOT_WORTH_REPAIRING,
            Trigger.GAMER_LAG,
            Trigger.INVOICE_HARDWARE,
        }

    def test_gamer_ticket(self, ticket_outcome_event, offers) -> None:
        candidates = generate_candidates(ticket_outcome_event, offers)
        edges = derive_handoffs(candidates)
        assert [(e.from_agent, e.to_agent, e.reason) for e in edges] == [
            (AgentName.ASSISTANCE, AgentName.PREVENTIVI, "repair-not-worth -> replacement quote"),
            (AgentName.ASSISTANCE, AgentName.TELEPHONY, "gamer profile + network issue"),
        ]
        assert [e.source_action_id for e in edges] == [c.id for c in candidates]
        assert all(not e.blocking and not e.requires_approval for e in edges)

    def test_invoice(self, invoice_ctx) -> None:
        edges = derive_handoffs(generate_candidates(invoice_ctx.event, invoice_ctx.active_offers))
        assert len(edges) == 1
        assert edges[0].from_agent == AgentName.INGEST
        assert edges[0].to_agent == AgentName.CONTENT
        assert edges[0].reason == "hardware stock arrived"


class TestProjection:
    """Purity and filtering."""

    def test_unrouted_triggers(self) -> None:
        candidates = [
            _candidate(AgentName.ENERGY, Trigger.ENERGY_SIGNAL),
            _candidate(AgentName.TELEPHONY, Trigger.PROMO_SMARTPHONE),
            _candidate(AgentName.CUSTOMER_CARE, Trigger.POST_SALE_COMPLAINT),
            _candidate(AgentName.HARDWARE, None),
        ]
        assert derive_handoffs(candidates) == []

    def test_trigger_on_wrong_agent_ignored(self) -> None:
        assert derive_handoffs([_candidate(AgentName.ENERGY, Trigger.GAMER_LAG)]) == []

    def test_no_deduplication(self) -> None:
        candidates = [
            _candidate(AgentName.TELEPHONY, Trigger.GAMER_LAG),
            _candidate(AgentName.TELEPHONY, Trigger.GAMER_LAG),
        ]
        assert len(derive_handoffs(candidates)) == 2

    def test_follows_list_order(self) -> None:
        quote = _candidate(AgentName.PREVENTIVI, Trigger.NOT_WORTH_REPAIRING)
        gamer = _candidate(AgentName.TELEPHONY, Trigger.GAMER_LAG)
        edges = derive_handoffs([gamer, quote])
        assert [e.to_agent for e in edges] == [AgentName.TELEPHONY, AgentName.PREVENTIVI]

    def test_deterministic(self, ticket_outcome_event, offers) -> None:
        candidates = generate_candidates(ticket_outcome_event, offers)
        assert derive_handoffs(candidates) == derive_handoffs(candidates)

    def test_empty(self) -> None:
        assert derive_handoffs([]) == []
