"""
Tests for copilotrm.orchestration.rules
=========================================

One test class per rule block, plus the dispatch edge cases.
"""

from copilotrm.core.enums import (
    ActionType,
    AgentName,
    Channel,
    EventType,
    OfferCategory,
    Trigger,
)
from copilotrm.core.models import DomainEvent, ProductOffer
from copilotrm.orchestration.rules import RULES, first_offer, generate_candidates


def _ticket_event(outcome="not-worth-repairing", signals=None) -> DomainEvent:
    return DomainEvent(
        type=EventType.TICKET_OUTCOME,
        customer_id="cust_1",
        payload={"outcome": outcome, "inferredSignals": signals or []},
    )


class TestTicketOutcomeRules:
    """assistance.ticket.outcome"""

    def test_gamer_not_worth_repairing(self, ticket_outcome_event, offers) -> None:
        candidates = generate_candidates(ticket_outcome_event, offers)
        assert [c.trigger for c in candidates] == [Trigger.NOT_WORTH_REPAIRING, Trigger.GAMER_LAG]

        quote, connectivity = candidates
        assert quote.agent == AgentName.PREVENTIVI
        assert quote.action_type == ActionType.QUOTE
        assert quote.offer_id == "off_nb"
        assert quote.confidence == 0.82
        assert quote.metadata == {"context_fit": 0.95, "profile_fit": 0.7}
        assert quote.customer_id == "cust_1"

        assert connectivity.agent == AgentName.TELEPHONY
        assert connectivity.action_type == ActionType.CROSS_SELL
        assert connectivity.offer_id == "off_fibra"
        assert connectivity.channel == Channel.WHATSAPP

    def test_profile_fit_without_gamer(self, offers) -> None:
        candidates = generate_candidates(_ticket_event(), offers)
        assert len(candidates) == 1
        assert candidates[0].metadata["profile_fit"] == 0.6

    def test_energy_signal(self, offers) -> None:
        candidates = generate_candidates(
            _ticket_event(outcome="repaired", signals=["energia"]), offers
        )
        assert len(candidates) == 1
        assert candidates[0].trigger == Trigger.ENERGY_SIGNAL
        assert candidates[0].offer_id == "off_luce"
        assert candidates[0].confidence == 0.74

    def test_all_three(self, offers) -> None:
        candidates = generate_candidates(_ticket_event(signals=["gamer", "energia"]), offers)
        assert [c.agent for c in candidates] == [
            AgentName.PREVENTIVI,
            AgentName.TELEPHONY,
            AgentName.ENERGY,
        ]

    def test_no_matching_offer_leaves_offer_id_empty(self) -> None:
        candidates = generate_candidates(_ticket_event(signals=["gamer"]), [])
        assert [c.offer_id for c in candidates] == [None, None]

    def test_repaired_without_signals(self, offers) -> None:
        assert generate_candidates(_ticket_event(outcome="repaired"), offers) == []


class TestInvoiceRules:
    """danea.invoice.ingested"""

    def test_hardware_line(self, invoice_ctx) -> None:
        candidates = generate_candidates(invoice_ctx.event, invoice_ctx.active_offers)
        assert [c.trigger for c in candidates] == [
            Trigger.INVOICE_HARDWARE,
            Trigger.INVOICE_HARDWARE_PLAYBOOK,
        ]
        assert [c.agent for c in candidates] == [AgentName.CONTENT, AgentName.HARDWARE]
        assert all(c.needs_approval for c in candidates)
        assert all(c.offer_id == "off_nb" for c in candidates)
        assert candidates[0].channel == Channel.TELEGRAM
        assert candidates[0].customer_id is None

    def test_no_hardware_line(self, offers) -> None:
        event = DomainEvent(
            type=EventType.INVOICE_INGESTED,
            payload={"lines": [{"description": "Cover silicone"}, {"description": "Cavo USB"}]},
        )
        assert generate_candidates(event, offers) == []

    def test_missing_lines(self, offers) -> None:
        assert generate_candidates(DomainEvent(type=EventType.INVOICE_INGESTED), offers) == []


class TestPromoRules:
    """offer.promo.ingested"""

    def test_smartphone_promo(self, promo_ctx) -> None:
        candidates = generate_candidates(promo_ctx.event, promo_ctx.active_offers)
        assert len(candidates) == 1
        candidate = candidates[0]
        assert candidate.agent == AgentName.TELEPHONY
        assert candidate.action_type == ActionType.CAMPAIGN
        assert candidate.trigger == Trigger.PROMO_SMARTPHONE
        assert candidate.offer_id == "off_phone"

    def test_other_promo(self, offers) -> None:
        event = DomainEvent(type=EventType.PROMO_INGESTED, payload={"title": "Promo Luce Casa"})
        assert generate_candidates(event, offers) == []


class TestInboundEmailRules:
    """inbound.email.received"""

    def test_complaint(self, complaint_ctx) -> None:
        candidates = generate_candidates(complaint_ctx.event, complaint_ctx.active_offers)
        assert len(candidates) == 1
        candidate = candidates[0]
        assert candidate.agent == AgentName.CUSTOMER_CARE
        assert candidate.needs_approval is False
        assert candidate.channel == Channel.EMAIL
        assert candidate.offer_id is None

    def test_delay_in_body(self) -> None:
        event = DomainEvent(
            type=EventType.INBOUND_EMAIL,
            payload={"subject": "Ordine", "body": "C'è un RITARDO nella consegna"},
        )
        assert len(generate_candidates(event)) == 1

    def test_plain_question(self) -> None:
        event = DomainEvent(
            type=EventType.INBOUND_EMAIL,
            payload={"subject": "Info", "body": "Avete il Pixel 8?"},
        )
        assert generate_candidates(event) == []


class TestDispatch:
    """Event types without rules."""

    def test_ruled_event_types(self) -> None:
        assert set(RULES) == {
            EventType.TICKET_OUTCOME,
            EventType.INVOICE_INGESTED,
            EventType.PROMO_INGESTED,
            EventType.INBOUND_EMAIL,
        }

    def test_unruled_event(self, offers) -> None:
        event = DomainEvent(type=EventType.INBOUND_WHATSAPP, payload={"body": "non ho ricevuto"})
        assert generate_candidates(event, offers) == []

    def test_offers_optional(self, ticket_outcome_event) -> None:
        assert len(generate_candidates(ticket_outcome_event)) == 2

    def test_first_offer_catalogue_order(self, offers) -> None:
        offer = first_offer(offers, lambda o: o.category == OfferCategory.HARDWARE)
        assert offer.id == "off_nb"
        assert first_offer(offers, lambda o: o.category == OfferCategory.ACCESSORY) is None

    def test_replacement_skips_non_matching_hardware(self) -> None:
        offers = [
            ProductOffer(id="off_mon", category=OfferCategory.HARDWARE, title="Monitor 27"),
            ProductOffer(id="off_pc", category=OfferCategory.HARDWARE, title="PC Desktop"),
        ]
        candidates = generate_candidates(_ticket_event(), offers)
        assert candidates[0].offer_id == "off_pc"
