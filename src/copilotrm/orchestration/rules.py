"""
copilotrm.orchestration.rules - Candidate Generator
=====================================================

Turns one DomainEvent into zero or more ActionCandidates. Pure and
deterministic apart from the generated candidate ids.

One rule block per EventType, dispatched through RULES:

    ┌────────────────────────────┬──────────────────────────────┬──────────────┬───────┐
    │ Event                      │ Trigger                      │ Agent        │ Conf. │
    ├────────────────────────────┼──────────────────────────────┼──────────────┼───────┤
    │ assistance.ticket.outcome  │ not-worth-repairing          │ preventivi   │ 0.82  │
    │                            │ gamer-lag                    │ telephony    │ 0.86  │
    │                            │ energy-signal                │ energy       │ 0.74  │
    │ danea.invoice.ingested     │ invoice-hardware             │ content      │ 0.90  │
    │                            │ invoice-hardware-playbook    │ hardware     │ 0.81  │
    │ offer.promo.ingested       │ promo-smartphone             │ telephony    │ 0.88  │
    │ inbound.email.received     │ post-sale-complaint          │ customer-care│ 0.91  │
    └────────────────────────────┴──────────────────────────────┴──────────────┴───────┘

Every candidate records its Trigger (the handoff join key) and the
``context_fit`` / ``profile_fit`` seeds the scoring engine starts from.
Offer references are "first match in active-offers order"; no match leaves
``offer_id`` as None. An event type without a rule block yields [].

Usage:
    >>> candidates = generate_candidates(event, ctx.active_offers)
"""

from __future__ import annotations

import re
from typing import Callable, Optional

from copilotrm.core.enums import ActionType, AgentName, Channel, EventType, OfferCategory, Trigger
from copilotrm.core.models import ActionCandidate, DomainEvent, ProductOffer


# =============================================================================
# Patterns
# =============================================================================
REPLACEMENT_OFFER_PATTERN = re.compile(r"notebook|pc", re.IGNORECASE)
ENERGY_OFFER_PATTERN = re.compile(r"energia|luce|gas", re.IGNORECASE)
HARDWARE_LINE_PATTERN = re.compile(r"rtx|gpu|notebook|pc|ssd|monitor", re.IGNORECASE)
SMARTPHONE_PROMO_PATTERN = re.compile(r"oppo|samsung|iphone|smartphone", re.IGNORECASE)
# Applied to the lower-cased "subject body" text
COMPLAINT_PATTERN = re.compile(r"(contratto).*(giorni)|non ho ricevuto|ritardo")


# =============================================================================
# Helpers
# =============================================================================
def first_offer(
    offers: list[ProductOffer],
    predicate: Callable[[ProductOffer], bool],
) -> Optional[ProductOffer]:
    """Return the first offer (catalogue order) matching ``predicate``."""
    return next((offer for offer in offers if predicate(offer)), None)


def _offer_id(offer: Optional[ProductOffer]) -> Optional[str]:
    return offer.id if offer is not None else None


def _candidate(
    event: DomainEvent,
    *,
    agent: AgentName,
    action_type: ActionType,
    trigger: Trigger,
    title: str,
    channel: Channel,
    confidence: float,
    context_fit: float,
    profile_fit: float,
    offer: Optional[ProductOffer] = None,
    needs_approval: bool = True,
) -> ActionCandidate:
    return ActionCandidate(
        agent=agent,
        action_type=action_type,
        title=title,
        trigger=trigger,
        channel=channel,
        offer_id=_offer_id(offer),
        customer_id=event.customer_id,
        confidence=confidence,
        needs_approval=needs_approval,
        metadata={"context_fit": context_fit, "profile_fit": profile_fit},
    )


def _signals(event: DomainEvent) -> list[str]:
    signals = event.payload.get("inferredSignals") or []
    return [str(s) for s in signals] if isinstance(signals, (list, tuple)) else []


# =============================================================================
# Rule Blocks
# =============================================================================
def _ticket_outcome_rules(event: DomainEvent, offers: list[ProductOffer]) -> list[ActionCandidate]:
    candidates = []
    signals = _signals(event)

    if event.payload.get("outcome") == "not-worth-repairing":
        replacement = first_offer(
            offers,
            lambda o: o.category == OfferCategory.HARDWARE
            and bool(REPLACEMENT_OFFER_PATTERN.search(o.title)),
        )
        candidates.append(
            _candidate(
                event,
                agent=AgentName.PREVENTIVI,
                action_type=ActionType.QUOTE,
                trigger=Trigger.NOT_WORTH_REPAIRING,
                title="Genera preventivo sostituzione in 3 fasce",
                channel=Channel.WHATSAPP,
                confidence=0.82,
                context_fit=0.95,
                profile_fit=0.7 if "gamer" in signals else 0.6,
                offer=replacement,
            )
        )

    if "gamer" in signals:
        connectivity = first_offer(offers, lambda o: o.category == OfferCategory.CONNECTIVITY)
        candidates.append(
            _candidate(
                event,
                agent=AgentName.TELEPHONY,
                action_type=ActionType.CROSS_SELL,
                trigger=Trigger.GAMER_LAG,
                title="Proposta connectivity gaming (fibra/router/mesh)",
                channel=Channel.WHATSAPP,
                confidence=0.86,
                context_fit=0.98,
                profile_fit=0.92,
                offer=connectivity,
            )
        )

    if "energia" in signals:
        energy = first_offer(
            offers,
            lambda o: o.category == OfferCategory.ENERGY
            or bool(ENERGY_OFFER_PATTERN.search(o.title)),
        )
        candidates.append(
            _candidate(
                event,
                agent=AgentName.ENERGY,
                action_type=ActionType.CROSS_SELL,
                trigger=Trigger.ENERGY_SIGNAL,
                title="Proposta risparmio energia coerente con profilo",
                channel=Channel.WHATSAPP,
                confidence=0.74,
                context_fit=0.82,
                profile_fit=0.72,
                offer=energy,
            )
        )

    return candidates


def _invoice_rules(event: DomainEvent, offers: list[ProductOffer]) -> list[ActionCandidate]:
    lines = event.payload.get("lines") or []
    descriptions = [
        str(line.get("description", "")) for line in lines if isinstance(line, dict)
    ]
    if not any(HARDWARE_LINE_PATTERN.search(d) for d in descriptions):
        return []

    hardware = first_offer(offers, lambda o: o.category == OfferCategory.HARDWARE)
    return [
        _candidate(
            event,
            agent=AgentName.CONTENT,
            action_type=ActionType.CONTENT,
            trigger=Trigger.INVOICE_HARDWARE,
            title="Crea task content factory per nuovo stock hardware",
            channel=Channel.TELEGRAM,
            confidence=0.9,
            context_fit=0.9,
            profile_fit=0.5,
            offer=hardware,
        ),
        _candidate(
            event,
            agent=AgentName.HARDWARE,
            action_type=ActionType.FOLLOWUP,
            trigger=Trigger.INVOICE_HARDWARE_PLAYBOOK,
            title="Prepara scheda commerciale hardware per banco e one-to-one",
            channel=Channel.WHATSAPP,
            confidence=0.81,
            context_fit=0.88,
            profile_fit=0.52,
            offer=hardware,
        ),
    ]


def _promo_rules(event: DomainEvent, offers: list[ProductOffer]) -> list[ActionCandidate]:
    title = str(event.payload.get("title") or "")
    if not SMARTPHONE_PROMO_PATTERN.search(title):
        return []

    smartphone = first_offer(offers, lambda o: o.category == OfferCategory.SMARTPHONE)
    return [
        _candidate(
            event,
            agent=AgentName.TELEPHONY,
            action_type=ActionType.CAMPAIGN,
            trigger=Trigger.PROMO_SMARTPHONE,
            title="Lancia campagna promo smartphone bundle",
            channel=Channel.TELEGRAM,
            confidence=0.88,
            context_fit=0.93,
            profile_fit=0.75,
            offer=smartphone,
        )
    ]


def _inbound_email_rules(event: DomainEvent, offers: list[ProductOffer]) -> list[ActionCandidate]:
    text = f"{event.payload.get('subject') or ''} {event.payload.get('body') or ''}".lower()
    if not COMPLAINT_PATTERN.search(text):
        return []

    # Urgent path: the reply is sent without operator approval
    return [
        _candidate(
            event,
            agent=AgentName.CUSTOMER_CARE,
            action_type=ActionType.CUSTOMER_CARE,
            trigger=Trigger.POST_SALE_COMPLAINT,
            title="Apri task customer care urgente con risposta suggerita",
            channel=Channel.EMAIL,
            confidence=0.91,
            context_fit=0.97,
            profile_fit=0.6,
            needs_approval=False,
        )
    ]


RuleBlock = Callable[[DomainEvent, list[ProductOffer]], list[ActionCandidate]]

RULES: dict[EventType, RuleBlock] = {
    EventType.TICKET_OUTCOME: _ticket_outcome_rules,
    EventType.INVOICE_INGESTED: _invoice_rules,
    EventType.PROMO_INGESTED: _promo_rules,
    EventType.INBOUND_EMAIL: _inbound_email_rules,
}


# =============================================================================
# Public API
# =============================================================================
def generate_candidates(
    event: DomainEvent,
    offers: Optional[list[ProductOffer]] = None,
) -> list[ActionCandidate]:
    """Generate the rule candidates for one event.

    Args:
        event: The triggering event.
        offers: Active offers in catalogue order.

    Returns:
        The candidates in rule order. Empty for event types without rules
        and for events that match no rule.
    """
    rule_block = RULES.get(event.type)
    if rule_block is None:
        return []
    return rule_block(event, list(offers or []))
