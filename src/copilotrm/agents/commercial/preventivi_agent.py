"""
copilotrm.agents.commercial.preventivi_agent - Replacement Quote Agent
========================================================================

When the repair desk rules a device not worth repairing, the quoting agent
("preventivi") prepares a replacement quote in three price bands, taken
from the first three active hardware offers in catalogue order.

Draft body example:
    Ti preparo 3 opzioni sostitutive in linea con il tuo uso:
    1. Notebook Gaming 15 - 1299.0€
    2. PC Desktop Ufficio - 649.0€
    3. Notebook Studio 14
    Possiamo aggiungere bundle accessori e configurazione rapida in negozio.
"""

from __future__ import annotations

from copilotrm.agents.base import BusinessAgent, payload_text
from copilotrm.core.enums import AgentName, Channel, EventType, OfferCategory, TaskKind
from copilotrm.core.models import AgentExecutionResult, OrchestratorContext, ProductOffer


QUOTE_BANDS = 3


def format_quote_body(offers: list[ProductOffer]) -> str:
    """Render the numbered replacement options for the customer."""
    lines = ["Ti preparo 3 opzioni sostitutive in linea con il tuo uso:"]
    for index, offer in enumerate(offers, start=1):
        price = f" - {offer.suggested_price}€" if offer.suggested_price else ""
        lines.append(f"{index}. {offer.title}{price}")
    lines.append("Possiamo aggiungere bundle accessori e configurazione rapida in negozio.")
    return "\n".join(lines)


class PreventiviAgent(BusinessAgent):
    """Quoting specialist for replacement devices."""

    name = AgentName.PREVENTIVI

    def supports(self, event_type: EventType) -> bool:
        return event_type == EventType.TICKET_OUTCOME

    def _execute(self, ctx: OrchestratorContext) -> AgentExecutionResult:
        if payload_text(ctx, "outcome") != "not-worth-repairing":
            return self._result(notes=["Nessuna azione preventivi"])

        top_hardware = [
            o for o in ctx.active_offers if o.category == OfferCategory.HARDWARE
        ][:QUOTE_BANDS]

        task = self._task(
            ctx,
            TaskKind.FOLLOWUP,
            "Invio preventivo sostituzione 3 fasce",
            assignee_role="sales",
            priority=8,
        )
        draft = self._draft(
            ctx,
            Channel.WHATSAPP,
            format_quote_body(top_hardware),
            reason="preventivo da esito assistenza",
            related_offer_id=top_hardware[0].id if top_hardware else None,
        )
        return self._result(
            tasks=[task],
            drafts=[draft],
            notes=["Generate 3 alternative preventivo"],
        )
