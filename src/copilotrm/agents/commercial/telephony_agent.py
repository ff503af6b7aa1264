"""
copilotrm.agents.commercial.telephony_agent - Connectivity Agent
==================================================================

Two triggers:
    - a repair ticket whose inferred signals include "gamer": lag/ping
      issues are a fibre + router/mesh opportunity (one-to-one follow-up).
    - a vendor promo: a telephony campaign with a Telegram broadcast draft.
"""

from __future__ import annotations

from copilotrm.agents.base import BusinessAgent, payload_signals, payload_text
from copilotrm.core.enums import AgentName, Audience, Channel, EventType, TaskKind
from copilotrm.core.models import AgentExecutionResult, OrchestratorContext


_SUPPORTED = frozenset({EventType.TICKET_OUTCOME, EventType.PROMO_INGESTED})


class TelephonyAgent(BusinessAgent):
    """Connectivity and mobile specialist."""

    name = AgentName.TELEPHONY

    def supports(self, event_type: EventType) -> bool:
        return event_type in _SUPPORTED

    def _execute(self, ctx: OrchestratorContext) -> AgentExecutionResult:
        tasks = []
        drafts = []

        if ctx.event.type == EventType.TICKET_OUTCOME and "gamer" in payload_signals(ctx):
            tasks.append(
                self._task(
                    ctx,
                    TaskKind.FOLLOWUP,
                    "Proposta connectivity gaming",
                    assignee_role="telephony",
                    priority=9,
                )
            )
            drafts.append(
                self._draft(
                    ctx,
                    Channel.WHATSAPP,
                    "Se vuoi risolvere lag/ping possiamo proporti fibra + router/mesh "
                    "ottimizzati per gaming. Ti preparo una proposta rapida?",
                    reason="cross-sell gamer da assistenza",
                    recipient_ref=ctx.customer.phone if ctx.customer else None,
                )
            )

        if ctx.event.type == EventType.PROMO_INGESTED:
            title = payload_text(ctx, "title", "Promo smartphone")
            offer_id = payload_text(ctx, "offerId") or None
            tasks.append(
                self._task(
                    ctx,
                    TaskKind.CAMPAIGN,
                    f"Campagna telefonia: {title}",
                    assignee_role="telephony-marketing",
                    priority=7,
                    customer_id=None,
                    offer_id=offer_id,
                )
            )
            drafts.append(
                self._draft(
                    ctx,
                    Channel.TELEGRAM,
                    f"Nuova promo telefonia: {title}. Scrivici per profilo e condizioni complete.",
                    reason="promo smartphone bundle",
                    audience=Audience.ONE_TO_MANY,
                    related_offer_id=offer_id,
                )
            )

        return self._result(
            tasks=tasks,
            drafts=drafts,
            notes=["Telephony agent valutazione completata"],
        )
