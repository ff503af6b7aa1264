"""
copilotrm.agents.marketing.content_agent - Content Factory Agent
==================================================================

Produces the social/blog content package for new stock (supplier
invoices) and for vendor promos. Invoice events also get a Telegram
broadcast draft announcing the new arrivals.
"""

from __future__ import annotations

from copilotrm.agents.base import BusinessAgent, payload_text
from copilotrm.core.enums import AgentName, Audience, Channel, EventType, TaskKind
from copilotrm.core.models import AgentExecutionResult, OrchestratorContext


_SUPPORTED = frozenset({EventType.INVOICE_INGESTED, EventType.PROMO_INGESTED})


class ContentAgent(BusinessAgent):
    """Marketing content specialist."""

    name = AgentName.CONTENT

    def supports(self, event_type: EventType) -> bool:
        return event_type in _SUPPORTED

    def _execute(self, ctx: OrchestratorContext) -> AgentExecutionResult:
        tasks = []
        drafts = []

        if ctx.event.type == EventType.INVOICE_INGESTED:
            tasks.append(
                self._task(
                    ctx,
                    TaskKind.CONTENT,
                    "Genera pacchetto content da nuovo stock",
                    assignee_role="content",
                    priority=7,
                    customer_id=None,
                )
            )
            drafts.append(
                self._draft(
                    ctx,
                    Channel.TELEGRAM,
                    "Nuovi arrivi in negozio: stock hardware selezionato disponibile. "
                    "Scrivici per configurazioni e bundle.",
                    reason="nuovo stock da fattura",
                    audience=Audience.ONE_TO_MANY,
                )
            )

        if ctx.event.type == EventType.PROMO_INGESTED:
            title = payload_text(ctx, "title", "Promo")
            tasks.append(
                self._task(
                    ctx,
                    TaskKind.CONTENT,
                    f"Pacchetto social/blog per {title}",
                    assignee_role="content",
                    priority=6,
                    customer_id=None,
                    offer_id=payload_text(ctx, "offerId") or None,
                )
            )

        return self._result(tasks=tasks, drafts=drafts, notes=["Content factory draft creati"])
