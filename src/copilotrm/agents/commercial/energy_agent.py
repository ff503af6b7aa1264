"""
copilotrm.agents.commercial.energy_agent - Energy Offers Agent
================================================================

Reacts to the "energia" signal on repair tickets (bill-saving follow-up)
and to energy promos (luce/gas campaigns).
"""

from __future__ import annotations

import re

from copilotrm.agents.base import BusinessAgent, payload_signals, payload_text
from copilotrm.core.enums import AgentName, Channel, EventType, TaskKind
from copilotrm.core.models import AgentExecutionResult, OrchestratorContext


ENERGY_PROMO_PATTERN = re.compile(r"energia|luce|gas", re.IGNORECASE)

_SUPPORTED = frozenset({EventType.TICKET_OUTCOME, EventType.PROMO_INGESTED})


class EnergyAgent(BusinessAgent):
    """Energy contracts specialist."""

    name = AgentName.ENERGY

    def supports(self, event_type: EventType) -> bool:
        return event_type in _SUPPORTED

    def _execute(self, ctx: OrchestratorContext) -> AgentExecutionResult:
        tasks = []
        drafts = []

        if ctx.event.type == EventType.TICKET_OUTCOME and "energia" in payload_signals(ctx):
            tasks.append(
                self._task(
                    ctx,
                    TaskKind.FOLLOWUP,
                    "Follow-up energia: valutazione risparmio bolletta",
                    assignee_role="energy-consultant",
                    priority=6,
                )
            )
            drafts.append(
                self._draft(
                    ctx,
                    Channel.WHATSAPP,
                    "Ti preparo una simulazione rapida per ridurre costi energia "
                    "in base ai tuoi consumi. Vuoi procedere?",
                    reason="cross-sell energia da segnale assistenza",
                )
            )

        title = payload_text(ctx, "title")
        if ctx.event.type == EventType.PROMO_INGESTED and ENERGY_PROMO_PATTERN.search(title):
            tasks.append(
                self._task(
                    ctx,
                    TaskKind.CAMPAIGN,
                    f"Campagna energia: {title}",
                    assignee_role="energy-marketing",
                    priority=7,
                    customer_id=None,
                    offer_id=payload_text(ctx, "offerId") or None,
                )
            )

        return self._result(
            tasks=tasks,
            drafts=drafts,
            notes=["Energy agent valutazione completata"],
        )
