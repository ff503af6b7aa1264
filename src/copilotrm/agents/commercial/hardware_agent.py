"""
copilotrm.agents.commercial.hardware_agent - Hardware Upgrade Agent
=====================================================================

Watches supplier invoices for new hardware stock (product sheet and
counter script for the sales floor) and repair tickets flagged "gamer"
or "upgrade-hardware" (three-band upgrade proposal).
"""

from __future__ import annotations

import re

from copilotrm.agents.base import BusinessAgent, invoice_line_descriptions, payload_signals
from copilotrm.core.enums import AgentName, Channel, EventType, TaskKind
from copilotrm.core.models import AgentExecutionResult, OrchestratorContext


HARDWARE_LINE_PATTERN = re.compile(r"gpu|rtx|ssd|notebook|pc|monitor|router|mesh", re.IGNORECASE)

UPGRADE_SIGNALS = frozenset({"gamer", "upgrade-hardware"})

_SUPPORTED = frozenset({EventType.INVOICE_INGESTED, EventType.TICKET_OUTCOME})


class HardwareAgent(BusinessAgent):
    """Hardware and home network specialist."""

    name = AgentName.HARDWARE

    def supports(self, event_type: EventType) -> bool:
        return event_type in _SUPPORTED

    def _execute(self, ctx: OrchestratorContext) -> AgentExecutionResult:
        tasks = []
        drafts = []

        if ctx.event.type == EventType.INVOICE_INGESTED and any(
            HARDWARE_LINE_PATTERN.search(d) for d in invoice_line_descriptions(ctx)
        ):
            tasks.append(
                self._task(
                    ctx,
                    TaskKind.CONTENT,
                    "Scheda prodotto + script banco per nuovo stock hardware",
                    assignee_role="hardware-specialist",
                    priority=7,
                    customer_id=None,
                )
            )

        if ctx.event.type == EventType.TICKET_OUTCOME and UPGRADE_SIGNALS.intersection(
            payload_signals(ctx)
        ):
            drafts.append(
                self._draft(
                    ctx,
                    Channel.WHATSAPP,
                    "Dal controllo tecnico vedo margine per upgrade hardware/rete domestica "
                    "(mesh, cablaggio o componenti). Vuoi una proposta in 3 fasce?",
                    reason="cross-sell hardware da assistenza",
                )
            )

        return self._result(
            tasks=tasks,
            drafts=drafts,
            notes=["Hardware agent valutazione completata"],
        )
