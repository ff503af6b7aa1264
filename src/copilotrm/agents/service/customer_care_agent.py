"""
copilotrm.agents.service.customer_care_agent - Post-Sale Care Agent
=====================================================================

Classifies inbound email and WhatsApp messages. A message that talks about
an undelivered order, a delay, a complaint or a contract is treated as a
critical post-sale case: a top-priority task for the care desk and an
email reply that skips approval (the urgent path).
"""

from __future__ import annotations

import re

from copilotrm.agents.base import BusinessAgent, payload_text
from copilotrm.core.enums import AgentName, Channel, EventType, TaskKind
from copilotrm.core.models import AgentExecutionResult, OrchestratorContext


URGENT_PATTERN = re.compile(r"non ho ricevuto|ritardo|reclamo|contratt")

_SUPPORTED = frozenset({EventType.INBOUND_EMAIL, EventType.INBOUND_WHATSAPP})


class CustomerCareAgent(BusinessAgent):
    """Post-sale care specialist."""

    name = AgentName.CUSTOMER_CARE

    def supports(self, event_type: EventType) -> bool:
        return event_type in _SUPPORTED

    def _execute(self, ctx: OrchestratorContext) -> AgentExecutionResult:
        text = f"{payload_text(ctx, 'subject')} {payload_text(ctx, 'body')}".lower()
        if not URGENT_PATTERN.search(text):
            return self._result(notes=["Nessun caso critico rilevato"])

        task = self._task(
            ctx,
            TaskKind.CUSTOMER_CARE,
            "Verifica stato pratica e risposta cliente",
            assignee_role="customer-care",
            priority=10,
        )
        draft = self._draft(
            ctx,
            Channel.EMAIL,
            "Stiamo verificando subito lo stato della pratica. "
            "Ti aggiorniamo a breve con esito e prossimi passaggi.",
            reason="risposta customer care suggerita",
            subject="Aggiornamento sulla tua pratica",
            needs_approval=False,
            recipient_ref=ctx.customer.email if ctx.customer else None,
        )
        return self._result(
            tasks=[task],
            drafts=[draft],
            notes=["Classificato come post-vendita critico"],
        )
