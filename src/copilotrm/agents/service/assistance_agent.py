"""
copilotrm.agents.service.assistance_agent - Repair Desk Agent
===============================================================

The AssistanceAgent reacts to every ``assistance.*`` event. Its only
material output today is for the technician verdict "not-worth-repairing":
the repair desk manager must validate the handoff to the quoting agent,
and the customer gets a one-to-one WhatsApp message announcing three
replacement alternatives.

    assistance.ticket.outcome (not-worth-repairing)
        ├── TaskItem  kind=approval  role=assist-manager  priority=9
        └── Draft     whatsapp one-to-one  (needs approval)
"""

from __future__ import annotations

from copilotrm.agents.base import BusinessAgent, payload_text
from copilotrm.core.enums import AgentName, Channel, EventType, TaskKind
from copilotrm.core.models import AgentExecutionResult, OrchestratorContext


NOT_WORTH_REPAIRING_BODY = (
    "Abbiamo verificato il dispositivo: la riparazione non conviene. "
    "Posso prepararti 3 alternative (economica, bilanciata, top) adatte al tuo uso."
)


class AssistanceAgent(BusinessAgent):
    """Repair desk specialist."""

    name = AgentName.ASSISTANCE

    def supports(self, event_type: EventType) -> bool:
        return event_type.value.startswith("assistance.")

    def _execute(self, ctx: OrchestratorContext) -> AgentExecutionResult:
        tasks = []
        drafts = []

        if (
            ctx.event.type == EventType.TICKET_OUTCOME
            and payload_text(ctx, "outcome") == "not-worth-repairing"
        ):
            tasks.append(
                self._task(
                    ctx,
                    TaskKind.APPROVAL,
                    "Valida handoff a preventivi (sostituzione)",
                    assignee_role="assist-manager",
                    priority=9,
                    ticket_id=payload_text(ctx, "ticketId") or None,
                )
            )
            drafts.append(
                self._draft(
                    ctx,
                    Channel.WHATSAPP,
                    NOT_WORTH_REPAIRING_BODY,
                    reason="assistance outcome non conveniente",
                    recipient_ref=ctx.customer.phone if ctx.customer else None,
                )
            )

        return self._result(
            tasks=tasks,
            drafts=drafts,
            notes=["Analisi ticket completata", "Trigger commerciali valutati"],
        )
