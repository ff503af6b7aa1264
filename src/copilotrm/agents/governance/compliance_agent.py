"""
copilotrm.agents.governance.compliance_agent - Consent & Saturation Guard
===========================================================================

Runs on every event and only writes notes. It never produces tasks or
drafts: its findings reach the operator through the audit trail
(``agent.notes``) and the swarm message history.
"""

from __future__ import annotations

from copilotrm.agents.base import BusinessAgent
from copilotrm.core.enums import AgentName, EventType
from copilotrm.core.models import AgentExecutionResult, OrchestratorContext


HIGH_SATURATION_THRESHOLD = 80.0


class ComplianceAgent(BusinessAgent):
    """Consent and commercial-pressure checks."""

    name = AgentName.COMPLIANCE

    def supports(self, event_type: EventType) -> bool:
        return True

    def _execute(self, ctx: OrchestratorContext) -> AgentExecutionResult:
        notes = []
        customer = ctx.customer
        if customer is not None:
            if ctx.event.type == EventType.INBOUND_EMAIL and not customer.consents.email:
                notes.append(
                    "Inbound consent check skipped (inbound allowed), outbound remains restricted"
                )
            if customer.commercial_saturation_score > HIGH_SATURATION_THRESHOLD:
                notes.append("Cliente con saturazione alta: preferire approvazione manuale")
        return self._result(notes=notes)
