"""
Custom Agent Example — Extending BusinessAgent
================================================

This example shows how to replace a built-in specialist with your own
agent by subclassing BusinessAgent. A custom agent implements:

    name                 — The AgentName slot it occupies in the registry.
    supports(event_type) — Which events it reacts to.
    _execute(ctx)        — Pure rules: read the context, return work items.

BusinessAgent.execute() wraps _execute() with context validation and
error wrapping, so a bug in your rules becomes an AgentError that the
orchestrator isolates instead of aborting the run.

In this example, a ClearanceHardwareAgent takes over the hardware slot and
turns every supplier invoice into a stock-clearance Telegram post.

Usage:
    python examples/custom_agent.py
"""

from __future__ import annotations

import asyncio

from copilotrm.agents.base import BusinessAgent, invoice_line_descriptions
from copilotrm.core.enums import AgentName, Audience, Channel, EventType, TaskKind
from copilotrm.core.models import AgentExecutionResult, DomainEvent, OrchestratorContext
from copilotrm.facade import CopilotRM


# =============================================================================
# Custom Agent: ClearanceHardwareAgent
# =============================================================================
# AgentName is a closed set: a custom agent replaces a built-in specialist
# by taking its name. The registry rejects two agents with the same name.
# =============================================================================
class ClearanceHardwareAgent(BusinessAgent):
    """Publishes incoming stock as clearance posts and alerts the warehouse."""

    name = AgentName.HARDWARE

    def supports(self, event_type: EventType) -> bool:
        return event_type == EventType.INVOICE_INGESTED

    def _execute(self, ctx: OrchestratorContext) -> AgentExecutionResult:
        items = invoice_line_descriptions(ctx)
        if not items:
            return self._result(notes=["invoice without lines"])

        body = "In arrivo in negozio: " + ", ".join(items) + ". Prezzi di lancio per una settimana!"
        return self._result(
            tasks=[
                self._task(
                    ctx,
                    TaskKind.CAMPAIGN,
                    f"Preparare esposizione per {len(items)} articoli",
                    assignee_role="warehouse",
                    priority=5,
                )
            ],
            drafts=[
                self._draft(
                    ctx,
                    Channel.TELEGRAM,
                    body,
                    "Stock clearance from supplier invoice",
                    audience=Audience.ONE_TO_MANY,
                )
            ],
            notes=[f"clearance post for {len(items)} items"],
        )


async def main() -> None:
    """Swap the hardware specialist and run an invoice through the engine."""
    ctx = OrchestratorContext(
        event=DomainEvent(
            type=EventType.INVOICE_INGESTED,
            payload={
                "lines": [
                    {"description": "RTX 4070 Ti", "qty": 2, "unitCost": 780},
                    {"description": "Router WiFi 7", "qty": 10, "unitCost": 120},
                ]
            },
        )
    )

    async with CopilotRM() as copilot:
        copilot.registry.unregister(AgentName.HARDWARE)
        copilot.registry.register(ClearanceHardwareAgent())
        print(f"Registry: {copilot.registry!r}")

        output = await copilot.orchestrate(ctx)

        print()
        print("Custom Agent — Clearance Hardware")
        print("-" * 45)
        for task in output.tasks:
            print(f"Task  : {task.title} ({task.assignee_role})")
        for draft in output.drafts:
            print(f"Draft : [{draft.channel.value}/{draft.audience.value}] {draft.body}")
        for record in await copilot.audit_trail.by_actor(AgentName.HARDWARE.value):
            print(f"Audit : {record.type} {record.payload}")


if __name__ == "__main__":
    asyncio.run(main())
