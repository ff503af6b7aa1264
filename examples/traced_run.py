"""
Traced Run Example — Swarm History for an Invoice
===================================================

Runs a supplier invoice through the traced pipeline and prints the
recorded history: steps, messages and handoffs share a single sequence,
so the printout reads as the order things happened in.

Usage:
    python examples/traced_run.py
"""

from __future__ import annotations

import asyncio

from copilotrm.core.enums import EventType, OfferCategory
from copilotrm.core.models import DomainEvent, OrchestratorContext, ProductOffer
from copilotrm.facade import CopilotRM


async def main() -> None:
    ctx = OrchestratorContext(
        event=DomainEvent(
            type=EventType.INVOICE_INGESTED,
            payload={"lines": [{"description": "RTX 4080 Super", "qty": 3, "unitCost": 980}]},
        ),
        active_offers=[
            ProductOffer(
                id="off_pc",
                category=OfferCategory.HARDWARE,
                title="PC Desktop RTX",
                margin_pct=22.0,
                stock_qty=2,
            ),
        ],
    )

    async with CopilotRM() as copilot:
        traced = await copilot.run_traced(ctx)
        snapshot = await copilot.snapshot(traced.run_id)

        run = snapshot.run
        print(f"Run {run.id} [{run.status.value}] event={run.event_type}")
        print(f"Agents involved : {', '.join(run.agents_involved)}")
        print(f"Top action score: {run.top_action_score}")
        print()

        timeline = [
            (s.step_no, f"step    {s.agent} ({s.status.value}, depth {s.depth})")
            for s in snapshot.steps
        ]
        timeline += [
            (m.step_no, f"message {m.from_agent} -> {m.to_agent or '*'} [{m.kind.value}] {m.content}")
            for m in snapshot.messages
        ]
        for step_no, line in sorted(timeline):
            print(f"{step_no:>3}  {line}")

        print()
        for handoff in snapshot.handoffs:
            print(f"handoff {handoff.from_agent} -> {handoff.to_agent}: {handoff.status.value}")


if __name__ == "__main__":
    asyncio.run(main())
