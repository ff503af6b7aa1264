"""
Synchronous Orchestration Example — Rank Actions for One Event
================================================================

This example shows the simplest way to use CopilotRM: build the context
for one business event (a repair that is not worth doing, for a gamer
customer) and ask the engine what to do next.

The output contains:
    - ranked_actions : scored next-best actions, best first
    - handoffs       : inter-agent edges derived from the ranking
    - tasks / drafts : work items for the shop staff
    - audit_records  : what happened, in order (also kept in the audit trail)

Usage:
    python examples/sync_orchestration.py
"""

from __future__ import annotations

import asyncio

from copilotrm.core.enums import EventType, OfferCategory
from copilotrm.core.models import (
    ConsentState,
    CustomerProfile,
    DomainEvent,
    ManagerObjective,
    OrchestratorContext,
    ProductOffer,
)
from copilotrm.facade import CopilotRM


def build_context() -> OrchestratorContext:
    """A not-worth-repairing outcome for a gamer with a fibre objective."""
    customer = CustomerProfile(
        id="cust_42",
        full_name="Giulia Bianchi",
        phone="+393471234567",
        segments=["gamer"],
        interests=["gaming"],
        consents=ConsentState(whatsapp=True),
        commercial_saturation_score=15.0,
    )
    offers = [
        ProductOffer(
            id="off_nb",
            category=OfferCategory.HARDWARE,
            title="Notebook Gaming 15",
            margin_pct=18.0,
            stock_qty=4,
            suggested_price=1299.0,
        ),
        ProductOffer(
            id="off_fibra",
            category=OfferCategory.CONNECTIVITY,
            title="Fibra 2.5 Gbit + router WiFi 7",
            margin_pct=35.0,
            stock_qty=50,
        ),
    ]
    event = DomainEvent(
        type=EventType.TICKET_OUTCOME,
        customer_id=customer.id,
        payload={
            "ticketId": "T-2048",
            "outcome": "not-worth-repairing",
            "inferredSignals": ["gamer", "lag"],
        },
    )
    return OrchestratorContext(
        event=event,
        customer=customer,
        active_objectives=[
            ManagerObjective(
                id="obj_q3", name="Spingere connettività", preferred_offer_ids=["off_fibra"]
            )
        ],
        active_offers=offers,
    )


async def main() -> None:
    """Run the synchronous pipeline and print the recommendation."""
    async with CopilotRM() as copilot:
        output = await copilot.orchestrate(build_context())

        print("Ranked Actions")
        print("-" * 60)
        for position, action in enumerate(output.ranked_actions, start=1):
            print(
                f"{position}. [{action.agent.value:<11}] {action.title} "
                f"(score {action.score_breakdown.total:.2f}, confidence {action.confidence:.2f})"
            )

        print()
        print("Handoffs")
        print("-" * 60)
        for edge in output.handoffs:
            print(f"{edge.from_agent.value} -> {edge.to_agent.value}: {edge.reason}")

        print()
        print(f"Tasks  : {len(output.tasks)}")
        for task in output.tasks:
            print(f"  P{task.priority:<2} {task.assignee_role:<10} {task.title}")
        print(f"Drafts : {len(output.drafts)}")
        for draft in output.drafts:
            print(f"  {draft.channel.value:<9} {draft.status.value:<17} {draft.reason}")

        print()
        print(f"Audit records kept: {await copilot.audit_trail.count()}")


if __name__ == "__main__":
    asyncio.run(main())
