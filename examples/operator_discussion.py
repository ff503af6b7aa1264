"""
Operator Discussion Example — Streaming a Team Roundtable
===========================================================

An operator asks the agent team a free-text question. The discussion
coordinator streams typing/message events as each persona speaks, then a
final "done" event carrying the moderator's synthesis.

The mock LLM provider is primed so the brief mentions two specialists and
the critic challenges one of them; every other turn uses the mock's
persona-aware defaults.

Usage:
    python examples/operator_discussion.py
"""

from __future__ import annotations

import asyncio

from copilotrm.core.enums import DiscussionEventType
from copilotrm.core.models import AssistanceTicket, CustomerProfile
from copilotrm.facade import CopilotRM
from copilotrm.integrations.llm.mock import MockLLMProvider
from copilotrm.orchestration.discussion import DiscussionRequest


async def main() -> None:
    provider = MockLLMProvider()
    provider.queue_responses(
        [
            "Brief: notebook non riparabile, cliente gamer. @Commerciale @Hardware",
            "Propongo tre fasce: entry, mid, top. Il mid è in stock.",
            "Il Notebook Gaming 15 ha la GPU adatta ai titoli che usa.",
            "Manca il budget del cliente. @Commerciale verifichi prima di proporre.",
            "Chiedo il budget in chiamata e poi invio il preventivo.",
        ]
    )

    request = DiscussionRequest(
        message="Il notebook del cliente non conviene ripararlo: cosa proponiamo?",
        customer=CustomerProfile(id="cust_42", full_name="Giulia Bianchi", segments=["gamer"]),
        open_tickets=[
            AssistanceTicket(id="T-2048", device_type="notebook", issue="scheda madre guasta")
        ],
        trace=True,
    )

    async with CopilotRM(llm_provider=provider) as copilot:
        async for event in copilot.discuss(request):
            if event.type == DiscussionEventType.TYPING:
                print(f"... {event.agent} sta scrivendo")
            elif event.type == DiscussionEventType.MESSAGE:
                msg = event.msg
                print(f"[round {msg.round}] {msg.agent} ({msg.kind.value}): {msg.content}")
            elif event.type == DiscussionEventType.DONE:
                print()
                print(f"Sintesi: {event.synthesis}")
                print(f"Swarm run: {event.swarm_run_id}")
            elif event.type == DiscussionEventType.ERROR:
                print(f"Errore: {event.message}")


if __name__ == "__main__":
    asyncio.run(main())
