"""
copilotrm.orchestration.handoffs - Handoff Resolver
=====================================================

Projects a candidate list onto HandoffEdges. The projection is pure: the
same list always yields the same edges, in candidate order, without
de-duplication.

    ┌─────────────────────┬──────────────┬─────────────┬───────────────┬──────────────────────────────────────┐
    │ Trigger             │ Cand. agent  │ From        │ To            │ Reason                               │
    ├─────────────────────┼──────────────┼─────────────┼───────────────┼──────────────────────────────────────┤
    │ not-worth-repairing │ preventivi   │ assistance  │ preventivi    │ repair-not-worth -> replacement quote │
    │ gamer-lag           │ telephony    │ assistance  │ telephony     │ gamer profile + network issue        │
    │ invoice-hardware    │ content      │ ingest      │ content       │ hardware stock arrived               │
    └─────────────────────┴──────────────┴─────────────┴───────────────┴──────────────────────────────────────┘

No other trigger produces an edge.
"""

from __future__ import annotations

from typing import NamedTuple

from copilotrm.core.enums import AgentName, Trigger
from copilotrm.core.models import ActionCandidate, HandoffEdge


class HandoffRoute(NamedTuple):
    candidate_agent: AgentName
    from_agent: AgentName
    reason: str


HANDOFF_ROUTES: dict[Trigger, HandoffRoute] = {
    Trigger.NOT_WORTH_REPAIRING: HandoffRoute(
        AgentName.PREVENTIVI, AgentName.ASSISTANCE, "repair-not-worth -> replacement quote"
    ),
    Trigger.GAMER_LAG: HandoffRoute(
        AgentName.TELEPHONY, AgentName.ASSISTANCE, "gamer profile + network issue"
    ),
    Trigger.INVOICE_HARDWARE: HandoffRoute(
        AgentName.CONTENT, AgentName.INGEST, "hardware stock arrived"
    ),
}


def derive_handoffs(candidates: list[ActionCandidate]) -> list[HandoffEdge]:
    """Derive the handoff edges implied by ``candidates``.

    An edge points at the candidate's own agent, so every edge target is an
    agent present in the list.
    """
    edges = []
    for candidate in candidates:
        if candidate.trigger is None:
            continue
        route = HANDOFF_ROUTES.get(candidate.trigger)
        if route is None or candidate.agent != route.candidate_agent:
            continue
        edges.append(
            HandoffEdge(
                from_agent=route.from_agent,
                to_agent=candidate.agent,
                reason=route.reason,
                source_action_id=candidate.id,
                blocking=False,
                requires_approval=False,
            )
        )
    return edges
