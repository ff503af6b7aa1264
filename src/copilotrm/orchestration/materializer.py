"""
copilotrm.orchestration.materializer - Task/Draft Materializer
================================================================

Shapes ranked, actionable candidates into operator work items. It never
sends anything: the TaskItems and CommunicationDrafts it returns are
handed to external dispatch collaborators.

Per actionable candidate:
    - one TaskItem: kind from the action type, assignee = candidate agent,
      priority = round(confidence * 10) clamped to 1..10, status open.
    - one CommunicationDraft when the candidate has a channel; it copies
      needs_approval, and is READY only when needs_approval is False.
"""

from __future__ import annotations

from typing import Optional

from copilotrm.core.enums import ActionType, Audience, DraftStatus, TaskKind
from copilotrm.core.models import ActionCandidate, CommunicationDraft, TaskItem


TASK_KIND_BY_ACTION: dict[ActionType, TaskKind] = {
    ActionType.QUOTE: TaskKind.FOLLOWUP,
    ActionType.CROSS_SELL: TaskKind.FOLLOWUP,
    ActionType.CUSTOMER_CARE: TaskKind.CUSTOMER_CARE,
    ActionType.CAMPAIGN: TaskKind.CAMPAIGN,
    ActionType.CONTENT: TaskKind.CONTENT,
    ActionType.FOLLOWUP: TaskKind.FOLLOWUP,
}

BROADCAST_ACTIONS = frozenset({ActionType.CAMPAIGN, ActionType.CONTENT})


def task_priority(confidence: float) -> int:
    """Map a confidence in [0, 1] to a task priority in 1..10 (half up)."""
    return max(1, min(10, int(confidence * 10 + 0.5)))


def materialize_task(candidate: ActionCandidate) -> TaskItem:
    return TaskItem(
        kind=TASK_KIND_BY_ACTION[candidate.action_type],
        title=candidate.title,
        assignee_role=candidate.agent.value,
        priority=task_priority(candidate.confidence),
        customer_id=candidate.customer_id,
        offer_id=candidate.offer_id,
    )


def materialize_draft(candidate: ActionCandidate) -> Optional[CommunicationDraft]:
    """Return the candidate's draft, or None if it carries no channel."""
    if candidate.channel is None:
        return None
    broadcast = candidate.action_type in BROADCAST_ACTIONS
    return CommunicationDraft(
        customer_id=None if broadcast else candidate.customer_id,
        channel=candidate.channel,
        audience=Audience.ONE_TO_MANY if broadcast else Audience.ONE_TO_ONE,
        body=candidate.title,
        related_offer_id=candidate.offer_id,
        needs_approval=candidate.needs_approval,
        status=DraftStatus.PENDING_APPROVAL if candidate.needs_approval else DraftStatus.READY,
        reason=f"{candidate.agent.value}: {candidate.title}",
    )


def materialize(
    candidates: list[ActionCandidate],
    min_confidence: float = 0.0,
) -> tuple[list[TaskItem], list[CommunicationDraft]]:
    """Materialize every candidate whose confidence reaches ``min_confidence``.

    Returns:
        (tasks, drafts), both in candidate order.
    """
    tasks = []
    drafts = []
    for candidate in candidates:
        if candidate.confidence < min_confidence:
            continue
        tasks.append(materialize_task(candidate))
        draft = materialize_draft(candidate)
        if draft is not None:
            drafts.append(draft)
    return tasks, drafts
