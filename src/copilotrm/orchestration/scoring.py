"""
copilotrm.orchestration.scoring - Scoring Engine and Ranking
==============================================================

Scores every candidate against the run context and sorts them into the
recommendation order. Scoring is a pure transform

    candidate → ScoredCandidate(candidate, breakdown)

and never mutates the candidate: ranked_action() returns a copy with the
breakdown attached.

Score Components (all on a 0-1-ish scale, summed with equal weight):

    ┌────────────────────────┬────────────────────────────────────────────────┐
    │ Component              │ Value                                          │
    ├────────────────────────┼────────────────────────────────────────────────┤
    │ context_fit            │ rule seed (default 0.6)                        │
    │ profile_fit            │ rule seed (default 0.5)                        │
    │ objective_boost        │ 1.5 if an active objective prefers the offer   │
    │ margin_score           │ min(margin_pct / 30, 1), 0 without offer       │
    │ stock_score            │ min(stock_qty / 20, 1), 0 without offer        │
    │ channel_consent_score  │ 1 consented, 0 not, 0.5 with no customer       │
    │ confidence_score       │ the candidate's confidence                     │
    │ saturation_penalty     │ saturation / 100  (SUBTRACTED)                 │
    └────────────────────────┴────────────────────────────────────────────────┘

Ranking Order:
    total descending, then confidence descending, then id ascending. The
    order is total and deterministic; ranked[0] is the recommendation.
"""

from __future__ import annotations

from typing import Any, Optional

from copilotrm.core.models import (
    ActionCandidate,
    OrchestratorContext,
    ScoreBreakdown,
    ScoredCandidate,
)


DEFAULT_CONTEXT_FIT = 0.6
DEFAULT_PROFILE_FIT = 0.5
OBJECTIVE_BOOST = 1.5
MARGIN_SCALE_PCT = 30.0
STOCK_SCALE_QTY = 20.0
NEUTRAL_CONSENT = 0.5


def _seed(metadata: dict[str, Any], key: str, default: float) -> float:
    value = metadata.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _scaled(value: Optional[float], scale: float) -> float:
    if not value or value <= 0:
        return 0.0
    return min(value / scale, 1.0)


def score_candidate(candidate: ActionCandidate, ctx: OrchestratorContext) -> ScoreBreakdown:
    """Compute the ScoreBreakdown of one candidate.

    Args:
        candidate: The candidate to score. Not modified.
        ctx: The run context (customer, objectives, offers).

    Returns:
        The breakdown; its ``total`` is derived from the components.
    """
    offer = ctx.find_offer(candidate.offer_id)
    customer = ctx.customer

    preferred = candidate.offer_id is not None and any(
        candidate.offer_id in objective.preferred_offer_ids
        for objective in ctx.active_objectives
    )

    if customer is None:
        consent = NEUTRAL_CONSENT
    else:
        consent = 1.0 if customer.consents.allows(candidate.channel) else 0.0

    return ScoreBreakdown(
        context_fit=_seed(candidate.metadata, "context_fit", DEFAULT_CONTEXT_FIT),
        profile_fit=_seed(candidate.metadata, "profile_fit", DEFAULT_PROFILE_FIT),
        objective_boost=OBJECTIVE_BOOST if preferred else 0.0,
        margin_score=_scaled(offer.margin_pct, MARGIN_SCALE_PCT) if offer else 0.0,
        stock_score=_scaled(offer.stock_qty, STOCK_SCALE_QTY) if offer else 0.0,
        channel_consent_score=consent,
        saturation_penalty=(customer.commercial_saturation_score / 100.0) if customer else 0.0,
        confidence_score=candidate.confidence,
    )


def rank_key(scored: ScoredCandidate) -> tuple[float, float, str]:
    """Sort key: total desc, confidence desc, id asc."""
    return (-scored.total, -scored.candidate.confidence, scored.candidate.id)


def rank_candidates(
    candidates: list[ActionCandidate],
    ctx: OrchestratorContext,
) -> list[ScoredCandidate]:
    """Score and sort candidates into recommendation order."""
    scored = [
        ScoredCandidate(candidate=candidate, breakdown=score_candidate(candidate, ctx))
        for candidate in candidates
    ]
    return sorted(scored, key=rank_key)


def ranked_actions(
    candidates: list[ActionCandidate],
    ctx: OrchestratorContext,
) -> list[ActionCandidate]:
    """Rank candidates and return copies carrying their score breakdown."""
    return [scored.ranked_action() for scored in rank_candidates(candidates, ctx)]
