"""
copilotrm.core.state - Swarm Run History Models
=================================================

Dynamic state recorded by the traced ("swarm") execution mode. A run owns an
append-only history of steps, messages and handoffs, all keyed by run id:

    ┌──────────────┐ 1      N ┌──────────────┐
    │   SwarmRun   │ ───────→ │  SwarmStep   │  one per agent execution
    │ status       │          └──────────────┘
    │ agents       │ 1      N ┌──────────────┐
    │ top score    │ ───────→ │ SwarmMessage │  observations, proposals,
    └──────────────┘          └──────────────┘  handoffs, errors
           │        1      N ┌──────────────┐
           └───────────────→ │ SwarmHandoff │  pending → executed
                             └──────────────┘

Ordering:
    Steps and messages share ONE step_no sequence per run. The number is
    assigned by a single writer (SwarmRecorder) and strictly increases, so
    sorting a snapshot by step_no replays the run causally.

State Lifecycle:
    SwarmRun:  RUNNING → COMPLETED | FAILED
    SwarmStep: RUNNING → COMPLETED | FAILED
    SwarmHandoff: PENDING → EXECUTED
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from copilotrm.core.enums import (
    HandoffStatus,
    SwarmMessageKind,
    SwarmStatus,
    SwarmStepStatus,
)
from copilotrm.core.models import _generate_id, _now


# =============================================================================
# Swarm Run
# =============================================================================
class SwarmRun(BaseModel):
    """One traced execution.

    Attributes:
        event_type: The triggering EventType value, or "operator.discussion"
            for runs recorded by the discussion coordinator.
        agents_involved: Agents that got a step, in first-step order.
        top_action_score: ``total`` of the top ranked action, if any.
        depth: Handoff depth at which the run was started (0 for a root run).

    Example:
        >>> run = SwarmRun(event_type="assistance.ticket.outcome")
        >>> run.status
        <SwarmStatus.RUNNING: 'running'>
    """

    id: str = Field(default_factory=lambda: _generate_id("run"))
    event_type: str
    status: SwarmStatus = SwarmStatus.RUNNING
    started_at: datetime = Field(default_factory=_now)
    finished_at: Optional[datetime] = None
    agents_involved: list[str] = Field(default_factory=list)
    top_action_score: Optional[float] = None
    depth: int = Field(default=0, ge=0)

    @property
    def is_terminal(self) -> bool:
        return self.status in (SwarmStatus.COMPLETED, SwarmStatus.FAILED)


# =============================================================================
# Swarm Step
# =============================================================================
class SwarmStep(BaseModel):
    """One agent execution inside a run."""

    id: str = Field(default_factory=lambda: _generate_id("step"))
    run_id: str
    agent: str
    step_no: int = Field(ge=1)
    status: SwarmStepStatus = SwarmStepStatus.RUNNING
    tasks_created: int = 0
    drafts_created: int = 0
    depth: int = Field(default=0, ge=0)
    started_at: datetime = Field(default_factory=_now)
    finished_at: Optional[datetime] = None


# =============================================================================
# Swarm Message
# =============================================================================
class SwarmMessage(BaseModel):
    """A single entry in the run's message trail."""

    id: str = Field(default_factory=lambda: _generate_id("msg"))
    run_id: str
    step_no: int = Field(ge=1)
    from_agent: str
    to_agent: Optional[str] = None
    kind: SwarmMessageKind
    content: str
    confidence: Optional[float] = None
    created_at: datetime = Field(default_factory=_now)


# =============================================================================
# Swarm Handoff
# =============================================================================
class SwarmHandoff(BaseModel):
    """A recorded handoff between two agents of a run."""

    id: str = Field(default_factory=lambda: _generate_id("hof"))
    run_id: str
    from_agent: str
    to_agent: str
    reason: str
    source_action_id: Optional[str] = None
    blocking: bool = False
    requires_approval: bool = False
    status: HandoffStatus = HandoffStatus.PENDING
    created_at: datetime = Field(default_factory=_now)


# =============================================================================
# Snapshot
# =============================================================================
class SwarmSnapshot(BaseModel):
    """Everything recorded for one run."""

    run: Optional[SwarmRun] = None
    steps: list[SwarmStep] = Field(default_factory=list)
    messages: list[SwarmMessage] = Field(default_factory=list)
    handoffs: list[SwarmHandoff] = Field(default_factory=list)
