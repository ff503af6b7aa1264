"""
copilotrm.orchestration.swarm_store - Swarm Run History Storage
=================================================================

Persistence for traced runs: one SwarmRun row plus its append-only
history of SwarmSteps, SwarmMessages and SwarmHandoffs, keyed by run id.

Architecture:

    ┌────────────────┐  create/add/update   ┌──────────────┐   get/list/snapshot   ┌──────────┐
    │ SwarmRecorder  │ ───────────────────→ │  SwarmStore  │ ←──────────────────── │ CopilotRM│
    │ (single writer)│                      │              │                       │ (readers)│
    └────────────────┘                      └──────────────┘                       └──────────┘

Write Rules:
    - Writing to an unknown run raises SwarmRunError(SWARM_RUN_NOT_FOUND).
    - Writing to a completed/failed run raises SwarmRunError(SWARM_RUN_CLOSED).
    - Step and message numbers share one sequence per run and must strictly
      increase; a number that does not raises
      SwarmRunError(SWARM_SEQUENCE_VIOLATION). The store only checks the
      sequence; the recorder assigns it.

Read Rules:
    - list_runs(): newest first.
    - list_steps() / list_messages(): ordered by step_no.
    - list_handoffs(): insertion order.

Implementations:
    - SwarmStore (ABC):      Abstract interface
    - InMemorySwarmStore:    Dict-based for dev/testing
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from copilotrm.core.exceptions import SwarmRunError
from copilotrm.core.state import (
    SwarmHandoff,
    SwarmMessage,
    SwarmRun,
    SwarmSnapshot,
    SwarmStep,
)


logger = logging.getLogger(__name__)

DEFAULT_LIST_RUNS_LIMIT = 50


# =============================================================================
# Abstract Base Class: SwarmStore
# =============================================================================
class SwarmStore(ABC):
    """Abstract base class for swarm history storage.

    Components type-hint against this ABC; the facade injects the concrete
    implementation.
    """

    # -------------------------------------------------------------------------
    # Connection Lifecycle
    # -------------------------------------------------------------------------

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the storage backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Gracefully disconnect from the storage backend."""

    # -------------------------------------------------------------------------
    # Runs
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_run(self, run: SwarmRun) -> SwarmRun:
        """Store a new run."""

    @abstractmethod
    async def update_run(self, run: SwarmRun) -> SwarmRun:
        """Replace a stored run.

        Raises:
            SwarmRunError: If the run is unknown or already terminal.
        """

    @abstractmethod
    async def get_run(self, run_id: str) -> Optional[SwarmRun]:
        """Return the run, or None if unknown."""

    @abstractmethod
    async def list_runs(self, limit: int = DEFAULT_LIST_RUNS_LIMIT) -> list[SwarmRun]:
        """Return up to ``limit`` runs, newest first."""

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    @abstractmethod
    async def add_step(self, step: SwarmStep) -> SwarmStep:
        """Append a step to its run."""

    @abstractmethod
    async def update_step(self, step: SwarmStep) -> SwarmStep:
        """Replace a stored step (same id)."""

    @abstractmethod
    async def list_steps(self, run_id: str) -> list[SwarmStep]:
        """Return the run's steps ordered by step_no."""

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    @abstractmethod
    async def add_message(self, message: SwarmMessage) -> SwarmMessage:
        """Append a message to its run."""

    @abstractmethod
    async def list_messages(self, run_id: str) -> list[SwarmMessage]:
        """Return the run's messages ordered by step_no."""

    # -------------------------------------------------------------------------
    # Handoffs
    # -------------------------------------------------------------------------

    @abstractmethod
    async def add_handoff(self, handoff: SwarmHandoff) -> SwarmHandoff:
        """Append a handoff to its run."""

    @abstractmethod
    async def update_handoff(self, handoff: SwarmHandoff) -> SwarmHandoff:
        """Replace a stored handoff (same id)."""

    @abstractmethod
    async def list_handoffs(self, run_id: str) -> list[SwarmHandoff]:
        """Return the run's handoffs in insertion order."""

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    async def snapshot(self, run_id: str) -> SwarmSnapshot:
        """Return the run together with its full history.

        An unknown run id yields an empty snapshot with ``run=None``.
        """
        run = await self.get_run(run_id)
        if run is None:
            return SwarmSnapshot()
        return SwarmSnapshot(
            run=run,
            steps=await self.list_steps(run_id),
            messages=await self.list_messages(run_id),
            handoffs=await self.list_handoffs(run_id),
        )


# =============================================================================
# InMemorySwarmStore Implementation
# =============================================================================
# Key Data Structures:
#   _runs:      dict[run_id, SwarmRun]          (insertion order = creation order)
#   _steps:     dict[run_id, list[SwarmStep]]
#   _messages:  dict[run_id, list[SwarmMessage]]
#   _handoffs:  dict[run_id, list[SwarmHandoff]]
#   _last_seq:  dict[run_id, int]               last step/message number
# =============================================================================
class InMemorySwarmStore(SwarmStore):
    """In-memory swarm store for development and testing.

    Data is lost when the process ends or on disconnect().

    Example:
        >>> store = InMemorySwarmStore()
        >>> await store.connect()
        >>> run = await store.create_run(SwarmRun(event_type="offer.promo.ingested"))
        >>> await store.get_run(run.id)
    """

    def __init__(self) -> None:
        self._runs: dict[str, SwarmRun] = {}
        self._steps: dict[str, list[SwarmStep]] = {}
        self._messages: dict[str, list[SwarmMessage]] = {}
        self._handoffs: dict[str, list[SwarmHandoff]] = {}
        self._last_seq: dict[str, int] = {}
        self._connected: bool = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    # -------------------------------------------------------------------------
    # Connection Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """Mark the store as connected."""
        self._connected = True
        logger.info("InMemorySwarmStore connected")

    async def disconnect(self) -> None:
        """Clear all stored history and mark as disconnected."""
        self._runs.clear()
        self._steps.clear()
        self._messages.clear()
        self._handoffs.clear()
        self._last_seq.clear()
        self._connected = False
        logger.info("InMemorySwarmStore disconnected")

    # -------------------------------------------------------------------------
    # Runs
    # -------------------------------------------------------------------------

    async def create_run(self, run: SwarmRun) -> SwarmRun:
        self._runs[run.id] = run
        self._steps[run.id] = []
        self._messages[run.id] = []
        self._handoffs[run.id] = []
        self._last_seq[run.id] = 0
        logger.debug("Created swarm run: %s (event_type=%s)", run.id, run.event_type)
        return run

    async def update_run(self, run: SwarmRun) -> SwarmRun:
        self._open_run(run.id)
        self._runs[run.id] = run
        logger.debug("Updated swarm run: %s (status=%s)", run.id, run.status.value)
        return run

    async def get_run(self, run_id: str) -> Optional[SwarmRun]:
        return self._runs.get(run_id)

    async def list_runs(self, limit: int = DEFAULT_LIST_RUNS_LIMIT) -> list[SwarmRun]:
        # Reversed insertion order breaks started_at ties newest-first
        runs = list(reversed(list(self._runs.values())))
        runs.sort(key=lambda r: r.started_at, reverse=True)
        return runs[: max(0, limit)]

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    async def add_step(self, step: SwarmStep) -> SwarmStep:
        self._open_run(step.run_id)
        self._advance_sequence(step.run_id, step.step_no)
        self._steps[step.run_id].append(step)
        logger.debug("Added step %d to run %s (agent=%s)", step.step_no, step.run_id, step.agent)
        return step

    async def update_step(self, step: SwarmStep) -> SwarmStep:
        self._open_run(step.run_id)
        steps = self._steps[step.run_id]
        for index, existing in enumerate(steps):
            if existing.id == step.id:
                steps[index] = step
                logger.debug("Updated step %s (status=%s)", step.id, step.status.value)
                return step
        raise SwarmRunError(
            message=f"Step '{step.id}' not found in run '{step.run_id}'",
            run_id=step.run_id,
            error_code="SWARM_STEP_NOT_FOUND",
            details={"step_id": step.id},
        )

    async def list_steps(self, run_id: str) -> list[SwarmStep]:
        return sorted(self._steps.get(run_id, []), key=lambda s: s.step_no)

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    async def add_message(self, message: SwarmMessage) -> SwarmMessage:
        self._open_run(message.run_id)
        self._advance_sequence(message.run_id, message.step_no)
        self._messages[message.run_id].append(message)
        logger.debug(
            "Added %s message %d to run %s",
            message.kind.value,
            message.step_no,
            message.run_id,
        )
        return message

    async def list_messages(self, run_id: str) -> list[SwarmMessage]:
        return sorted(self._messages.get(run_id, []), key=lambda m: m.step_no)

    # -------------------------------------------------------------------------
    # Handoffs
    # -------------------------------------------------------------------------

    async def add_handoff(self, handoff: SwarmHandoff) -> SwarmHandoff:
        self._open_run(handoff.run_id)
        self._handoffs[handoff.run_id].append(handoff)
        logger.debug(
            "Added handoff %s -> %s to run %s",
            handoff.from_agent,
            handoff.to_agent,
            handoff.run_id,
        )
        return handoff

    async def update_handoff(self, handoff: SwarmHandoff) -> SwarmHandoff:
        self._open_run(handoff.run_id)
        handoffs = self._handoffs[handoff.run_id]
        for index, existing in enumerate(handoffs):
            if existing.id == handoff.id:
                handoffs[index] = handoff
                logger.debug("Updated handoff %s (status=%s)", handoff.id, handoff.status.value)
                return handoff
        raise SwarmRunError(
            message=f"Handoff '{handoff.id}' not found in run '{handoff.run_id}'",
            run_id=handoff.run_id,
            error_code="SWARM_HANDOFF_NOT_FOUND",
            details={"handoff_id": handoff.id},
        )

    async def list_handoffs(self, run_id: str) -> list[SwarmHandoff]:
        return list(self._handoffs.get(run_id, []))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _open_run(self, run_id: str) -> SwarmRun:
        run = self._runs.get(run_id)
        if run is None:
            raise SwarmRunError(message=f"Swarm run '{run_id}' not found", run_id=run_id)
        if run.is_terminal:
            raise SwarmRunError(
                message=f"Swarm run '{run_id}' is already {run.status.value}",
                run_id=run_id,
                error_code="SWARM_RUN_CLOSED",
                details={"status": run.status.value},
            )
        return run

    def _advance_sequence(self, run_id: str, step_no: int) -> None:
        last = self._last_seq[run_id]
        if step_no <= last:
            raise SwarmRunError(
                message=f"Step number {step_no} does not follow {last} in run '{run_id}'",
                run_id=run_id,
                error_code="SWARM_SEQUENCE_VIOLATION",
                details={"step_no": step_no, "last_step_no": last},
            )
        self._last_seq[run_id] = step_no
