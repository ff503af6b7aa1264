"""
copilotrm.infrastructure.audit_trail - Append-Only Audit Trail
================================================================

Every externally observable step of an orchestration run is described by
an AuditRecord. The synchronous orchestrator returns its records inside
OrchestratorOutput; the facade then appends them to an AuditTrail so they
can be listed and filtered later.

Architecture Context:

    ┌──────────────┐  OrchestratorOutput   ┌──────────┐   write_many()  ┌─────────────┐
    │ Orchestrator │ ───────────────────→ │ CopilotRM │ ─────────────→ │ AuditTrail  │
    └──────────────┘   .audit_records      └──────────┘                 │ (append-only)│
                                                                        └─────────────┘

Append-Only Contract:
    Records are never mutated or deleted. The trail exposes no update or
    delete operation, and list()/by_type() return copies of the stored
    sequence in insertion order.

Implementations:
    - InMemoryAuditTrail: list-based, for development and tests.

Usage:
    >>> trail = InMemoryAuditTrail()
    >>> await trail.write(make_audit_record("orchestrator", "event.received", {"event_id": "evt_1"}))
    >>> [r.type for r in await trail.list()]
    ['event.received']
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog

from copilotrm.core.models import AuditRecord


logger = structlog.get_logger()


def make_audit_record(
    actor: str,
    type: str,
    payload: Optional[dict[str, Any]] = None,
) -> AuditRecord:
    """Build an AuditRecord with a fresh ``audit_`` id and a UTC timestamp.

    Args:
        actor: Who performed the step (an agent name or "orchestrator").
        type: Dotted record type, e.g. "actions.ranked".
        payload: Step-specific data.
    """
    return AuditRecord(actor=actor, type=type, payload=payload or {})


# =============================================================================
# Abstract Audit Trail
# =============================================================================
class AuditTrail(ABC):
    """Interface for audit record storage."""

    @abstractmethod
    async def write(self, record: AuditRecord) -> None:
        """Append one record."""
        ...

    async def write_many(self, records: list[AuditRecord]) -> None:
        """Append several records, preserving their order."""
        for record in records:
            await self.write(record)

    @abstractmethod
    async def list(self, limit: Optional[int] = None) -> list[AuditRecord]:
        """Return records in insertion order, the first ``limit`` if given."""
        ...

    @abstractmethod
    async def by_type(self, record_type: str) -> list[AuditRecord]:
        """Return records of one type, in insertion order."""
        ...

    @abstractmethod
    async def by_actor(self, actor: str) -> list[AuditRecord]:
        """Return records written by one actor, in insertion order."""
        ...

    @abstractmethod
    async def count(self) -> int:
        ...


# =============================================================================
# In-Memory Implementation
# =============================================================================
class InMemoryAuditTrail(AuditTrail):
    """List-backed audit trail.

    Writes are serialized with an asyncio.Lock so concurrent write_many()
    calls never interleave their records.
    """

    def __init__(self) -> None:
        self._records: list[AuditRecord] = []
        self._lock = asyncio.Lock()
        self._logger = logger.bind(component="in_memory_audit_trail")

    async def write(self, record: AuditRecord) -> None:
        async with self._lock:
            self._records.append(record)
        self._logger.debug("audit_record_written", record_type=record.type, actor=record.actor)

    async def write_many(self, records: list[AuditRecord]) -> None:
        async with self._lock:
            self._records.extend(records)
        self._logger.debug("audit_records_written", count=len(records))

    async def list(self, limit: Optional[int] = None) -> list[AuditRecord]:
        records = list(self._records)
        return records if limit is None else records[:limit]

    async def by_type(self, record_type: str) -> list[AuditRecord]:
        return [r for r in self._records if r.type == record_type]

    async def by_actor(self, actor: str) -> list[AuditRecord]:
        return [r for r in self._records if r.actor == actor]

    async def count(self) -> int:
        return len(self._records)
