"""
copilotrm.infrastructure - Storage Layer
==========================================

    - audit_trail: append-only AuditRecord storage (AuditTrail, InMemoryAuditTrail)

The swarm run history store lives in copilotrm.orchestration.swarm_store
because the recorder is its only writer.
"""

from copilotrm.infrastructure.audit_trail import (
    AuditTrail,
    InMemoryAuditTrail,
    make_audit_record,
)

__all__ = [
    "AuditTrail",
    "InMemoryAuditTrail",
    "make_audit_record",
]
