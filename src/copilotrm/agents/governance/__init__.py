"""
copilotrm.agents.governance - Governance Agents
=================================================

    - ComplianceAgent: consent and saturation notes on every event
"""

from copilotrm.agents.governance.compliance_agent import ComplianceAgent

__all__ = ["ComplianceAgent"]
