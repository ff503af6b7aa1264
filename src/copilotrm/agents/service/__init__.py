"""
copilotrm.agents.service - Service Desk Agents
================================================

Agents that react to what customers bring to the store: repair tickets
and inbound messages.

    - AssistanceAgent:    repair outcomes (approval task + customer message)
    - CustomerCareAgent:  critical post-sale messages (urgent, no approval)
"""

from copilotrm.agents.service.assistance_agent import AssistanceAgent
from copilotrm.agents.service.customer_care_agent import CustomerCareAgent

__all__ = [
    "AssistanceAgent",
    "CustomerCareAgent",
]
