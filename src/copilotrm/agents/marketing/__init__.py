"""
copilotrm.agents.marketing - Marketing Agents
===============================================

    - ContentAgent: social/blog packages and broadcast drafts
"""

from copilotrm.agents.marketing.content_agent import ContentAgent

__all__ = ["ContentAgent"]
