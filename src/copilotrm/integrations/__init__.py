"""
copilotrm.integrations - External Collaborator Interfaces
==========================================================

Adapters for the services the engine talks to through an interface only.

Sub-packages:
    llm/   - Language-model providers (chat-style), used for discussion turns
"""

__all__: list[str] = []
